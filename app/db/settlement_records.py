"""Read access to the settlement-defense source tables.

Each table is fetched independently and concurrently. A failing query is
logged and recorded in ``SettlementRecords.failed_sources``; a malformed row
is dropped and its settlement recorded in ``malformed_sources``. Either way
the affected metrics degrade to their worst case instead of aborting the
whole computation.
"""

import asyncio
from datetime import date, timedelta
from typing import Any, Callable, NamedTuple, TypeVar

from pydantic import BaseModel, ValidationError

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.readiness.collectors.risk import week_bounds
from app.core.readiness.errors import FetchError
from app.core.readiness.types import (
    CertificationRecord,
    DrillRecord,
    IncidentRecord,
    RecordSource,
    SecurityComponentsRecord,
    SettlementRecords,
    SoldierRecord,
    ThreatRatingRecord,
    TrainingEventRecord,
    WeaponHolderRecord,
)
from app.db.supabase_client import get_supabase

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

# SettlementRecords attribute holding each source's rows
RECORD_FIELDS: dict[RecordSource, str] = {
    RecordSource.SOLDIERS: "soldiers",
    RecordSource.CERTIFICATIONS: "certifications",
    RecordSource.COMPONENTS: "components",
    RecordSource.THREAT_RATINGS: "threat_ratings",
    RecordSource.INCIDENTS: "incidents",
    RecordSource.TRAINING_EVENTS: "training_events",
    RecordSource.DRILLS: "drills",
    RecordSource.WEAPON_HOLDERS: "weapon_holders",
}

CERTIFICATION_COLUMNS = "id, soldier_id, cert_type, last_refresh_date"


class LoadedSource(NamedTuple):
    source: RecordSource
    rows: list[Any]
    failed: bool
    dropped_settlements: set[str]


async def fetch_settlement_records(
    settlement: str | None = None,
    reference_date: date | None = None,
) -> SettlementRecords:
    """
    Fetch every source table needed to score settlements.

    Independent tables are queried concurrently in worker threads. When a
    single settlement is requested, certifications are narrowed to that
    settlement's soldiers, so they are fetched once soldiers are known.

    Args:
        settlement: Restrict rows to one settlement (default: all)
        reference_date: Anchors the training window and the weekend week
            (default: today)

    Returns:
        SettlementRecords; tables that failed are empty and listed in
        failed_sources
    """
    settings = get_settings()
    ref = reference_date or date.today()
    window_start = ref - timedelta(days=settings.TRAINING_LOOKBACK_DAYS)
    week_start, week_end = week_bounds(ref)

    def scoped(query):
        return query.eq("settlement", settlement) if settlement else query

    queries: dict[RecordSource, tuple[type[BaseModel], Callable[[Any], Any]]] = {
        RecordSource.SOLDIERS: (
            SoldierRecord,
            lambda t: scoped(
                t.select("id, settlement, is_active, last_shooting_range_date, weapon_serial")
            ),
        ),
        RecordSource.COMPONENTS: (SecurityComponentsRecord, lambda t: scoped(t.select("*"))),
        RecordSource.THREAT_RATINGS: (ThreatRatingRecord, lambda t: scoped(t.select("*"))),
        RecordSource.INCIDENTS: (
            IncidentRecord,
            lambda t: scoped(t.select("id, settlement, status").eq("status", "open")),
        ),
        RecordSource.TRAINING_EVENTS: (
            TrainingEventRecord,
            lambda t: scoped(
                t.select("id, settlement, event_date, event_type")
                .gte("event_date", window_start.isoformat())
            ),
        ),
        RecordSource.DRILLS: (
            DrillRecord,
            lambda t: scoped(
                t.select("id, settlement, drill_date").gte("drill_date", window_start.isoformat())
            ),
        ),
        RecordSource.WEAPON_HOLDERS: (
            WeaponHolderRecord,
            lambda t: scoped(
                t.select("id, settlement, weekend_date, is_holding_weapon")
                .gte("weekend_date", week_start.isoformat())
                .lte("weekend_date", week_end.isoformat())
            ),
        ),
    }
    if not settlement:
        queries[RecordSource.CERTIFICATIONS] = (
            CertificationRecord,
            lambda t: t.select(CERTIFICATION_COLUMNS),
        )

    loaded = list(await asyncio.gather(*(
        asyncio.to_thread(_load, source, model, build)
        for source, (model, build) in queries.items()
    )))

    if settlement:
        soldiers = next(item for item in loaded if item.source == RecordSource.SOLDIERS)
        soldier_ids = [s.id for s in soldiers.rows]
        if soldiers.failed:
            # Unknown soldier ids; fall back to every certification
            loaded.append(await asyncio.to_thread(
                _load,
                RecordSource.CERTIFICATIONS,
                CertificationRecord,
                lambda t: t.select(CERTIFICATION_COLUMNS),
            ))
        elif soldier_ids:
            loaded.append(await asyncio.to_thread(
                _load,
                RecordSource.CERTIFICATIONS,
                CertificationRecord,
                lambda t: t.select(CERTIFICATION_COLUMNS).in_("soldier_id", soldier_ids),
            ))

    records = SettlementRecords()
    for item in loaded:
        setattr(records, RECORD_FIELDS[item.source], item.rows)
        if item.failed:
            records.failed_sources.add(item.source.value)
        if item.dropped_settlements:
            records.malformed_sources[item.source.value] = item.dropped_settlements

    if records.failed_sources:
        logger.warning(
            f"Fetched settlement records with {len(records.failed_sources)} failed source(s): "
            f"{', '.join(sorted(records.failed_sources))}"
        )
    else:
        logger.debug(
            f"Fetched settlement records for {settlement or 'all settlements'}: "
            f"{len(records.soldiers)} soldiers, {len(records.incidents)} open incidents"
        )

    return records


def fetch_rows(source: RecordSource, build: Callable[[Any], Any]) -> list[dict[str, Any]]:
    """
    Run a single table query.

    Args:
        source: Table to query
        build: Adds select/filters to the table query builder

    Returns:
        Row dicts

    Raises:
        FetchError: If the query fails
    """
    try:
        supabase = get_supabase()
        response = build(supabase.table(source.value)).execute()
    except Exception as e:
        raise FetchError(source.value, str(e)) from e
    return response.data or []


def parse_rows(
    source: RecordSource,
    model: type[RecordT],
    rows: list[dict[str, Any]],
    dropped_settlements: set[str] | None = None,
) -> list[RecordT]:
    """
    Validate rows into records, dropping malformed ones.

    The settlement of each dropped row, when it has one, is added to
    ``dropped_settlements``.
    """
    parsed: list[RecordT] = []
    dropped = 0
    for row in rows:
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as e:
            dropped += 1
            if dropped_settlements is not None and row.get("settlement"):
                dropped_settlements.add(row["settlement"])
            logger.debug(f"Dropping malformed {source.value} row {row.get('id')}: {e}")
    if dropped:
        logger.warning(f"Dropped {dropped} malformed row(s) from {source.value}")
    return parsed


def _load(
    source: RecordSource,
    model: type[RecordT],
    build: Callable[[Any], Any],
) -> LoadedSource:
    try:
        rows = fetch_rows(source, build)
    except FetchError as e:
        logger.error(str(e))
        return LoadedSource(source, [], True, set())
    dropped: set[str] = set()
    return LoadedSource(source, parse_rows(source, model, rows, dropped), False, dropped)
