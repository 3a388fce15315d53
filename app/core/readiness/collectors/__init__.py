"""Metric collectors: per-domain sub-scores normalized to [0, 1]."""

import logging
from datetime import date

from app.core.config import get_settings
from app.core.logging import get_logger, log_with_context
from app.core.readiness.collectors.components import score_components
from app.core.readiness.collectors.personnel import score_personnel
from app.core.readiness.collectors.risk import (
    score_incidents,
    score_infra,
    score_response,
    score_threat,
    week_bounds,
)
from app.core.readiness.collectors.training import score_training
from app.core.readiness.types import RecordSource, SettlementMetrics, SettlementRecords

logger = get_logger(__name__)

# Which source tables each metric depends on
METRIC_SOURCES: dict[str, tuple[RecordSource, ...]] = {
    "personnel": (RecordSource.SOLDIERS, RecordSource.CERTIFICATIONS),
    "components": (RecordSource.COMPONENTS,),
    "training": (RecordSource.TRAINING_EVENTS, RecordSource.DRILLS),
    "threat": (RecordSource.THREAT_RATINGS,),
    "infra": (RecordSource.COMPONENTS,),
    "response": (RecordSource.SOLDIERS, RecordSource.WEAPON_HOLDERS),
    "incidents": (RecordSource.INCIDENTS,),
}

# Value a metric takes when its source data is unavailable: lowest readiness,
# highest risk
WORST_CASE: dict[str, float] = {
    "personnel": 0.0,
    "components": 0.0,
    "training": 0.0,
    "threat": 1.0,
    "infra": 1.0,
    "response": 1.0,
    "incidents": 1.0,
}


def collect_settlement_metrics(
    records: SettlementRecords,
    settlement: str,
    reference_date: date | None = None,
) -> SettlementMetrics:
    """
    Run every collector for one settlement.

    Metrics whose source table failed to load, or whose row for this
    settlement was malformed, take their worst case (readiness 0, risk 1)
    and the result is marked degraded.

    Args:
        records: Fetched source rows (may cover many settlements)
        settlement: Settlement name
        reference_date: Point in time to measure against (default: today)

    Returns:
        SettlementMetrics for the settlement
    """
    settings = get_settings()
    ref = reference_date or date.today()

    personnel = score_personnel(
        records.soldiers,
        records.certifications,
        settlement,
        ref,
        shooting_validity_days=settings.SHOOTING_VALIDITY_DAYS,
        cert_validity_days=settings.CERT_VALIDITY_DAYS,
    )
    components = score_components(records.components, settlement)
    training = score_training(
        records.training_events,
        records.drills,
        settlement,
        ref,
        lookback_days=settings.TRAINING_LOOKBACK_DAYS,
        expected_events=settings.TRAINING_EXPECTED_EVENTS,
        expected_drills=settings.TRAINING_EXPECTED_DRILLS,
    )
    threat = score_threat(records.threat_ratings, settlement)
    infra = score_infra(components.score)
    response = score_response(
        records.soldiers,
        records.weapon_holders,
        settlement,
        shooting_rate=personnel.facts.get("shooting_rate", 0.0),
        reference_date=ref,
    )
    incidents = score_incidents(records.incidents, settlement)

    values = {
        "personnel": personnel.score,
        "components": components.score,
        "training": training.score,
        "threat": threat.score,
        "infra": infra.score,
        "response": response.score,
        "incidents": incidents.score,
    }

    failed = set(records.failed_sources)
    failed.update(
        source for source, names in records.malformed_sources.items() if settlement in names
    )
    degraded_sources = sorted(failed)
    for metric, sources in METRIC_SOURCES.items():
        if failed.intersection(s.value for s in sources):
            values[metric] = WORST_CASE[metric]

    if degraded_sources:
        log_with_context(
            logger,
            logging.WARNING,
            "Metrics degraded by unavailable sources",
            settlement=settlement,
            source=",".join(degraded_sources),
        )

    reasons = (
        personnel.reasons
        + components.reasons
        + training.reasons
        + threat.reasons
        + response.reasons
        + incidents.reasons
    )

    return SettlementMetrics(
        settlement=settlement,
        **values,
        reasons=tuple(reasons),
        total_soldiers=personnel.facts["total_soldiers"],
        active_soldiers=personnel.facts["active_soldiers"],
        expired_shooting=personnel.facts["expired_shooting"],
        expired_certs=personnel.facts["expired_certs"],
        armed_count=personnel.facts["armed_count"],
        open_incidents=incidents.facts["open_incidents"],
        degraded=bool(degraded_sources),
        degraded_sources=tuple(degraded_sources),
    )


__all__ = [
    "METRIC_SOURCES",
    "WORST_CASE",
    "collect_settlement_metrics",
    "score_components",
    "score_incidents",
    "score_infra",
    "score_personnel",
    "score_response",
    "score_threat",
    "score_training",
    "week_bounds",
]
