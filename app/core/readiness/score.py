"""Settlement score composition.

This module turns collected sub-scores into the three composite scores:
1. Readiness: personnel, components and training (higher is better)
2. Risk: threat, infrastructure, response and incidents (higher is worse)
3. Priority: risk plus inverted readiness, a "needs attention" ranking

Weights are applied exactly as configured. A weight group that does not sum
to 1.0 skews the output proportionally rather than being re-normalized.
"""

import asyncio
from datetime import UTC, date, datetime

from app.core.logging import get_logger
from app.core.readiness.collectors import collect_settlement_metrics
from app.core.readiness.types import (
    ComposedScores,
    PriorityBand,
    ReadinessBand,
    ScoreBoard,
    ScoreBoardSummary,
    SettlementMetrics,
    SettlementRecords,
    SettlementScore,
    WeightSet,
)
from app.core.settlements import ALL_SETTLEMENTS, get_company, get_region

logger = get_logger(__name__)


def compose(weights: WeightSet, metrics: SettlementMetrics) -> ComposedScores:
    """
    Combine sub-scores into readiness, risk and priority on a 0-100 scale.

    Args:
        weights: Weight configuration
        metrics: Normalized sub-scores for one settlement

    Returns:
        ComposedScores, each clamped to [0, 100] and rounded to 0.1
    """
    w, m = weights, metrics

    readiness = 100 * (
        w.personnel_weight * m.personnel
        + w.components_weight * m.components
        + w.training_weight * m.training
    )
    risk = 100 * (
        w.risk_threat_weight * m.threat
        + w.risk_infra_weight * m.infra
        + w.risk_response_weight * m.response
        + w.risk_incidents_weight * m.incidents
    )

    readiness = _clamp(readiness)
    risk = _clamp(risk)

    priority = 100 * (
        w.priority_risk_weight * (risk / 100)
        + w.priority_readiness_weight * ((100 - readiness) / 100)
    )

    return ComposedScores(
        readiness=round(readiness, 1),
        risk=round(risk, 1),
        priority=round(_clamp(priority), 1),
    )


def score_settlement(
    weights: WeightSet,
    records: SettlementRecords,
    settlement: str,
    reference_date: date | None = None,
) -> SettlementScore:
    """
    Collect metrics and compose the full score card for one settlement.

    Args:
        weights: Weight configuration
        records: Fetched source rows
        settlement: Settlement name
        reference_date: Point in time to measure against (default: today)

    Returns:
        SettlementScore
    """
    from app.core.readiness_cache import get_score_cache

    metrics = collect_settlement_metrics(records, settlement, reference_date)
    composed = get_score_cache().get_or_compute(weights, metrics, compose)
    return _build_score(settlement, weights, metrics, composed)


def compute_settlement_scores(
    weights: WeightSet,
    records: SettlementRecords,
    settlements: list[str] | None = None,
    reference_date: date | None = None,
) -> list[SettlementScore]:
    """
    Score many settlements and rank them by priority (highest first).

    A settlement that fails to score is logged and left out; the others are
    unaffected.
    """
    targets = list(settlements) if settlements is not None else list(ALL_SETTLEMENTS)
    scores: list[SettlementScore] = []

    for settlement in targets:
        try:
            scores.append(score_settlement(weights, records, settlement, reference_date))
        except Exception:
            logger.exception(f"Failed to score settlement {settlement}")

    return rank_scores(scores)


def rank_scores(scores: list[SettlementScore]) -> list[SettlementScore]:
    """Sort by priority descending, then by settlement name."""
    return sorted(scores, key=lambda s: (-s.priority, s.settlement))


def summarize_scores(scores: list[SettlementScore]) -> ScoreBoardSummary:
    """Aggregate board-level figures for a set of settlement scores."""
    if not scores:
        return ScoreBoardSummary()

    return ScoreBoardSummary(
        settlements=len(scores),
        active_soldiers=sum(s.active_soldiers for s in scores),
        expired_shooting=sum(s.expired_shooting for s in scores),
        open_incidents=sum(s.open_incidents for s in scores),
        armed_count=sum(s.armed_count for s in scores),
        average_readiness=round(sum(s.readiness for s in scores) / len(scores)),
        critical_settlements=sum(
            1 for s in scores if s.readiness_band == ReadinessBand.CRITICAL
        ),
        degraded_settlements=sum(1 for s in scores if s.degraded),
    )


async def compute_score_board(
    settlements: list[str] | None = None,
    reference_date: date | None = None,
) -> ScoreBoard:
    """
    Load weights, fetch records and score the given settlements.

    The weights row and the source tables are read concurrently.

    Args:
        settlements: Settlements to score (default: all)
        reference_date: Point in time to measure against (default: today)

    Returns:
        ScoreBoard with ranked scores and summary
    """
    from app.db.readiness_weights import load_weights
    from app.db.settlement_records import fetch_settlement_records

    single = settlements[0] if settlements and len(settlements) == 1 else None
    stored, records = await asyncio.gather(
        asyncio.to_thread(load_weights),
        fetch_settlement_records(settlement=single, reference_date=reference_date),
    )

    scores = compute_settlement_scores(stored.weights, records, settlements, reference_date)

    logger.info(
        f"Scored {len(scores)} settlements (weights {stored.weights.version}"
        f"{', defaults' if stored.is_default else ''})"
    )

    return ScoreBoard(
        scores=scores,
        summary=summarize_scores(scores),
        weights=stored.weights,
        weights_are_default=stored.is_default,
    )


def _build_score(
    settlement: str,
    weights: WeightSet,
    metrics: SettlementMetrics,
    composed: ComposedScores,
) -> SettlementScore:
    return SettlementScore(
        settlement=settlement,
        region=get_region(settlement),
        company=get_company(settlement),
        readiness=composed.readiness,
        risk=composed.risk,
        priority=composed.priority,
        readiness_band=ReadinessBand.from_score(composed.readiness),
        priority_band=PriorityBand.from_score(composed.priority),
        personnel_fitness=round(metrics.personnel * 100, 1),
        component_health=round(metrics.components * 100, 1),
        training_score=round(metrics.training * 100, 1),
        threat_rating=round(metrics.threat * 100, 1),
        infra_vulnerability=round(metrics.infra * 100, 1),
        response_gap=round(metrics.response * 100, 1),
        incident_pressure=round(metrics.incidents * 100, 1),
        reasons=list(metrics.reasons),
        total_soldiers=metrics.total_soldiers,
        active_soldiers=metrics.active_soldiers,
        expired_shooting=metrics.expired_shooting,
        expired_certs=metrics.expired_certs,
        armed_count=metrics.armed_count,
        open_incidents=metrics.open_incidents,
        degraded=metrics.degraded,
        degraded_sources=list(metrics.degraded_sources),
        weights_version=weights.version,
        computed_at=datetime.now(UTC),
    )


def _clamp(value: float) -> float:
    return min(max(value, 0.0), 100.0)
