"""Training recency sub-score.

Counts training events and settlement drills inside a lookback window and
normalizes each count against the expected cadence. Events and drills
contribute half of the score each.
"""

from datetime import date, timedelta

from app.core.readiness.types import CollectorResult, DrillRecord, TrainingEventRecord

FACTOR_WEIGHTS = {
    "events": 0.5,
    "drills": 0.5,
}


def score_training(
    training_events: list[TrainingEventRecord],
    drills: list[DrillRecord],
    settlement: str,
    reference_date: date,
    lookback_days: int = 182,
    expected_events: int = 2,
    expected_drills: int = 1,
) -> CollectorResult:
    """
    Score training recency for one settlement.

    Args:
        training_events: Training event records
        drills: Settlement drill records
        settlement: Settlement name
        reference_date: End of the lookback window (inclusive)
        lookback_days: Window length in days
        expected_events: Events needed for full event credit
        expected_drills: Drills needed for full drill credit

    Returns:
        CollectorResult with score in [0, 1]
    """
    window_start = reference_date - timedelta(days=lookback_days)

    recent_events = sum(
        1 for e in training_events
        if e.settlement == settlement and window_start <= e.event_date <= reference_date
    )
    recent_drills = sum(
        1 for d in drills
        if d.settlement == settlement and window_start <= d.drill_date <= reference_date
    )

    event_ratio = _cadence_ratio(recent_events, expected_events)
    drill_ratio = _cadence_ratio(recent_drills, expected_drills)

    reasons: list[str] = []
    if recent_drills == 0:
        reasons.append(f"No drill in the last {lookback_days} days")
    if recent_events == 0:
        reasons.append(f"No training events in the last {lookback_days} days")

    score = event_ratio * FACTOR_WEIGHTS["events"] + drill_ratio * FACTOR_WEIGHTS["drills"]

    return CollectorResult(
        score=score,
        reasons=reasons,
        facts={"recent_events": recent_events, "recent_drills": recent_drills},
    )


def _cadence_ratio(count: int, expected: int) -> float:
    if expected <= 0:
        return 1.0
    return min(count / expected, 1.0)
