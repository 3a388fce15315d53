"""Risk sub-factors: threat, infrastructure, response, incidents.

Each factor is normalized to [0, 1] where higher means riskier. The factors
are combined into the risk score by the composer using the risk-group
weights.
"""

from datetime import date, timedelta

from app.core.readiness.types import (
    CollectorResult,
    IncidentRecord,
    SoldierRecord,
    ThreatRatingRecord,
    WeaponHolderRecord,
)

THREAT_SCALE_MAX = 5
INCIDENT_STEP = 0.25  # Each open incident adds 25%, capped at 100%

# Components of the response capability (must sum to 1.0)
RESPONSE_WEIGHTS = {
    "valid_shooting": 0.4,
    "armed": 0.3,
    "weekend_holders": 0.3,
}


def week_bounds(reference_date: date) -> tuple[date, date]:
    """Return (sunday, saturday) of the week containing reference_date."""
    # date.weekday(): Monday=0 ... Sunday=6
    start = reference_date - timedelta(days=(reference_date.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def score_threat(threat_ratings: list[ThreatRatingRecord], settlement: str) -> CollectorResult:
    """Mean of the four threat ratings scaled to [0, 1]; no rating scores 0."""
    record = next((t for t in threat_ratings if t.settlement == settlement), None)
    if record is None:
        return CollectorResult(score=0.0, reasons=["No threat rating recorded"])

    ratings = (
        record.village_proximity,
        record.road_proximity,
        record.topographic_vulnerability,
        record.regional_alert_level,
    )
    average = sum(ratings) / len(ratings)

    reasons = []
    if record.village_proximity >= 4:
        reasons.append(f"Village proximity at level {record.village_proximity}")

    return CollectorResult(
        score=average / THREAT_SCALE_MAX,
        reasons=reasons,
        facts={"average_rating": average},
    )


def score_infra(components_score: float) -> CollectorResult:
    """Infrastructure vulnerability is the inverse of component health."""
    return CollectorResult(score=min(max(1.0 - components_score, 0.0), 1.0))


def score_response(
    soldiers: list[SoldierRecord],
    weapon_holders: list[WeaponHolderRecord],
    settlement: str,
    shooting_rate: float,
    reference_date: date,
) -> CollectorResult:
    """
    Response gap: one minus the settlement's response capability.

    Capability combines the share of active soldiers current on the range,
    whether anyone active is armed, and whether any weekend weapon holder is
    approved for the current week. No active soldiers means no capability.
    """
    active = [s for s in soldiers if s.settlement == settlement and s.is_active]
    week_start, week_end = week_bounds(reference_date)
    holders = sum(
        1 for h in weapon_holders
        if h.settlement == settlement
        and h.is_holding_weapon
        and (h.weekend_date is None or week_start <= h.weekend_date <= week_end)
    )

    reasons = []
    if holders == 0:
        reasons.append("No approved weekend weapon holders")

    if not active:
        return CollectorResult(score=1.0, reasons=reasons, facts={"weekend_holders": holders})

    armed = any(s.weapon_serial for s in active)
    capability = (
        shooting_rate * RESPONSE_WEIGHTS["valid_shooting"]
        + (RESPONSE_WEIGHTS["armed"] if armed else 0.0)
        + (RESPONSE_WEIGHTS["weekend_holders"] if holders > 0 else 0.0)
    )

    return CollectorResult(
        score=min(max(1.0 - capability, 0.0), 1.0),
        reasons=reasons,
        facts={"weekend_holders": holders},
    )


def score_incidents(incidents: list[IncidentRecord], settlement: str) -> CollectorResult:
    """Open-incident pressure: 25% per open incident, capped at 1."""
    open_count = sum(
        1 for i in incidents if i.settlement == settlement and i.status == "open"
    )

    reasons = []
    if open_count:
        reasons.append(f"{open_count} open security incident(s)")

    return CollectorResult(
        score=min(open_count * INCIDENT_STEP, 1.0),
        reasons=reasons,
        facts={"open_incidents": open_count},
    )
