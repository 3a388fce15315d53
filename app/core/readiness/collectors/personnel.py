"""Personnel currency sub-score.

Measures how many of a settlement's active soldiers are current on the
shooting range and on their certifications.

Key question: "If we called them up tonight, are they qualified?"
"""

from datetime import date

from app.core.readiness.types import (
    CertificationRecord,
    CollectorResult,
    SoldierRecord,
)

# Factor weights within this sub-score (must sum to 1.0)
FACTOR_WEIGHTS = {
    "shooting": 0.7,
    "certifications": 0.3,
}


def score_personnel(
    soldiers: list[SoldierRecord],
    certifications: list[CertificationRecord],
    settlement: str,
    reference_date: date,
    shooting_validity_days: int = 180,
    cert_validity_days: int = 365,
) -> CollectorResult:
    """
    Score personnel currency for one settlement.

    Soldiers with no range date count as expired. A settlement with no
    active soldiers scores 0.

    Args:
        soldiers: Soldier records (any settlement; filtered here)
        certifications: Certification records (any soldier; filtered here)
        settlement: Settlement name
        reference_date: Point in time to measure against
        shooting_validity_days: Days a range session stays valid
        cert_validity_days: Days a certification refresh stays valid

    Returns:
        CollectorResult with score in [0, 1]
    """
    settlement_soldiers = [s for s in soldiers if s.settlement == settlement]
    active = [s for s in settlement_soldiers if s.is_active]
    reasons: list[str] = []

    expired_shooting = sum(
        1 for s in active
        if _is_expired(s.last_shooting_range_date, reference_date, shooting_validity_days)
    )
    armed_count = sum(1 for s in active if s.weapon_serial)

    active_ids = {s.id for s in active}
    settlement_certs = [c for c in certifications if c.soldier_id in active_ids]
    expired_certs = sum(
        1 for c in settlement_certs
        if _is_expired(c.last_refresh_date, reference_date, cert_validity_days)
    )

    facts = {
        "total_soldiers": len(settlement_soldiers),
        "active_soldiers": len(active),
        "expired_shooting": expired_shooting,
        "expired_certs": expired_certs,
        "armed_count": armed_count,
        "shooting_rate": 0.0,
    }

    if not active:
        reasons.append("No active soldiers")
        return CollectorResult(score=0.0, reasons=reasons, facts=facts)

    shooting_rate = (len(active) - expired_shooting) / len(active)
    cert_rate = (
        (len(settlement_certs) - expired_certs) / len(settlement_certs)
        if settlement_certs
        else 1.0
    )
    facts["shooting_rate"] = shooting_rate

    if expired_shooting:
        reasons.append(f"{expired_shooting} soldier(s) without a valid shooting range")
    if expired_certs:
        reasons.append(f"{expired_certs} expired certification(s)")

    score = (
        shooting_rate * FACTOR_WEIGHTS["shooting"]
        + cert_rate * FACTOR_WEIGHTS["certifications"]
    )
    return CollectorResult(score=min(max(score, 0.0), 1.0), reasons=reasons, facts=facts)


def _is_expired(last: date | None, reference_date: date, validity_days: int) -> bool:
    if last is None:
        return True
    return (reference_date - last).days > validity_days
