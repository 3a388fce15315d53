"""Security components sub-score: share of tracked components in place."""

from app.core.readiness.types import CollectorResult, SecurityComponentsRecord

TRACKED_COMPONENTS = (
    "armory",
    "armored_vehicle",
    "hailkis",
    "fence_type",
    "command_center_type",
    "defensive_security_type",
)

# Components whose absence is called out explicitly
_MISSING_REASONS = {
    "armory": "No armory",
    "fence_type": "Fence not defined",
    "command_center_type": "Command center not defined",
}


def score_components(
    components: list[SecurityComponentsRecord],
    settlement: str,
) -> CollectorResult:
    """
    Score security component operability for one settlement.

    Boolean components count when true; typed components (fence, command
    center, defensive posture) count when a type is recorded. A settlement
    with no components record scores 0.
    """
    record = next((c for c in components if c.settlement == settlement), None)
    if record is None:
        return CollectorResult(
            score=0.0,
            reasons=["Security components not entered"],
            facts={"operational": 0, "tracked": len(TRACKED_COMPONENTS)},
        )

    present = {name: bool(getattr(record, name)) for name in TRACKED_COMPONENTS}
    operational = sum(present.values())

    reasons = [
        reason for name, reason in _MISSING_REASONS.items() if not present[name]
    ]

    return CollectorResult(
        score=operational / len(TRACKED_COMPONENTS),
        reasons=reasons,
        facts={"operational": operational, "tracked": len(TRACKED_COMPONENTS)},
    )
