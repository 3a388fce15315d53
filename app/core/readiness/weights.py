"""Weight group validation.

Every group of coefficients is expected to sum to 1.0. The composer applies
weights as-is, so a group that sums to 0.9 scales its composite down by 10%.
Validation reports such groups so the operator can fix them before saving.
"""

from app.core.readiness.types import WeightGroup, WeightGroupIssue, WeightSet

DEFAULT_TOLERANCE = 0.01


def validate_weights(
    weights: WeightSet,
    tolerance: float = DEFAULT_TOLERANCE,
) -> list[WeightGroupIssue]:
    """
    Check that each weight group sums to 1.0 within tolerance.

    Args:
        weights: Candidate weight set
        tolerance: Allowed absolute deviation from 1.0

    Returns:
        One issue per out-of-tolerance group (empty when valid)
    """
    issues: list[WeightGroupIssue] = []

    for group in WeightGroup:
        total = weights.group_sum(group)
        # Round away float noise (0.1 + 0.2 + ...) before comparing
        if round(abs(total - 1.0), 9) > tolerance:
            issues.append(WeightGroupIssue(
                group=group,
                total=round(total, 4),
                message=f"{group.value} weights sum to {total * 100:.0f}%, expected 100%",
            ))

    return issues
