"""Exceptions raised by the readiness scoring system."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.core.readiness.types import WeightGroupIssue


class ReadinessError(Exception):
    """Base class for readiness scoring errors."""


class AuthorizationError(ReadinessError):
    """Caller lacks the capability required for the operation."""


class WeightValidationError(ReadinessError):
    """One or more weight groups do not sum to 1.0 (strict mode only)."""

    def __init__(self, issues: list["WeightGroupIssue"]):
        self.issues = issues
        groups = ", ".join(issue.group.value for issue in issues)
        super().__init__(f"Weight groups out of tolerance: {groups}")


class WeightStoreError(ReadinessError):
    """The weight configuration could not be persisted."""


class FetchError(ReadinessError):
    """A Record Store query failed."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"Failed to fetch {source}: {message}")
