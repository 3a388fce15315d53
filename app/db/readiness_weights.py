"""Persistence for the readiness weight configuration.

A single row in ``hagmar_readiness_weights`` holds all nine coefficients.
Reads never fail (defaults are returned instead); writes are restricted to
readiness administrators and always replace every coefficient at once.
"""

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Optional

from pydantic import ValidationError

from app.core.config import get_settings
from app.core.logging import get_logger, log_with_context
from app.core.readiness.errors import (
    AuthorizationError,
    WeightStoreError,
    WeightValidationError,
)
from app.core.readiness.types import (
    DEFAULT_WEIGHTS,
    StoredWeights,
    WeightSaveResult,
    WeightSet,
)
from app.core.readiness.weights import validate_weights
from app.core.readiness_cache import invalidate_score_cache
from app.db.supabase_client import get_supabase

if TYPE_CHECKING:
    from app.core.auth_middleware import AuthContext

logger = get_logger(__name__)

WEIGHTS_TABLE = "hagmar_readiness_weights"


def load_weights() -> StoredWeights:
    """
    Load the current weight configuration.

    Falls back to the hardcoded defaults when no row exists, the row is
    malformed, or the backend cannot be reached.

    Returns:
        StoredWeights (is_default=True when defaults were used)
    """
    try:
        row = _get_weights_row()
    except Exception as e:
        logger.warning(f"Failed to load readiness weights, using defaults: {e}")
        return StoredWeights(weights=DEFAULT_WEIGHTS, is_default=True)

    if not row:
        logger.info("No readiness weights stored, using defaults")
        return StoredWeights(weights=DEFAULT_WEIGHTS, is_default=True)

    try:
        weights = WeightSet.model_validate(row)
    except ValidationError as e:
        logger.warning(f"Stored readiness weights are malformed, using defaults: {e}")
        return StoredWeights(weights=DEFAULT_WEIGHTS, is_default=True)

    return StoredWeights(
        weights=weights,
        id=row.get("id"),
        updated_at=row.get("updated_at"),
        updated_by=row.get("updated_by"),
    )


def save_weights(
    weights: WeightSet,
    auth: Optional["AuthContext"],
    strict: bool | None = None,
) -> WeightSaveResult:
    """
    Persist a full weight set.

    Groups that do not sum to 1.0 are reported as issues. They block the save
    only in strict mode (``strict=True``, or READINESS_WEIGHTS_STRICT when
    ``strict`` is None).

    Args:
        weights: The nine coefficients to store
        auth: Caller context; must carry the readiness-admin capability
        strict: Reject out-of-tolerance groups instead of warning

    Returns:
        WeightSaveResult with the stored row and any validation issues

    Raises:
        AuthorizationError: If the caller is not a readiness administrator
        WeightValidationError: If strict and a group is out of tolerance
        WeightStoreError: If the backend write fails
    """
    if auth is None or not auth.can_manage_readiness_weights:
        logger.warning(
            "Rejected readiness weights save: caller lacks admin capability",
            extra={"extra_data": {"user_id": str(auth.user_id) if auth else None}},
        )
        raise AuthorizationError("Readiness administrator access required")

    settings = get_settings()
    issues = validate_weights(weights, tolerance=settings.WEIGHT_SUM_TOLERANCE)
    if strict is None:
        strict = settings.READINESS_WEIGHTS_STRICT

    if issues:
        if strict:
            logger.warning(f"Rejected readiness weights save: {len(issues)} invalid group(s)")
            raise WeightValidationError(issues)
        for issue in issues:
            logger.warning(f"Saving readiness weights with invalid group: {issue.message}")

    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        **weights.model_dump(),
        "updated_at": now.isoformat(),
        "updated_by": str(auth.user_id),
    }

    try:
        supabase = get_supabase()
        existing = _get_weights_row(columns="id")

        if existing:
            response = (
                supabase.table(WEIGHTS_TABLE)
                .update(payload)
                .eq("id", existing["id"])
                .execute()
            )
        else:
            response = supabase.table(WEIGHTS_TABLE).insert(payload).execute()
    except Exception as e:
        logger.error(f"Failed to save readiness weights: {e}")
        raise WeightStoreError(f"Failed to save readiness weights: {e}") from e

    row = response.data[0] if response.data else {}
    invalidate_score_cache()

    log_with_context(
        logger,
        logging.INFO,
        "Saved readiness weights",
        weights_version=weights.version,
        user_id=str(auth.user_id),
        issues=len(issues),
    )

    return WeightSaveResult(
        stored=StoredWeights(
            weights=weights,
            id=row.get("id") or (existing or {}).get("id"),
            updated_at=now,
            updated_by=str(auth.user_id),
        ),
        issues=issues,
    )


def _get_weights_row(columns: str = "*") -> dict[str, Any] | None:
    supabase = get_supabase()
    response = (
        supabase.table(WEIGHTS_TABLE)
        .select(columns)
        .limit(1)
        .maybe_single()
        .execute()
    )
    # maybe_single() yields no response at all when the table is empty
    if response is None:
        return None
    return response.data
