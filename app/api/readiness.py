"""API endpoints for readiness weight configuration."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from app.core.auth_middleware import AuthContext, require_auth
from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.readiness import (
    DEFAULT_WEIGHTS,
    AuthorizationError,
    WeightGroup,
    WeightSet,
    WeightStoreError,
    WeightValidationError,
    validate_weights,
)
from app.core.readiness.types import StoredWeights, WeightGroupIssue
from app.db.readiness_weights import load_weights, save_weights

logger = get_logger(__name__)

router = APIRouter(prefix="/readiness", tags=["readiness"])


class WeightsResponse(BaseModel):
    """Weights plus per-group sums and validation issues."""

    weights: WeightSet
    group_sums: dict[str, float] = Field(default_factory=dict)
    issues: list[WeightGroupIssue] = Field(default_factory=list)
    is_default: bool = False
    version: str
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None


def _to_response(
    stored: StoredWeights,
    issues: list[WeightGroupIssue] | None = None,
) -> WeightsResponse:
    weights = stored.weights
    if issues is None:
        issues = validate_weights(weights, tolerance=get_settings().WEIGHT_SUM_TOLERANCE)
    return WeightsResponse(
        weights=weights,
        group_sums={g.value: round(weights.group_sum(g), 4) for g in WeightGroup},
        issues=issues,
        is_default=stored.is_default,
        version=weights.version,
        updated_at=stored.updated_at,
        updated_by=stored.updated_by,
    )


def _require_full_set(weights: WeightSet) -> None:
    missing = set(WeightSet.model_fields) - weights.model_fields_set
    if missing:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"All weights must be provided; missing: {', '.join(sorted(missing))}",
        )


@router.get("/weights", response_model=WeightsResponse)
async def get_weights(
    auth: AuthContext = Depends(require_auth),  # noqa: B008
) -> WeightsResponse:
    """Get the current readiness weights (defaults if none are stored)."""
    return _to_response(load_weights())


@router.get("/weights/defaults", response_model=WeightsResponse)
async def get_default_weights(
    auth: AuthContext = Depends(require_auth),  # noqa: B008
) -> WeightsResponse:
    """Get the built-in default weights."""
    return _to_response(StoredWeights(weights=DEFAULT_WEIGHTS, is_default=True))


@router.post("/weights/validate", response_model=WeightsResponse)
async def validate_candidate_weights(
    weights: WeightSet,
    auth: AuthContext = Depends(require_auth),  # noqa: B008
) -> WeightsResponse:
    """Report group sums and issues for a candidate set without saving it."""
    _require_full_set(weights)
    return _to_response(StoredWeights(weights=weights))


@router.put("/weights", response_model=WeightsResponse)
async def put_weights(
    weights: WeightSet,
    strict: Optional[bool] = Query(
        None, description="Reject groups that do not sum to 100% (default from config)"
    ),
    auth: AuthContext = Depends(require_auth),  # noqa: B008
) -> WeightsResponse:
    """
    Replace all nine readiness weights.

    Out-of-tolerance groups are returned as issues and saved anyway unless
    strict validation is on.

    Raises:
        HTTPException 403: Caller is not a readiness administrator
        HTTPException 422: Strict validation failed or weights incomplete
        HTTPException 502: Weight store unavailable
    """
    _require_full_set(weights)

    try:
        result = save_weights(weights, auth, strict=strict)
    except AuthorizationError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    except WeightValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "message": str(e),
                "issues": [issue.model_dump(mode="json") for issue in e.issues],
            },
        ) from e
    except WeightStoreError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to save readiness weights",
        ) from e

    return _to_response(result.stored, result.issues)
