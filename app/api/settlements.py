"""API endpoints for settlement readiness, risk and priority scores."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.auth_middleware import AuthContext, require_auth
from app.core.logging import get_logger
from app.core.readiness import (
    DEFAULT_WEIGHTS,
    ScoreBoard,
    SettlementScore,
    compute_score_board,
    summarize_scores,
)
from app.core.settlements import is_known_settlement, list_settlements

logger = get_logger(__name__)

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.get("/scores", response_model=ScoreBoard)
async def get_settlement_scores(
    region: Optional[str] = Query(None, description="Only settlements in this region"),
    company: Optional[str] = Query(None, description="Only settlements of this company"),
    auth: AuthContext = Depends(require_auth),  # noqa: B008
) -> ScoreBoard:
    """
    Get scores for all visible settlements, ranked by priority.

    Settlement coordinators only see their own settlement.
    """
    settlements = list_settlements(region=region, company=company)

    if auth.is_settlement_restricted:
        settlements = [s for s in settlements if auth.can_view_settlement(s)]

    if not settlements:
        # Nothing visible; avoid a full fetch
        return ScoreBoard(
            scores=[],
            summary=summarize_scores([]),
            weights=DEFAULT_WEIGHTS,
            weights_are_default=True,
        )

    try:
        return await compute_score_board(settlements=settlements)
    except Exception as e:
        logger.exception("Failed to compute settlement scores")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute settlement scores",
        ) from e


@router.get("/{settlement}/score", response_model=SettlementScore)
async def get_settlement_score(
    settlement: str,
    auth: AuthContext = Depends(require_auth),  # noqa: B008
) -> SettlementScore:
    """
    Get the score card for a single settlement.

    Raises:
        HTTPException 404: Unknown settlement
        HTTPException 403: Settlement not visible to the caller
    """
    if not is_known_settlement(settlement):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown settlement")

    if not auth.can_view_settlement(settlement):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Settlement not accessible",
        )

    try:
        board = await compute_score_board(settlements=[settlement])
    except Exception as e:
        logger.exception(f"Failed to compute score for {settlement}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute settlement score",
        ) from e

    if not board.scores:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute settlement score",
        )

    return board.scores[0]
