"""Settlement readiness scoring system.

Aggregates settlement records into three 0-100 scores:
- Readiness: personnel currency, security components, training recency
- Risk: threat rating, infrastructure vulnerability, response gap, open incidents
- Priority: weighted risk plus inverted readiness ("needs attention")

Usage:
    from app.core.readiness import compose, compute_score_board

    board = await compute_score_board()
    for score in board.scores:
        print(f"{score.settlement}: priority {score.priority}")
"""

from app.core.readiness.errors import (
    AuthorizationError,
    FetchError,
    ReadinessError,
    WeightStoreError,
    WeightValidationError,
)
from app.core.readiness.score import (
    compose,
    compute_score_board,
    compute_settlement_scores,
    rank_scores,
    score_settlement,
    summarize_scores,
)
from app.core.readiness.types import (
    DEFAULT_WEIGHTS,
    ComposedScores,
    ScoreBoard,
    SettlementMetrics,
    SettlementScore,
    WeightGroup,
    WeightSet,
)
from app.core.readiness.weights import validate_weights

__all__ = [
    "compose",
    "compute_score_board",
    "compute_settlement_scores",
    "rank_scores",
    "score_settlement",
    "summarize_scores",
    "validate_weights",
    "ComposedScores",
    "ScoreBoard",
    "SettlementMetrics",
    "SettlementScore",
    "WeightGroup",
    "WeightSet",
    "DEFAULT_WEIGHTS",
    "AuthorizationError",
    "FetchError",
    "ReadinessError",
    "WeightStoreError",
    "WeightValidationError",
]
