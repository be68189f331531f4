"""Rating-system domain modules."""

from domain.ratings.common import (
    FAIL_SCORE,
    AbsentPlayer,
    GameResult,
    PeriodOutcome,
    PlayerGame,
    PlayerRatingState,
    RatingHistoryEntry,
    RatingUpdate,
)
from domain.ratings.protocol import RatingStore

__all__ = [
    "FAIL_SCORE",
    "AbsentPlayer",
    "GameResult",
    "PeriodOutcome",
    "PlayerGame",
    "PlayerRatingState",
    "RatingHistoryEntry",
    "RatingStore",
    "RatingUpdate",
]
