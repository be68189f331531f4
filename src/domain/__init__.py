"""Rating-system domain modules."""

from domain.ratings.common import GameResult, RatingHistoryEntry, RatingUpdate

__all__ = ["GameResult", "RatingHistoryEntry", "RatingUpdate"]
