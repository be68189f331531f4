"""Shared types for the daily-result rating engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

FAIL_SCORE = 7
MIN_SCORE = 1
MAX_SOLVED_SCORE = 6


def validate_score(score: int) -> int:
    """Return ``score`` unchanged when it is 1..6 or FAIL, else raise."""
    if isinstance(score, bool) or not isinstance(score, int):
        raise ValueError(f"score must be an integer, got {score!r}")
    if score < MIN_SCORE or score > FAIL_SCORE:
        raise ValueError(
            f"score={score} is out of range; expected {MIN_SCORE}..{MAX_SOLVED_SCORE} "
            f"or {FAIL_SCORE} (FAIL)"
        )
    return score


def is_fail(score: int) -> bool:
    return score == FAIL_SCORE


@dataclass(frozen=True)
class GameResult:
    """One player's result for one period."""

    player_id: int
    period_id: int
    score: int


@dataclass(frozen=True)
class PlayerGame:
    """Participant payload used by the group calculator."""

    player_id: int
    rating: int
    score: int
    games_played: int


@dataclass(frozen=True)
class AbsentPlayer:
    """Recently active player who skipped the period."""

    player_id: int
    rating: int
    games_played: int


@dataclass(frozen=True)
class PlayerRatingState:
    """Snapshot of one player's stored rating."""

    player_id: int
    rating: int
    rated_games_played: int
    last_active_at: datetime | None = None


@dataclass(frozen=True)
class RatingUpdate:
    player_id: int
    old_rating: int
    new_rating: int
    change: int

    def __post_init__(self) -> None:
        for name in ("old_rating", "new_rating", "change"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} must be an int, got {type(value).__name__}")
        if self.new_rating != self.old_rating + self.change:
            raise ValueError(
                f"player_id={self.player_id}: new_rating={self.new_rating} != "
                f"old_rating={self.old_rating} + change={self.change}"
            )


@dataclass(frozen=True)
class RatingHistoryEntry:
    """Append-only ledger row for one (player, period) rating change.

    ``score`` is ``None`` when the change is an absentee penalty.
    """

    population_id: int
    player_id: int
    period_id: int
    old_rating: int
    new_rating: int
    change: int
    score: int | None
    average_score: float
    participants: int


@dataclass(frozen=True)
class PeriodOutcome:
    """Result of one ``process_period`` call."""

    population_id: int
    period_id: int
    calculated: bool
    participants: int = 0
    absentees: int = 0


__all__ = [
    "FAIL_SCORE",
    "MAX_SOLVED_SCORE",
    "MIN_SCORE",
    "AbsentPlayer",
    "GameResult",
    "PeriodOutcome",
    "PlayerGame",
    "PlayerRatingState",
    "RatingHistoryEntry",
    "RatingUpdate",
    "is_fail",
    "validate_score",
]
