"""Persistence contract the rating engine depends on."""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Protocol, runtime_checkable

from domain.ratings.common import (
    AbsentPlayer,
    GameResult,
    PlayerGame,
    PlayerRatingState,
    RatingHistoryEntry,
    RatingUpdate,
)


@runtime_checkable
class RatingStore(Protocol):
    """Storage port passed explicitly into every engine entry point."""

    def transaction(self) -> AbstractContextManager[None]:
        """Commit everything written inside the block, or roll it all back."""
        ...

    def fetch_participants(self, population_id: int, period_id: int) -> list[PlayerGame]: ...

    def fetch_active_absentees(
        self,
        population_id: int,
        period_id: int,
        *,
        active_since: datetime,
    ) -> list[AbsentPlayer]: ...

    def has_history(self, population_id: int, period_id: int) -> bool: ...

    def persist_rating_updates(
        self,
        population_id: int,
        updates: Sequence[RatingUpdate],
        *,
        played_at: datetime | None = None,
    ) -> None:
        """Store new ratings; ``played_at`` also counts a rated game and marks activity."""
        ...

    def persist_history_entries(self, entries: Sequence[RatingHistoryEntry]) -> None: ...

    def reset_population_ratings(self, population_id: int, *, initial_rating: int) -> None: ...

    def clear_history(self, population_id: int) -> None: ...

    def list_periods_chronological(self, population_id: int) -> list[int]: ...

    def list_results(
        self,
        population_id: int,
        *,
        start_period: int | None = None,
        end_period: int | None = None,
    ) -> list[GameResult]: ...

    def list_history(
        self,
        population_id: int,
        *,
        end_period: int | None = None,
    ) -> list[RatingHistoryEntry]: ...

    def list_player_history(
        self,
        population_id: int,
        player_id: int,
        *,
        limit: int = 30,
    ) -> list[RatingHistoryEntry]:
        """Most recent ledger rows for one player, newest period first."""
        ...

    def list_period_history(self, population_id: int, period_id: int) -> list[RatingHistoryEntry]: ...

    def fetch_player_states(self, population_id: int) -> list[PlayerRatingState]: ...

    def fetch_inactive_players(
        self,
        population_id: int,
        *,
        inactive_since: datetime,
    ) -> list[PlayerRatingState]: ...


__all__ = ["RatingStore"]
