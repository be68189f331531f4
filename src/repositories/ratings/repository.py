"""SQLAlchemy implementation of the ``RatingStore`` port."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from domain.ratings.common import (
    AbsentPlayer,
    GameResult,
    PlayerGame,
    PlayerRatingState,
    RatingHistoryEntry,
    RatingUpdate,
    validate_score,
)
from models import Base, GameRecord, Player, Population, RatingHistory

RATING_HISTORY_COPY_SQL = """
    COPY rating_history (
        population_id,
        player_id,
        period_id,
        old_rating,
        new_rating,
        rating_change,
        player_score,
        average_score,
        participants
    ) FROM STDIN
"""

_COPY_SUPPORT_CACHE_KEY = "_rating_history_supports_copy"


def ensure_rating_schema(engine: Engine) -> None:
    """Create rating tables and indexes if they do not exist."""
    with engine.begin() as connection:
        Base.metadata.create_all(bind=connection, checkfirst=True)


def create_population(session: Session, name: str) -> Population:
    existing = session.scalar(select(Population).where(Population.name == name))
    if existing is not None:
        return existing
    population = Population(name=name)
    session.add(population)
    session.flush()
    return population


def get_or_create_player(
    session: Session,
    population_id: int,
    external_id: str,
    *,
    initial_rating: int = 1500,
    display_name: str | None = None,
) -> Player:
    """Return the player row for ``external_id``, creating it at the default rating."""
    player = session.scalar(
        select(Player).where(
            Player.population_id == population_id,
            Player.external_id == external_id,
        )
    )
    if player is not None:
        return player

    player = Player(
        population_id=population_id,
        external_id=external_id,
        display_name=display_name,
        rating=initial_rating,
        rated_games_played=0,
    )
    session.add(player)
    session.flush()
    return player


def record_game_result(
    session: Session,
    population_id: int,
    player_id: int,
    period_id: int,
    score: int,
    *,
    played_at: datetime | None = None,
) -> GameRecord | None:
    """Store one result; returns ``None`` when the player already has one for the period."""
    validate_score(score)
    owner = session.scalar(select(Player.population_id).where(Player.id == player_id))
    if owner != population_id:
        raise ValueError(
            f"player_id={player_id} does not belong to population_id={population_id}"
        )
    existing = session.scalar(
        select(GameRecord.id).where(
            GameRecord.population_id == population_id,
            GameRecord.player_id == player_id,
            GameRecord.period_id == period_id,
        )
    )
    if existing is not None:
        return None

    record = GameRecord(
        population_id=population_id,
        player_id=player_id,
        period_id=period_id,
        score=score,
        played_at=played_at,
    )
    session.add(record)
    session.flush()
    return record


class SqlRatingStore:
    """``RatingStore`` backed by one SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def transaction(self) -> Iterator[None]:
        try:
            yield
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def fetch_participants(self, population_id: int, period_id: int) -> list[PlayerGame]:
        rows = self.session.execute(
            select(
                Player.id,
                Player.rating,
                GameRecord.score,
                Player.rated_games_played,
            )
            .join(GameRecord, GameRecord.player_id == Player.id)
            .where(
                GameRecord.population_id == population_id,
                GameRecord.period_id == period_id,
                Player.population_id == population_id,
            )
            .order_by(Player.id.asc())
        ).all()
        return [
            PlayerGame(
                player_id=int(row.id),
                rating=int(row.rating),
                score=int(row.score),
                games_played=int(row.rated_games_played),
            )
            for row in rows
        ]

    def fetch_active_absentees(
        self,
        population_id: int,
        period_id: int,
        *,
        active_since: datetime,
    ) -> list[AbsentPlayer]:
        played_this_period = select(GameRecord.player_id).where(
            GameRecord.population_id == population_id,
            GameRecord.period_id == period_id,
        )
        rows = self.session.execute(
            select(Player.id, Player.rating, Player.rated_games_played)
            .where(
                Player.population_id == population_id,
                Player.last_active_at.is_not(None),
                Player.last_active_at >= active_since,
                Player.id.not_in(played_this_period),
            )
            .order_by(Player.id.asc())
        ).all()
        return [
            AbsentPlayer(
                player_id=int(row.id),
                rating=int(row.rating),
                games_played=int(row.rated_games_played),
            )
            for row in rows
        ]

    def has_history(self, population_id: int, period_id: int) -> bool:
        found = self.session.scalar(
            select(RatingHistory.id)
            .where(
                RatingHistory.population_id == population_id,
                RatingHistory.period_id == period_id,
            )
            .limit(1)
        )
        return found is not None

    def persist_rating_updates(
        self,
        population_id: int,
        updates: Sequence[RatingUpdate],
        *,
        played_at: datetime | None = None,
    ) -> None:
        for rating_update in updates:
            values: dict[str, Any] = {"rating": rating_update.new_rating}
            if played_at is not None:
                values["rated_games_played"] = Player.rated_games_played + 1
                values["last_active_at"] = played_at
            self.session.execute(
                update(Player)
                .where(
                    Player.population_id == population_id,
                    Player.id == rating_update.player_id,
                )
                .values(**values)
            )

    def persist_history_entries(self, entries: Sequence[RatingHistoryEntry]) -> None:
        """Bulk insert ledger rows using COPY on supported Postgres drivers."""
        if not entries:
            return

        if self._supports_copy_bulk_insert():
            self._copy_history(entries)
            return

        self.session.execute(insert(RatingHistory), [_history_to_row(entry) for entry in entries])

    def reset_population_ratings(self, population_id: int, *, initial_rating: int) -> None:
        self.session.execute(
            update(Player)
            .where(Player.population_id == population_id)
            .values(rating=initial_rating, rated_games_played=0, last_active_at=None)
        )

    def clear_history(self, population_id: int) -> None:
        self.session.execute(delete(RatingHistory).where(RatingHistory.population_id == population_id))

    def list_periods_chronological(self, population_id: int) -> list[int]:
        rows = self.session.scalars(
            select(GameRecord.period_id)
            .where(GameRecord.population_id == population_id)
            .distinct()
            .order_by(GameRecord.period_id.asc())
        ).all()
        return [int(period_id) for period_id in rows]

    def list_results(
        self,
        population_id: int,
        *,
        start_period: int | None = None,
        end_period: int | None = None,
    ) -> list[GameResult]:
        statement = select(GameRecord.player_id, GameRecord.period_id, GameRecord.score).where(
            GameRecord.population_id == population_id
        )
        if start_period is not None:
            statement = statement.where(GameRecord.period_id >= start_period)
        if end_period is not None:
            statement = statement.where(GameRecord.period_id <= end_period)
        rows = self.session.execute(
            statement.order_by(GameRecord.period_id.asc(), GameRecord.player_id.asc())
        ).all()
        return [
            GameResult(
                player_id=int(row.player_id),
                period_id=int(row.period_id),
                score=int(row.score),
            )
            for row in rows
        ]

    def list_history(
        self,
        population_id: int,
        *,
        end_period: int | None = None,
    ) -> list[RatingHistoryEntry]:
        statement = select(RatingHistory).where(RatingHistory.population_id == population_id)
        if end_period is not None:
            statement = statement.where(RatingHistory.period_id <= end_period)
        rows = self.session.scalars(
            statement.order_by(RatingHistory.period_id.asc(), RatingHistory.id.asc())
        ).all()
        return [_row_to_history(row) for row in rows]

    def list_player_history(
        self,
        population_id: int,
        player_id: int,
        *,
        limit: int = 30,
    ) -> list[RatingHistoryEntry]:
        rows = self.session.scalars(
            select(RatingHistory)
            .where(
                RatingHistory.population_id == population_id,
                RatingHistory.player_id == player_id,
            )
            .order_by(RatingHistory.period_id.desc())
            .limit(limit)
        ).all()
        return [_row_to_history(row) for row in rows]

    def list_period_history(self, population_id: int, period_id: int) -> list[RatingHistoryEntry]:
        rows = self.session.scalars(
            select(RatingHistory)
            .where(
                RatingHistory.population_id == population_id,
                RatingHistory.period_id == period_id,
            )
            .order_by(RatingHistory.id.asc())
        ).all()
        return [_row_to_history(row) for row in rows]

    def fetch_player_states(self, population_id: int) -> list[PlayerRatingState]:
        rows = self.session.scalars(
            select(Player)
            .where(Player.population_id == population_id)
            .order_by(Player.id.asc())
            .execution_options(populate_existing=True)
        ).all()
        return [_player_to_state(row) for row in rows]

    def fetch_inactive_players(
        self,
        population_id: int,
        *,
        inactive_since: datetime,
    ) -> list[PlayerRatingState]:
        # players who never played keep the default rating and are not decayed
        rows = self.session.scalars(
            select(Player)
            .where(
                Player.population_id == population_id,
                Player.last_active_at.is_not(None),
                Player.last_active_at < inactive_since,
            )
            .order_by(Player.id.asc())
            .execution_options(populate_existing=True)
        ).all()
        return [_player_to_state(row) for row in rows]

    def _supports_copy_bulk_insert(self) -> bool:
        cached_value = self.session.info.get(_COPY_SUPPORT_CACHE_KEY)
        if cached_value is not None:
            return bool(cached_value)

        bind = self.session.get_bind()
        if bind is None or bind.dialect.name != "postgresql":
            self.session.info[_COPY_SUPPORT_CACHE_KEY] = False
            return False

        raw_connection = self.session.connection().connection.driver_connection
        with raw_connection.cursor() as cursor:
            supports_copy = hasattr(cursor, "copy")

        self.session.info[_COPY_SUPPORT_CACHE_KEY] = supports_copy
        return supports_copy

    def _copy_history(self, entries: Sequence[RatingHistoryEntry]) -> None:
        raw_connection = self.session.connection().connection.driver_connection
        with raw_connection.cursor() as cursor:
            with cursor.copy(RATING_HISTORY_COPY_SQL) as copy:
                for entry in entries:
                    copy.write_row(
                        (
                            entry.population_id,
                            entry.player_id,
                            entry.period_id,
                            entry.old_rating,
                            entry.new_rating,
                            entry.change,
                            entry.score,
                            entry.average_score,
                            entry.participants,
                        )
                    )


def _history_to_row(entry: RatingHistoryEntry) -> dict[str, Any]:
    return {
        "population_id": entry.population_id,
        "player_id": entry.player_id,
        "period_id": entry.period_id,
        "old_rating": entry.old_rating,
        "new_rating": entry.new_rating,
        "rating_change": entry.change,
        "player_score": entry.score,
        "average_score": entry.average_score,
        "participants": entry.participants,
    }


def _row_to_history(row: RatingHistory) -> RatingHistoryEntry:
    return RatingHistoryEntry(
        population_id=int(row.population_id),
        player_id=int(row.player_id),
        period_id=int(row.period_id),
        old_rating=int(row.old_rating),
        new_rating=int(row.new_rating),
        change=int(row.rating_change),
        score=int(row.player_score) if row.player_score is not None else None,
        average_score=float(row.average_score),
        participants=int(row.participants),
    )


def _player_to_state(row: Player) -> PlayerRatingState:
    return PlayerRatingState(
        player_id=int(row.id),
        rating=int(row.rating),
        rated_games_played=int(row.rated_games_played),
        last_active_at=row.last_active_at,
    )


__all__ = [
    "RATING_HISTORY_COPY_SQL",
    "SqlRatingStore",
    "create_population",
    "ensure_rating_schema",
    "get_or_create_player",
    "record_game_result",
]
