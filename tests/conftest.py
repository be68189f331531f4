"""Shared fixtures: an in-memory SQLite database behind the real store."""

from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest
from sqlalchemy.orm import Session

from db import create_db_engine, create_session_factory
from repositories.ratings import (
    SqlRatingStore,
    create_population,
    ensure_rating_schema,
    get_or_create_player,
    record_game_result,
)

RecordResults = Callable[[int, dict[str, int]], dict[str, int]]


@pytest.fixture
def session() -> Iterator[Session]:
    engine = create_db_engine("sqlite://")
    ensure_rating_schema(engine)
    session_factory = create_session_factory(engine)
    with session_factory() as db_session:
        yield db_session
    engine.dispose()


@pytest.fixture
def store(session: Session) -> SqlRatingStore:
    return SqlRatingStore(session)


@pytest.fixture
def population_id(session: Session) -> int:
    population = create_population(session, "test-group")
    session.commit()
    return population.id


@pytest.fixture
def record_results(session: Session, population_id: int) -> RecordResults:
    """Store ``{external_id: score}`` for one period and return external -> player id."""

    def _record(period_id: int, scores: dict[str, int]) -> dict[str, int]:
        player_ids: dict[str, int] = {}
        for external_id, score in scores.items():
            player = get_or_create_player(session, population_id, external_id)
            record_game_result(session, population_id, player.id, period_id, score)
            player_ids[external_id] = player.id
        session.commit()
        return player_ids

    return _record
