"""Tests for deterministic population replay."""

from __future__ import annotations

import pytest
from sqlalchemy import update

from domain.pipeline import replay_population
from domain.ratings.common import FAIL_SCORE
from domain.ratings.elo.processor import process_period
from models import Player
from repositories.ratings import SqlRatingStore

SCENARIO: dict[int, dict[str, int]] = {
    1: {"alice": 3, "bob": 6, "carol": 4},
    2: {"alice": 4, "bob": 5},
    3: {"dave": 2},
    5: {"alice": 5, "carol": 3, "dave": 4, "bob": FAIL_SCORE},
    15: {"bob": 2, "carol": 2},
    16: {"alice": 3, "bob": 4},
}


def _snapshot(store: SqlRatingStore, population_id: int) -> tuple[set, set]:
    states = {
        (state.player_id, state.rating, state.rated_games_played, state.last_active_at)
        for state in store.fetch_player_states(population_id)
    }
    history = {
        (
            entry.player_id,
            entry.period_id,
            entry.old_rating,
            entry.new_rating,
            entry.change,
            entry.score,
            entry.average_score,
            entry.participants,
        )
        for entry in store.list_history(population_id)
    }
    return states, history


def _run_live(store: SqlRatingStore, population_id: int, record_results) -> None:
    for period_id, scores in SCENARIO.items():
        record_results(period_id, scores)
        process_period(store, population_id, period_id)


def test_replay_matches_sequential_processing(store, population_id, record_results) -> None:
    _run_live(store, population_id, record_results)
    live_states, live_history = _snapshot(store, population_id)

    summary = replay_population(store, population_id)

    assert _snapshot(store, population_id) == (live_states, live_history)
    assert summary.periods_processed == 5
    assert summary.history_entries == len(live_history)
    assert len(summary.players_affected) == 4


def test_replay_includes_absentee_penalties(store, population_id, record_results) -> None:
    _run_live(store, population_id, record_results)
    replay_population(store, population_id)

    absent_rows = [entry for entry in store.list_history(population_id) if entry.score is None]
    assert {(entry.period_id, entry.change < 0) for entry in absent_rows} == {(2, True), (16, True)}


def test_replay_repairs_tampered_ratings(session, store, population_id, record_results) -> None:
    _run_live(store, population_id, record_results)
    expected = _snapshot(store, population_id)

    session.execute(
        update(Player).where(Player.population_id == population_id).values(rating=9999)
    )
    session.commit()

    replay_population(store, population_id)
    assert _snapshot(store, population_id) == expected


def test_replay_is_repeatable(store, population_id, record_results) -> None:
    for period_id, scores in SCENARIO.items():
        record_results(period_id, scores)

    replay_population(store, population_id)
    first = _snapshot(store, population_id)
    replay_population(store, population_id)

    assert _snapshot(store, population_id) == first


def test_replay_reports_progress(store, population_id, record_results) -> None:
    record_results(1, {"alice": 3, "bob": 6})
    messages: list[str] = []

    replay_population(store, population_id, echo=messages.append)

    assert messages[-1].startswith("completed population_id=")
    assert "periods_processed=1" in messages[-1]


class _UnorderedStore(SqlRatingStore):
    def list_periods_chronological(self, population_id: int) -> list[int]:
        return list(reversed(super().list_periods_chronological(population_id)))


def test_replay_rejects_out_of_order_periods(session, store, population_id, record_results) -> None:
    _run_live(store, population_id, record_results)
    before = _snapshot(store, population_id)

    with pytest.raises(ValueError, match="strictly increasing"):
        replay_population(_UnorderedStore(session), population_id)

    assert _snapshot(store, population_id) == before
