"""Tests for daily, weekly and monthly digests and rating-history lookups."""

from __future__ import annotations

import pytest

from domain.ratings.common import FAIL_SCORE, GameResult
from domain.ratings.elo.processor import process_period
from domain.ratings.periods import PeriodWindow
from domain.ratings.summaries import (
    calculate_group_streak,
    crown_month,
    daily_summary,
    monthly_summary,
    player_rating_history,
    rank_week,
    solved_average,
    summarize_day,
    weekly_summary,
)


def _results(rows: list[tuple[int, int, int]]) -> list[GameResult]:
    return [GameResult(player_id=player, period_id=period, score=score) for player, period, score in rows]


WEEK = _results(
    [
        (1, 1, 3),
        (1, 2, 5),
        (2, 1, 2),
        (2, 2, FAIL_SCORE),
        (3, 1, FAIL_SCORE),
    ]
)


def test_solved_average_ignores_fails() -> None:
    assert solved_average([3, FAIL_SCORE, 5]) == pytest.approx(4.0)
    assert solved_average([FAIL_SCORE]) is None
    assert solved_average([]) is None


def test_daily_winners_are_everyone_tied_at_best_score() -> None:
    summary = summarize_day(
        1,
        _results([(1, 1, 3), (2, 1, 3), (3, 1, 5), (4, 1, FAIL_SCORE), (5, 2, 1)]),
        group_streak=4,
    )

    assert summary.participants == 4
    assert summary.best_score == 3
    assert summary.winners == (1, 2)
    assert summary.scores == {1: 3, 2: 3, 3: 5, 4: FAIL_SCORE}
    assert summary.group_streak == 4


def test_daily_summary_without_a_solve_has_no_winner() -> None:
    summary = summarize_day(1, _results([(1, 1, FAIL_SCORE), (2, 1, FAIL_SCORE)]))
    assert summary.best_score is None
    assert summary.winners == ()
    assert summary.participants == 2


def test_group_streak_counts_back_from_the_period() -> None:
    periods = [1, 2, 3, 5]
    assert calculate_group_streak(periods, 3) == 3
    assert calculate_group_streak(periods, 5) == 1
    assert calculate_group_streak(periods, 4) == 0


def test_weekly_rankings_sort_by_solved_average() -> None:
    summary = rank_week(WEEK)

    assert summary.total_games == 5
    assert summary.unique_players == 3
    assert [(row.rank, row.player_id) for row in summary.rankings] == [(1, 2), (2, 1), (3, 3)]

    bob, alice, carol = summary.rankings
    assert bob.average == pytest.approx(2.0)
    assert (bob.current_streak, bob.max_streak) == (0, 1)
    assert alice.average == pytest.approx(4.0)
    assert (alice.games_played, alice.current_streak, alice.max_streak) == (2, 2, 2)
    # never solved, ranked last
    assert carol.average is None


def test_monthly_champion_and_best_score() -> None:
    summary = crown_month(WEEK)

    assert summary.total_games == 5
    assert summary.champion is not None
    assert summary.champion.player_id == 2
    assert summary.champion.games_played == 2
    assert summary.champion.average == pytest.approx(2.0)
    assert summary.best_score == 2
    assert summary.average_score == pytest.approx(10 / 3)


def test_monthly_summary_of_only_fails_has_no_champion() -> None:
    summary = crown_month(_results([(1, 1, FAIL_SCORE), (2, 1, FAIL_SCORE)]))
    assert summary.champion is None
    assert summary.best_score is None
    assert summary.average_score is None
    assert crown_month([]).total_games == 0


def test_daily_summary_reads_results_streak_and_rating_changes(
    store, population_id, record_results
) -> None:
    ids = record_results(1, {"alice": 3, "bob": 6})
    record_results(2, {"alice": 4, "bob": 4})
    process_period(store, population_id, 1)
    process_period(store, population_id, 2)

    summary = daily_summary(store, population_id, 2)

    assert summary.participants == 2
    assert summary.winners == tuple(sorted(ids.values()))
    assert summary.group_streak == 2
    assert {entry.player_id for entry in summary.rating_changes} == set(ids.values())
    assert all(entry.period_id == 2 for entry in summary.rating_changes)


def test_weekly_and_monthly_summaries_respect_the_window(
    store, population_id, record_results
) -> None:
    ids = record_results(1, {"alice": 1, "bob": 6})
    record_results(5, {"alice": 5, "bob": 2})

    week = weekly_summary(store, population_id, PeriodWindow(start=2, end=8))
    assert [row.player_id for row in week.rankings] == [ids["bob"], ids["alice"]]
    assert week.total_games == 2

    month = monthly_summary(store, population_id, PeriodWindow(start=1, end=8))
    assert month.champion is not None
    assert month.champion.player_id == ids["alice"]
    assert month.best_score == 1


def test_player_rating_history_is_newest_first(store, population_id, record_results) -> None:
    ids = record_results(1, {"alice": 3, "bob": 6})
    record_results(2, {"alice": 4, "bob": 4})
    record_results(3, {"alice": 2, "bob": 5})
    for period_id in (1, 2, 3):
        process_period(store, population_id, period_id)

    history = player_rating_history(store, population_id, ids["alice"], limit=2)

    assert [entry.period_id for entry in history] == [3, 2]
    assert history[1].new_rating == history[0].old_rating

    with pytest.raises(ValueError, match="limit must be > 0"):
        player_rating_history(store, population_id, ids["alice"], limit=0)
