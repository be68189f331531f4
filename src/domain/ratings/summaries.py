"""Daily, weekly and monthly group digests plus rating-history lookups."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from domain.ratings.common import GameResult, RatingHistoryEntry, is_fail
from domain.ratings.leaderboard import calculate_streaks
from domain.ratings.periods import PeriodWindow
from domain.ratings.protocol import RatingStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailySummary:
    """Results of one period; ``best_score`` is ``None`` when nobody solved it."""

    period_id: int
    participants: int
    best_score: int | None
    winners: tuple[int, ...]
    scores: dict[int, int]
    group_streak: int
    rating_changes: tuple[RatingHistoryEntry, ...] = ()


@dataclass(frozen=True)
class WeeklyRanking:
    rank: int
    player_id: int
    games_played: int
    average: float | None
    current_streak: int
    max_streak: int


@dataclass(frozen=True)
class WeeklySummary:
    total_games: int
    unique_players: int
    rankings: tuple[WeeklyRanking, ...]


@dataclass(frozen=True)
class MonthlyChampion:
    player_id: int
    games_played: int
    average: float


@dataclass(frozen=True)
class MonthlySummary:
    total_games: int
    champion: MonthlyChampion | None
    best_score: int | None
    average_score: float | None


def solved_average(scores: Iterable[int]) -> float | None:
    """Mean of the solved scores only; ``None`` when every result is a FAIL."""
    solved = [score for score in scores if not is_fail(score)]
    if not solved:
        return None
    return sum(solved) / len(solved)


def calculate_group_streak(periods_with_results: Iterable[int], period_id: int) -> int:
    """Count consecutive periods with at least one result, ending at ``period_id``."""
    played = set(periods_with_results)
    streak = 0
    current = period_id
    while current in played:
        streak += 1
        current -= 1
    return streak


def summarize_day(
    period_id: int,
    results: Sequence[GameResult],
    *,
    group_streak: int = 0,
    rating_changes: Sequence[RatingHistoryEntry] = (),
) -> DailySummary:
    """Winners are every player tied at the best solved score."""
    day_results = [result for result in results if result.period_id == period_id]
    scores = {result.player_id: result.score for result in day_results}
    solved = [score for score in scores.values() if not is_fail(score)]
    best_score = min(solved) if solved else None
    winners: tuple[int, ...] = ()
    if best_score is not None:
        winners = tuple(sorted(player_id for player_id, score in scores.items() if score == best_score))

    return DailySummary(
        period_id=period_id,
        participants=len(day_results),
        best_score=best_score,
        winners=winners,
        scores=scores,
        group_streak=group_streak,
        rating_changes=tuple(rating_changes),
    )


def rank_week(results: Sequence[GameResult]) -> WeeklySummary:
    """Rank players by solved-score average, lowest first.

    Players without a solved game sort after everyone else. Ranks are
    positional (1, 2, 3, ...); equal averages keep player id order.
    """
    results_by_player: dict[int, list[GameResult]] = defaultdict(list)
    for result in results:
        results_by_player[result.player_id].append(result)

    rows: list[tuple[int, int, float | None, int, int]] = []
    for player_id, player_results in results_by_player.items():
        ordered = sorted(player_results, key=lambda result: result.period_id)
        scores = [result.score for result in ordered]
        streaks = calculate_streaks(scores)
        rows.append(
            (player_id, len(scores), solved_average(scores), streaks.current, streaks.maximum)
        )

    rows.sort(
        key=lambda row: (
            row[2] is None,
            row[2] if row[2] is not None else 0.0,
            row[0],
        )
    )
    rankings = tuple(
        WeeklyRanking(
            rank=position,
            player_id=player_id,
            games_played=games_played,
            average=average,
            current_streak=current_streak,
            max_streak=max_streak,
        )
        for position, (player_id, games_played, average, current_streak, max_streak) in enumerate(
            rows, start=1
        )
    )
    return WeeklySummary(
        total_games=len(results),
        unique_players=len(results_by_player),
        rankings=rankings,
    )


def crown_month(results: Sequence[GameResult]) -> MonthlySummary:
    """Pick the month's champion: lowest solved-score average, first by player id on ties."""
    if not results:
        return MonthlySummary(total_games=0, champion=None, best_score=None, average_score=None)

    results_by_player: dict[int, list[int]] = defaultdict(list)
    for result in results:
        results_by_player[result.player_id].append(result.score)

    champion: MonthlyChampion | None = None
    for player_id in sorted(results_by_player):
        scores = results_by_player[player_id]
        average = solved_average(scores)
        if average is None:
            continue
        if champion is None or average < champion.average:
            champion = MonthlyChampion(
                player_id=player_id,
                games_played=len(scores),
                average=average,
            )

    solved = [result.score for result in results if not is_fail(result.score)]
    return MonthlySummary(
        total_games=len(results),
        champion=champion,
        best_score=min(solved) if solved else None,
        average_score=solved_average(solved),
    )


def daily_summary(store: RatingStore, population_id: int, period_id: int) -> DailySummary:
    results = store.list_results(population_id, start_period=period_id, end_period=period_id)
    streak = calculate_group_streak(store.list_periods_chronological(population_id), period_id)
    summary = summarize_day(
        period_id,
        results,
        group_streak=streak,
        rating_changes=store.list_period_history(population_id, period_id),
    )
    logger.debug(
        "daily summary population_id=%s period_id=%s participants=%s",
        population_id,
        period_id,
        summary.participants,
    )
    return summary


def weekly_summary(store: RatingStore, population_id: int, window: PeriodWindow) -> WeeklySummary:
    return rank_week(
        store.list_results(population_id, start_period=window.start, end_period=window.end)
    )


def monthly_summary(
    store: RatingStore,
    population_id: int,
    window: PeriodWindow,
) -> MonthlySummary:
    return crown_month(
        store.list_results(population_id, start_period=window.start, end_period=window.end)
    )


def player_rating_history(
    store: RatingStore,
    population_id: int,
    player_id: int,
    *,
    limit: int = 30,
) -> list[RatingHistoryEntry]:
    """Latest ``limit`` ledger rows for one player, newest period first."""
    if limit <= 0:
        raise ValueError(f"limit must be > 0, got {limit}")
    return store.list_player_history(population_id, player_id, limit=limit)


__all__ = [
    "DailySummary",
    "MonthlyChampion",
    "MonthlySummary",
    "WeeklyRanking",
    "WeeklySummary",
    "calculate_group_streak",
    "crown_month",
    "daily_summary",
    "monthly_summary",
    "player_rating_history",
    "rank_week",
    "solved_average",
    "summarize_day",
    "weekly_summary",
]
