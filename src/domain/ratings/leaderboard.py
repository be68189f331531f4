"""Per-player summaries and rating leaderboards."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from domain.ratings.common import FAIL_SCORE, MIN_SCORE, GameResult, is_fail
from domain.ratings.elo.calculator import DEFAULT_PARAMETERS, EloParameters, effective_score
from domain.ratings.periods import PeriodWindow
from domain.ratings.protocol import RatingStore


@dataclass(frozen=True)
class Streaks:
    current: int
    maximum: int


@dataclass(frozen=True)
class PlayerSummary:
    """Aggregate statistics over one player's results."""

    player_id: int
    total_games: int
    wins: int
    win_rate: float
    average: float
    best: int
    worst: int
    current_streak: int
    max_streak: int
    distribution: dict[int, int]


@dataclass(frozen=True)
class RankingInput:
    player_id: int
    rating: int
    average: float


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    player_id: int
    rating: int
    games_played: int
    average: float
    wins: int
    win_rate: float
    current_streak: int
    max_streak: int


def calculate_streaks(scores: Iterable[int]) -> Streaks:
    """Count consecutive non-FAIL results; ``scores`` must be in period order."""
    streak = 0
    max_streak = 0
    for score in scores:
        if is_fail(score):
            streak = 0
        else:
            streak += 1
            max_streak = max(max_streak, streak)
    return Streaks(current=streak, maximum=max_streak)


def average_effective_score(
    scores: Sequence[int],
    params: EloParameters = DEFAULT_PARAMETERS,
) -> float:
    if not scores:
        raise ValueError("cannot average an empty score list")
    return sum(effective_score(score, params) for score in scores) / len(scores)


def average_with_misses(
    scores_by_period: Mapping[int, int],
    latest_period: int,
    params: EloParameters = DEFAULT_PARAMETERS,
) -> float:
    """Average from the first played period through ``latest_period``.

    Every period in that span without a result counts as a FAIL.
    """
    if not scores_by_period:
        raise ValueError("cannot average an empty score list")
    first_period = min(scores_by_period)
    last_period = max(latest_period, max(scores_by_period))
    span = last_period - first_period + 1
    played_total = sum(effective_score(score, params) for score in scores_by_period.values())
    missed = span - len(scores_by_period)
    return (played_total + missed * params.fail_effective_score) / span


def summarize_player(
    player_id: int,
    results: Sequence[GameResult],
    params: EloParameters = DEFAULT_PARAMETERS,
) -> PlayerSummary:
    """Build a ``PlayerSummary`` from one player's results."""
    if not results:
        raise ValueError(f"player_id={player_id} has no results to summarize")

    ordered = sorted(results, key=lambda result: result.period_id)
    scores = [result.score for result in ordered]
    wins = sum(1 for score in scores if not is_fail(score))
    streaks = calculate_streaks(scores)

    distribution = {score: 0 for score in range(MIN_SCORE, FAIL_SCORE + 1)}
    for score in scores:
        distribution[score] += 1

    return PlayerSummary(
        player_id=player_id,
        total_games=len(scores),
        wins=wins,
        win_rate=wins / len(scores) * 100.0,
        average=average_effective_score(scores, params),
        best=min(scores),
        worst=max(scores),
        current_streak=streaks.current,
        max_streak=streaks.maximum,
        distribution=distribution,
    )


def rank_entries(entries: Sequence[RankingInput]) -> list[tuple[int, RankingInput]]:
    """Order by rating (desc) then average (asc) and assign competition ranks.

    Players with the same rating share a rank; the next distinct rating
    takes its 1-based position in the ordering.
    """
    ordered = sorted(entries, key=lambda entry: (-entry.rating, entry.average, entry.player_id))

    ranked: list[tuple[int, RankingInput]] = []
    current_rank = 1
    previous_rating: int | None = None
    for position, entry in enumerate(ordered, start=1):
        if previous_rating is not None and entry.rating != previous_rating:
            current_rank = position
        ranked.append((current_rank, entry))
        previous_rating = entry.rating
    return ranked


def rank_population(
    store: RatingStore,
    population_id: int,
    period_filter: PeriodWindow | None = None,
    *,
    params: EloParameters = DEFAULT_PARAMETERS,
    count_misses: bool = False,
) -> list[LeaderboardEntry]:
    """Build the leaderboard for players with at least one result in the window.

    When the window is open-ended or reaches the population's latest
    period, the current stored rating is used (decay included); otherwise
    the rating after the player's last ledger entry at or before the window
    end. ``count_misses`` switches the tie-break average to the
    participation-sensitive variant.
    """
    window = period_filter or PeriodWindow()
    results = store.list_results(
        population_id,
        start_period=window.start,
        end_period=window.end,
    )
    if not results:
        return []

    results_by_player: dict[int, list[GameResult]] = defaultdict(list)
    for result in results:
        results_by_player[result.player_id].append(result)
    latest_period = max(result.period_id for result in results)

    ratings = _ratings_as_of(store, population_id, window.end)

    summaries: dict[int, PlayerSummary] = {}
    inputs: list[RankingInput] = []
    for player_id, player_results in results_by_player.items():
        summary = summarize_player(player_id, player_results, params)
        summaries[player_id] = summary
        if count_misses:
            average = average_with_misses(
                {result.period_id: result.score for result in player_results},
                latest_period,
                params,
            )
        else:
            average = summary.average
        inputs.append(
            RankingInput(
                player_id=player_id,
                rating=ratings.get(player_id, params.initial_rating),
                average=average,
            )
        )

    return [
        LeaderboardEntry(
            rank=rank,
            player_id=entry.player_id,
            rating=entry.rating,
            games_played=summaries[entry.player_id].total_games,
            average=entry.average,
            wins=summaries[entry.player_id].wins,
            win_rate=summaries[entry.player_id].win_rate,
            current_streak=summaries[entry.player_id].current_streak,
            max_streak=summaries[entry.player_id].max_streak,
        )
        for rank, entry in rank_entries(inputs)
    ]


def _ratings_as_of(
    store: RatingStore,
    population_id: int,
    end_period: int | None,
) -> dict[int, int]:
    # decay only touches stored ratings, so a window reaching the newest period reads them
    periods = store.list_periods_chronological(population_id)
    if end_period is None or not periods or end_period >= periods[-1]:
        return {state.player_id: state.rating for state in store.fetch_player_states(population_id)}

    ratings: dict[int, int] = {}
    for entry in store.list_history(population_id, end_period=end_period):
        # ledger is ordered by period, so the last write wins
        ratings[entry.player_id] = entry.new_rating
    return ratings


__all__ = [
    "LeaderboardEntry",
    "PlayerSummary",
    "RankingInput",
    "Streaks",
    "average_effective_score",
    "average_with_misses",
    "calculate_streaks",
    "rank_entries",
    "rank_population",
    "summarize_player",
]
