"""Deterministic rating replay for one population."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from domain.ratings.common import AbsentPlayer, GameResult, PlayerGame
from domain.ratings.elo.calculator import DEFAULT_PARAMETERS, EloParameters
from domain.ratings.elo.processor import compute_period
from domain.ratings.periods import period_start
from domain.ratings.protocol import RatingStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplaySummary:
    """Outcome of one full population replay."""

    population_id: int
    periods_processed: int
    players_affected: frozenset[int]
    history_entries: int


@dataclass
class _RunningState:
    rating: int
    games_played: int = 0
    last_active_at: datetime | None = None


def replay_population(
    store: RatingStore,
    population_id: int,
    *,
    params: EloParameters = DEFAULT_PARAMETERS,
    echo: Callable[[str], None] | None = None,
) -> ReplaySummary:
    """Reset a population and rebuild every rating from its game history.

    Storage is read once after the reset; running ratings, game counts and
    activity timestamps are tracked in memory so each period sees exactly
    the state a live run would have produced before it. Each period uses
    its own start timestamp as ``as_of``, which makes the replay match
    sequential ``process_period`` calls made with the same timestamps.
    """
    logger.info("Starting rating replay population_id=%s", population_id)

    running: dict[int, _RunningState] = {}
    players_affected: set[int] = set()
    periods_processed = 0
    history_entries = 0

    with store.transaction():
        store.reset_population_ratings(population_id, initial_rating=params.initial_rating)
        store.clear_history(population_id)

        period_ids = store.list_periods_chronological(population_id)
        _validate_chronological(period_ids)
        results_by_period = _group_results(store.list_results(population_id))

        total_periods = len(period_ids)
        for index, period_id in enumerate(period_ids, start=1):
            results = results_by_period.get(period_id, [])
            if len(results) < params.min_participants:
                logger.debug(
                    "Replay skipping period_id=%s participants=%s",
                    period_id,
                    len(results),
                )
                continue

            as_of = period_start(period_id)
            participants = [
                _participant(result, running.get(result.player_id), params) for result in results
            ]
            participant_ids = {participant.player_id for participant in participants}
            active_since = as_of - timedelta(days=params.active_window_days)
            absentees = [
                AbsentPlayer(
                    player_id=player_id,
                    rating=state.rating,
                    games_played=state.games_played,
                )
                for player_id, state in sorted(running.items())
                if player_id not in participant_ids
                and state.last_active_at is not None
                and state.last_active_at >= active_since
            ]

            computation = compute_period(
                population_id=population_id,
                period_id=period_id,
                participants=participants,
                absentees=absentees,
                params=params,
            )

            store.persist_rating_updates(
                population_id,
                computation.participant_updates,
                played_at=as_of,
            )
            if computation.absentee_updates:
                store.persist_rating_updates(population_id, computation.absentee_updates)
            store.persist_history_entries(computation.history_entries)

            for update in computation.participant_updates:
                previous = running.get(update.player_id)
                running[update.player_id] = _RunningState(
                    rating=update.new_rating,
                    games_played=(previous.games_played if previous else 0) + 1,
                    last_active_at=as_of,
                )
                players_affected.add(update.player_id)
            for update in computation.absentee_updates:
                running[update.player_id].rating = update.new_rating

            periods_processed += 1
            history_entries += len(computation.history_entries)

            if echo is not None and index % 100 == 0:
                echo(
                    f"population_id={population_id} "
                    f"replayed_periods={index}/{total_periods}"
                )

    summary = ReplaySummary(
        population_id=population_id,
        periods_processed=periods_processed,
        players_affected=frozenset(players_affected),
        history_entries=history_entries,
    )
    logger.info(
        "Rating replay complete population_id=%s periods_processed=%s players_affected=%s",
        population_id,
        summary.periods_processed,
        len(summary.players_affected),
    )
    if echo is not None:
        echo(
            "completed "
            f"population_id={population_id} "
            f"periods_processed={summary.periods_processed} "
            f"players_affected={len(summary.players_affected)} "
            f"history_entries={summary.history_entries}"
        )
    return summary


def _participant(
    result: GameResult,
    state: _RunningState | None,
    params: EloParameters,
) -> PlayerGame:
    if state is None:
        return PlayerGame(
            player_id=result.player_id,
            rating=params.initial_rating,
            score=result.score,
            games_played=0,
        )
    return PlayerGame(
        player_id=result.player_id,
        rating=state.rating,
        score=result.score,
        games_played=state.games_played,
    )


def _validate_chronological(period_ids: Sequence[int]) -> None:
    for previous, current in zip(period_ids, period_ids[1:]):
        if current <= previous:
            raise ValueError(
                f"period ids must be strictly increasing for replay, got {previous} then {current}"
            )


def _group_results(results: Sequence[GameResult]) -> dict[int, list[GameResult]]:
    grouped: dict[int, list[GameResult]] = defaultdict(list)
    for result in results:
        grouped[result.period_id].append(result)
    for period_results in grouped.values():
        period_results.sort(key=lambda result: result.player_id)
        for previous, current in zip(period_results, period_results[1:]):
            if previous.player_id == current.player_id:
                raise ValueError(
                    f"player_id={current.player_id} has more than one result "
                    f"for period_id={current.period_id}"
                )
    return dict(grouped)


__all__ = ["ReplaySummary", "replay_population"]
