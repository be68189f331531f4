"""Apply one period's rating changes through a ``RatingStore``."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from domain.ratings.common import (
    AbsentPlayer,
    PeriodOutcome,
    PlayerGame,
    RatingHistoryEntry,
    RatingUpdate,
)
from domain.ratings.elo.calculator import (
    DEFAULT_PARAMETERS,
    EloParameters,
    compute_absentee_deltas,
    compute_decay,
    compute_group_deltas,
    effective_score,
)
from domain.ratings.periods import period_start
from domain.ratings.protocol import RatingStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeriodComputation:
    """Everything one period writes, computed without touching storage."""

    participant_updates: list[RatingUpdate]
    absentee_updates: list[RatingUpdate]
    history_entries: list[RatingHistoryEntry]
    average_score: float


def period_average_score(
    participants: Sequence[PlayerGame],
    params: EloParameters = DEFAULT_PARAMETERS,
) -> float:
    if not participants:
        raise ValueError("period_average_score requires at least one participant")
    total = sum(effective_score(participant.score, params) for participant in participants)
    return total / len(participants)


def compute_period(
    *,
    population_id: int,
    period_id: int,
    participants: Sequence[PlayerGame],
    absentees: Sequence[AbsentPlayer],
    params: EloParameters = DEFAULT_PARAMETERS,
) -> PeriodComputation:
    """Compute participant and absentee updates plus their ledger rows.

    Absentee penalties are scored against the participants' ratings from
    before this period's updates.
    """
    participant_updates = compute_group_deltas(participants, params)
    average_score = period_average_score(participants, params)
    scores = {participant.player_id: participant.score for participant in participants}
    participant_count = len(participants)

    absentee_updates = compute_absentee_deltas(participants, absentees, params) if absentees else []

    history_entries = [
        RatingHistoryEntry(
            population_id=population_id,
            player_id=update.player_id,
            period_id=period_id,
            old_rating=update.old_rating,
            new_rating=update.new_rating,
            change=update.change,
            score=scores[update.player_id],
            average_score=average_score,
            participants=participant_count,
        )
        for update in participant_updates
    ]
    history_entries.extend(
        RatingHistoryEntry(
            population_id=population_id,
            player_id=update.player_id,
            period_id=period_id,
            old_rating=update.old_rating,
            new_rating=update.new_rating,
            change=update.change,
            score=None,
            average_score=average_score,
            participants=participant_count,
        )
        for update in absentee_updates
    )

    return PeriodComputation(
        participant_updates=participant_updates,
        absentee_updates=absentee_updates,
        history_entries=history_entries,
        average_score=average_score,
    )


def process_period(
    store: RatingStore,
    population_id: int,
    period_id: int,
    as_of: datetime | None = None,
    *,
    params: EloParameters = DEFAULT_PARAMETERS,
) -> PeriodOutcome:
    """Apply rating changes for one period exactly once.

    ``as_of`` is the activity timestamp recorded for participants and the
    reference point of the absentee activity window. It defaults to the
    start of the period.
    """
    effective_as_of = as_of if as_of is not None else period_start(period_id)

    with store.transaction():
        if store.has_history(population_id, period_id):
            logger.debug(
                "Ratings already calculated population_id=%s period_id=%s, skipping",
                population_id,
                period_id,
            )
            return PeriodOutcome(population_id=population_id, period_id=period_id, calculated=False)

        participants = store.fetch_participants(population_id, period_id)
        if len(participants) < params.min_participants:
            logger.debug(
                "Not enough participants population_id=%s period_id=%s participants=%s",
                population_id,
                period_id,
                len(participants),
            )
            return PeriodOutcome(
                population_id=population_id,
                period_id=period_id,
                calculated=False,
                participants=len(participants),
            )

        # absentees exclude everyone with a result this period, so the
        # lookup does not depend on the participant writes
        active_since = effective_as_of - timedelta(days=params.active_window_days)
        absentees = store.fetch_active_absentees(population_id, period_id, active_since=active_since)

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
            played_at=effective_as_of,
        )
        if computation.absentee_updates:
            store.persist_rating_updates(population_id, computation.absentee_updates)
        store.persist_history_entries(computation.history_entries)

    if computation.absentee_updates:
        logger.info(
            "Absentee penalties applied population_id=%s period_id=%s absentees=%s changes=%s",
            population_id,
            period_id,
            len(computation.absentee_updates),
            {update.player_id: update.change for update in computation.absentee_updates},
        )
    logger.info(
        "Ratings calculated population_id=%s period_id=%s participants=%s changes=%s",
        population_id,
        period_id,
        len(participants),
        {update.player_id: update.change for update in computation.participant_updates},
    )

    return PeriodOutcome(
        population_id=population_id,
        period_id=period_id,
        calculated=True,
        participants=len(participants),
        absentees=len(computation.absentee_updates),
    )


def apply_decay(
    store: RatingStore,
    population_id: int,
    as_of: datetime,
    *,
    params: EloParameters = DEFAULT_PARAMETERS,
) -> list[RatingUpdate]:
    """Decay ratings of players inactive for longer than the threshold.

    Only changed ratings are written. The caller is responsible for
    running this at most once per decay cycle.
    """
    inactive_since = as_of - timedelta(days=params.decay_threshold_days)

    with store.transaction():
        inactive = store.fetch_inactive_players(population_id, inactive_since=inactive_since)
        updates = [
            update
            for update in compute_decay(inactive, params.decay_amount, params.decay_floor)
            if update.change != 0
        ]
        if updates:
            store.persist_rating_updates(population_id, updates)

    logger.info(
        "Decay applied population_id=%s inactive=%s decayed=%s",
        population_id,
        len(inactive),
        len(updates),
    )
    return updates


__all__ = [
    "PeriodComputation",
    "apply_decay",
    "period_average_score",
    "compute_period",
    "process_period",
]
