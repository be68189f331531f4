"""Group-relative Elo logic for daily results.

Every participant in a period is compared head-to-head against every
other participant. Scores are golf-style: lower is better, and a FAIL is
mapped to an effective score worse than any solved result.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from math import floor

from domain.ratings.common import (
    AbsentPlayer,
    PlayerGame,
    PlayerRatingState,
    RatingUpdate,
    is_fail,
    validate_score,
)


@dataclass(frozen=True)
class EloParameters:
    initial_rating: int = 1500
    k_factor_provisional: int = 80
    k_factor_establishing: int = 64
    k_factor_established: int = 48
    provisional_games: int = 10
    establishing_games: int = 30
    scale_factor: float = 400.0
    expected_score_min: float = 0.1
    expected_score_max: float = 0.9
    min_participants: int = 2
    fail_effective_score: int = 9
    fail_penalty: int = 3
    winner_bonus: int = 10
    absent_rating_floor: int = 1000
    active_window_days: int = 7
    decay_threshold_days: int = 7
    decay_amount: int = 10
    decay_floor: int = 1200


DEFAULT_PARAMETERS = EloParameters()


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (-2.5 -> -2)."""
    return int(floor(value + 0.5))


def get_k_factor(games_played: int, params: EloParameters = DEFAULT_PARAMETERS) -> int:
    """Return the K-factor tier for a player with ``games_played`` rated games."""
    if games_played < 0:
        raise ValueError(f"games_played must be >= 0, got {games_played}")
    if games_played <= params.provisional_games:
        return params.k_factor_provisional
    if games_played <= params.establishing_games:
        return params.k_factor_establishing
    return params.k_factor_established


def calculate_expected_score(
    rating: float,
    opponent_rating: float,
    params: EloParameters = DEFAULT_PARAMETERS,
) -> float:
    """Compute the clamped Elo expected score for one side of a pairing."""
    raw = 1.0 / (1.0 + 10.0 ** ((opponent_rating - rating) / params.scale_factor))
    return max(params.expected_score_min, min(raw, params.expected_score_max))


def effective_score(score: int, params: EloParameters = DEFAULT_PARAMETERS) -> int:
    validate_score(score)
    return params.fail_effective_score if is_fail(score) else score


def calculate_actual_score(
    score: int,
    opponent_score: int,
    params: EloParameters = DEFAULT_PARAMETERS,
) -> float:
    """1.0 for a strictly better (lower) effective score, 0.0 for worse, 0.5 for a tie."""
    own = effective_score(score, params)
    other = effective_score(opponent_score, params)
    if own < other:
        return 1.0
    if own > other:
        return 0.0
    return 0.5


def _validate_rating(player_id: int, rating: int) -> None:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValueError(f"player_id={player_id}: rating must be an integer, got {rating!r}")
    if rating < 0:
        raise ValueError(f"player_id={player_id}: rating must be >= 0, got {rating}")


def _validate_participants(participants: Sequence[PlayerGame]) -> None:
    seen: set[int] = set()
    for participant in participants:
        if participant.player_id in seen:
            raise ValueError(f"player_id={participant.player_id} appears more than once")
        seen.add(participant.player_id)
        _validate_rating(participant.player_id, participant.rating)
        if participant.games_played < 0:
            raise ValueError(
                f"player_id={participant.player_id}: games_played must be >= 0, "
                f"got {participant.games_played}"
            )
        validate_score(participant.score)


def compute_group_deltas(
    participants: Sequence[PlayerGame],
    params: EloParameters = DEFAULT_PARAMETERS,
) -> list[RatingUpdate]:
    """Compute rating updates for everyone who played one period.

    Updates are returned in input order. The pairwise term is zero-sum up
    to rounding and the forced minimum change; the FAIL penalty and the
    winner bonus are applied on top of it.
    """
    if not participants:
        return []
    _validate_participants(participants)

    best_score = min(participant.score for participant in participants)

    if len(participants) == 1:
        solo = participants[0]
        change = params.winner_bonus
        if is_fail(solo.score):
            change -= params.fail_penalty
        return [
            RatingUpdate(
                player_id=solo.player_id,
                old_rating=solo.rating,
                new_rating=solo.rating + change,
                change=change,
            )
        ]

    updates: list[RatingUpdate] = []
    for player in participants:
        total_expected = 0.0
        total_actual = 0.0
        opponents = 0
        for opponent in participants:
            if opponent.player_id == player.player_id:
                continue
            total_expected += calculate_expected_score(player.rating, opponent.rating, params)
            total_actual += calculate_actual_score(player.score, opponent.score, params)
            opponents += 1

        avg_expected = total_expected / opponents
        avg_actual = total_actual / opponents

        k_factor = get_k_factor(player.games_played, params)
        change = round_half_up(k_factor * (avg_actual - avg_expected))

        # a clear win or loss always moves the rating
        if avg_actual > avg_expected and change < 1:
            change = 1
        if avg_actual < avg_expected and change > -1:
            change = -1

        if is_fail(player.score):
            change -= params.fail_penalty
        if player.score == best_score:
            change += params.winner_bonus

        updates.append(
            RatingUpdate(
                player_id=player.player_id,
                old_rating=player.rating,
                new_rating=player.rating + change,
                change=change,
            )
        )

    return updates


def compute_absentee_deltas(
    participants: Sequence[PlayerGame],
    absentees: Sequence[AbsentPlayer],
    params: EloParameters = DEFAULT_PARAMETERS,
) -> list[RatingUpdate]:
    """Penalize recently active players who skipped the period.

    An absentee is scored as a loss against every participant. Per-pairing
    deltas are summed rather than averaged, so the penalty grows with the
    size of the field.
    """
    if len(participants) < params.min_participants or not absentees:
        return []
    _validate_participants(participants)

    participant_ids = {participant.player_id for participant in participants}
    updates: list[RatingUpdate] = []
    for absent in absentees:
        if absent.player_id in participant_ids:
            raise ValueError(f"player_id={absent.player_id} is both a participant and absent")
        _validate_rating(absent.player_id, absent.rating)

        k_factor = get_k_factor(absent.games_played, params)
        total_change = 0.0
        for participant in participants:
            expected = calculate_expected_score(absent.rating, participant.rating, params)
            total_change += k_factor * (0.0 - expected)

        change = round_half_up(total_change)
        if change > -1:
            change = -1

        new_rating = max(params.absent_rating_floor, absent.rating + change)
        updates.append(
            RatingUpdate(
                player_id=absent.player_id,
                old_rating=absent.rating,
                new_rating=new_rating,
                change=new_rating - absent.rating,
            )
        )

    return updates


def compute_decay(
    inactive_players: Sequence[PlayerRatingState],
    decay_amount: int,
    floor_rating: int,
) -> list[RatingUpdate]:
    """Subtract ``decay_amount`` from each player, clamped at ``floor_rating``.

    Players already at or below the floor keep their rating. The function
    is stateless; callers track when a decay cycle last ran.
    """
    if decay_amount < 0:
        raise ValueError(f"decay_amount must be >= 0, got {decay_amount}")

    updates: list[RatingUpdate] = []
    for player in inactive_players:
        _validate_rating(player.player_id, player.rating)
        new_rating = max(min(player.rating, floor_rating), player.rating - decay_amount)
        updates.append(
            RatingUpdate(
                player_id=player.player_id,
                old_rating=player.rating,
                new_rating=new_rating,
                change=new_rating - player.rating,
            )
        )
    return updates


__all__ = [
    "DEFAULT_PARAMETERS",
    "EloParameters",
    "calculate_actual_score",
    "calculate_expected_score",
    "compute_absentee_deltas",
    "compute_decay",
    "compute_group_deltas",
    "effective_score",
    "get_k_factor",
    "round_half_up",
]
