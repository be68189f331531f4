"""Elo rating modules."""

from domain.ratings.elo.calculator import (
    DEFAULT_PARAMETERS,
    EloParameters,
    calculate_expected_score,
    compute_absentee_deltas,
    compute_decay,
    compute_group_deltas,
    get_k_factor,
)
from domain.ratings.elo.config import (
    EloSystemConfig,
    load_elo_system_config,
    load_elo_system_configs,
)
from domain.ratings.elo.processor import apply_decay, compute_period, process_period

__all__ = [
    "DEFAULT_PARAMETERS",
    "EloParameters",
    "EloSystemConfig",
    "apply_decay",
    "calculate_expected_score",
    "compute_absentee_deltas",
    "compute_decay",
    "compute_group_deltas",
    "compute_period",
    "get_k_factor",
    "load_elo_system_config",
    "load_elo_system_configs",
    "process_period",
]
