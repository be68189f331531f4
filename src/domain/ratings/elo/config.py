"""Load Elo system definitions from TOML files."""

from __future__ import annotations

import tomllib
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from domain.ratings.elo.calculator import EloParameters

_INT_FIELDS = {field.name for field in fields(EloParameters) if field.type in ("int", int)}


@dataclass(frozen=True)
class EloSystemConfig:
    """One named Elo system loaded from a TOML file."""

    name: str
    description: str | None
    file_path: Path
    parameters: EloParameters

    def as_config_json(self) -> dict[str, Any]:
        return asdict(self.parameters)


def load_elo_system_config(file_path: Path) -> EloSystemConfig:
    """Load and validate one Elo system TOML config file."""
    if not file_path.is_file():
        raise FileNotFoundError(f"Config file not found: {file_path}")
    with file_path.open("rb") as file:
        raw = tomllib.load(file)
    return _parse_elo_system_config(raw, file_path)


def load_elo_system_configs(config_dir: Path) -> list[EloSystemConfig]:
    """Load every ``*.toml`` system in ``config_dir``; names must be unique."""
    if not config_dir.is_dir():
        raise FileNotFoundError(f"Config directory not found: {config_dir}")

    systems = [load_elo_system_config(path) for path in sorted(config_dir.glob("*.toml"))]
    if not systems:
        raise ValueError(f"No .toml config files found in: {config_dir}")

    seen: dict[str, Path] = {}
    for system in systems:
        if system.name in seen:
            raise ValueError(
                f"Duplicate elo system names found in {config_dir}: "
                f"'{system.name}' in {seen[system.name].name} and {system.file_path.name}"
            )
        seen[system.name] = system.file_path
    return systems


def _parse_elo_system_config(raw: dict[str, Any], file_path: Path) -> EloSystemConfig:
    system_raw = raw.get("system", {})
    elo_raw = raw.get("elo", {})

    name = str(system_raw.get("name", "")).strip()
    if not name:
        raise ValueError(f"{file_path}: [system].name is required")

    description_value = system_raw.get("description")
    description = None if description_value is None else str(description_value)

    unknown_keys = sorted(set(elo_raw) - {field.name for field in fields(EloParameters)})
    if unknown_keys:
        raise ValueError(f"{file_path}: unknown [elo] keys: {unknown_keys}")

    defaults = EloParameters()
    values: dict[str, Any] = {}
    for field in fields(EloParameters):
        value = elo_raw.get(field.name, getattr(defaults, field.name))
        values[field.name] = _coerce_value(file_path, field.name, value)

    parameters = EloParameters(**values)
    _validate_parameters(file_path=file_path, parameters=parameters)

    return EloSystemConfig(
        name=name,
        description=description,
        file_path=file_path,
        parameters=parameters,
    )


def _coerce_value(file_path: Path, key: str, value: Any) -> int | float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{file_path}: [elo].{key} must be a number, got {value!r}")
    if key in _INT_FIELDS:
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"{file_path}: [elo].{key} must be an integer, got {value!r}")
        return int(value)
    return float(value)


def _validate_parameters(*, file_path: Path, parameters: EloParameters) -> None:
    if parameters.initial_rating <= 0:
        raise ValueError(f"{file_path}: [elo].initial_rating must be > 0")
    for key in ("k_factor_provisional", "k_factor_establishing", "k_factor_established"):
        if getattr(parameters, key) <= 0:
            raise ValueError(f"{file_path}: [elo].{key} must be > 0")
    if parameters.provisional_games < 0:
        raise ValueError(f"{file_path}: [elo].provisional_games must be >= 0")
    if parameters.establishing_games <= parameters.provisional_games:
        raise ValueError(
            f"{file_path}: [elo].establishing_games must be greater than provisional_games"
        )
    if parameters.scale_factor <= 0.0:
        raise ValueError(f"{file_path}: [elo].scale_factor must be > 0")
    if not 0.0 < parameters.expected_score_min <= 0.5:
        raise ValueError(f"{file_path}: [elo].expected_score_min must be in (0, 0.5]")
    if not 0.5 <= parameters.expected_score_max < 1.0:
        raise ValueError(f"{file_path}: [elo].expected_score_max must be in [0.5, 1)")
    if parameters.min_participants < 2:
        raise ValueError(f"{file_path}: [elo].min_participants must be >= 2")
    if parameters.fail_effective_score <= 6:
        raise ValueError(f"{file_path}: [elo].fail_effective_score must be > 6")
    for key in (
        "fail_penalty",
        "winner_bonus",
        "absent_rating_floor",
        "active_window_days",
        "decay_threshold_days",
        "decay_amount",
        "decay_floor",
    ):
        if getattr(parameters, key) < 0:
            raise ValueError(f"{file_path}: [elo].{key} must be >= 0")
