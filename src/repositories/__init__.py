"""Database repository helpers."""

from repositories.ratings import (
    SqlRatingStore,
    create_population,
    ensure_rating_schema,
    get_or_create_player,
    record_game_result,
)

__all__ = [
    "SqlRatingStore",
    "create_population",
    "ensure_rating_schema",
    "get_or_create_player",
    "record_game_result",
]
