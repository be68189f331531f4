"""ORM models."""

from models.base import Base
from models.game_record import GameRecord
from models.player import Player
from models.population import Population
from models.rating_history import RatingHistory

__all__ = [
    "Base",
    "GameRecord",
    "Player",
    "Population",
    "RatingHistory",
]
