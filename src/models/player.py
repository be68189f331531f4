"""players table model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class Player(Base):
    """Current rating snapshot for one player in one population."""

    __tablename__ = "players"
    __table_args__ = (
        UniqueConstraint("population_id", "external_id", name="uq_players_population_external"),
        CheckConstraint("rating >= 0", name="ck_players_rating"),
        CheckConstraint("rated_games_played >= 0", name="ck_players_rated_games_played"),
        Index("idx_players_population_last_active", "population_id", "last_active_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    population_id: Mapped[int] = mapped_column(ForeignKey("populations.id"), nullable=False)
    external_id: Mapped[str] = mapped_column(String(64), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    rated_games_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_active_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
