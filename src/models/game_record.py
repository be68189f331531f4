"""game_records table model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class GameRecord(Base):
    """One player's result for one period (7 encodes a FAIL)."""

    __tablename__ = "game_records"
    __table_args__ = (
        UniqueConstraint(
            "population_id",
            "player_id",
            "period_id",
            name="uq_game_records_population_player_period",
        ),
        CheckConstraint("score >= 1 AND score <= 7", name="ck_game_records_score"),
        Index("idx_game_records_population_period", "population_id", "period_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    population_id: Mapped[int] = mapped_column(ForeignKey("populations.id"), nullable=False)
    player_id: Mapped[int] = mapped_column(ForeignKey("players.id"), nullable=False)
    period_id: Mapped[int] = mapped_column(Integer, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    played_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
