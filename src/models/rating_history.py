"""rating_history table model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class RatingHistory(Base):
    """Append-only rating ledger (one row per player per period).

    ``player_score`` is NULL for absentee penalties.
    """

    __tablename__ = "rating_history"
    __table_args__ = (
        UniqueConstraint("player_id", "period_id", name="uq_rating_history_player_period"),
        CheckConstraint(
            "new_rating = old_rating + rating_change",
            name="ck_rating_history_change",
        ),
        CheckConstraint("participants >= 1", name="ck_rating_history_participants"),
        Index("idx_rating_history_population_period", "population_id", "period_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    population_id: Mapped[int] = mapped_column(ForeignKey("populations.id"), nullable=False)
    player_id: Mapped[int] = mapped_column(ForeignKey("players.id"), nullable=False)
    period_id: Mapped[int] = mapped_column(Integer, nullable=False)
    old_rating: Mapped[int] = mapped_column(Integer, nullable=False)
    new_rating: Mapped[int] = mapped_column(Integer, nullable=False)
    rating_change: Mapped[int] = mapped_column(Integer, nullable=False)
    player_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    average_score: Mapped[float] = mapped_column(Float, nullable=False)
    participants: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
