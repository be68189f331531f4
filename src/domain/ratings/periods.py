"""Mapping between calendar dates and period ids."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum

PERIOD_EPOCH = datetime(2021, 6, 19)


def period_for(moment: datetime | date) -> int:
    """Return the period id for ``moment``; the epoch day is period 1."""
    day = moment.date() if isinstance(moment, datetime) else moment
    return (day - PERIOD_EPOCH.date()).days + 1


def period_start(period_id: int) -> datetime:
    """Return the naive UTC midnight that opens ``period_id``."""
    return PERIOD_EPOCH + timedelta(days=period_id - 1)


class LeaderboardPeriod(str, Enum):
    ALL_TIME = "all"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class PeriodWindow:
    """Inclusive range of period ids; ``None`` leaves that side open."""

    start: int | None = None
    end: int | None = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError(f"window start={self.start} is after end={self.end}")

    def contains(self, period_id: int) -> bool:
        if self.start is not None and period_id < self.start:
            return False
        if self.end is not None and period_id > self.end:
            return False
        return True


def period_window(kind: LeaderboardPeriod, as_of: datetime) -> PeriodWindow:
    """Build the window for an all-time, weekly (from Monday) or monthly leaderboard."""
    current = period_for(as_of)
    if kind is LeaderboardPeriod.WEEKLY:
        monday = as_of.date() - timedelta(days=as_of.weekday())
        return PeriodWindow(start=period_for(monday), end=current)
    if kind is LeaderboardPeriod.MONTHLY:
        return PeriodWindow(start=period_for(as_of.date().replace(day=1)), end=current)
    return PeriodWindow()


class SummaryPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


def summary_window(kind: SummaryPeriod, as_of: datetime) -> PeriodWindow:
    """Window for a digest of completed periods, ending the day before ``as_of``.

    Daily covers that day, weekly the seven days ending on it, monthly the
    span from the same day one calendar month earlier (clamped to month end).
    """
    yesterday = as_of.date() - timedelta(days=1)
    end = period_for(yesterday)
    if kind is SummaryPeriod.WEEKLY:
        return PeriodWindow(start=end - 6, end=end)
    if kind is SummaryPeriod.MONTHLY:
        year, month = yesterday.year, yesterday.month - 1
        if month == 0:
            year, month = year - 1, 12
        day = min(yesterday.day, calendar.monthrange(year, month)[1])
        return PeriodWindow(start=period_for(date(year, month, day)), end=end)
    return PeriodWindow(start=end, end=end)


__all__ = [
    "PERIOD_EPOCH",
    "LeaderboardPeriod",
    "PeriodWindow",
    "SummaryPeriod",
    "period_for",
    "period_start",
    "period_window",
    "summary_window",
]
