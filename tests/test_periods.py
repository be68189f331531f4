"""Tests for the period clock and leaderboard windows."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from domain.ratings.periods import (
    PERIOD_EPOCH,
    LeaderboardPeriod,
    PeriodWindow,
    SummaryPeriod,
    period_for,
    period_start,
    period_window,
    summary_window,
)


def test_epoch_day_is_period_one() -> None:
    assert period_for(date(2021, 6, 19)) == 1
    assert period_for(datetime(2021, 6, 19, 23, 59)) == 1
    assert period_for(datetime(2021, 6, 20, 0, 0)) == 2


def test_period_start_is_midnight_of_that_day() -> None:
    assert period_start(1) == PERIOD_EPOCH
    assert period_start(2) == datetime(2021, 6, 20)
    assert period_for(period_start(1000)) == 1000


def test_weekly_window_starts_on_monday() -> None:
    as_of = datetime(2024, 1, 10, 15, 30)  # Wednesday
    window = period_window(LeaderboardPeriod.WEEKLY, as_of)
    assert window.start == period_for(date(2024, 1, 8))
    assert window.end == period_for(as_of)
    assert window.end - window.start == 2


def test_monthly_window_starts_on_first_of_month() -> None:
    window = period_window(LeaderboardPeriod.MONTHLY, datetime(2024, 1, 10))
    assert window.start == period_for(date(2024, 1, 1))
    assert window.end - window.start == 9


def test_all_time_window_is_open() -> None:
    window = period_window(LeaderboardPeriod.ALL_TIME, datetime(2024, 1, 10))
    assert window == PeriodWindow()
    assert window.contains(1)
    assert window.contains(10_000)


def test_window_contains_is_inclusive() -> None:
    window = PeriodWindow(start=5, end=7)
    assert not window.contains(4)
    assert window.contains(5)
    assert window.contains(7)
    assert not window.contains(8)


def test_window_rejects_inverted_range() -> None:
    with pytest.raises(ValueError, match="after end"):
        PeriodWindow(start=8, end=3)


def test_summary_windows_end_the_day_before() -> None:
    as_of = datetime(2024, 3, 31, 10, 0)
    yesterday = period_for(date(2024, 3, 30))

    assert summary_window(SummaryPeriod.DAILY, as_of) == PeriodWindow(start=yesterday, end=yesterday)
    assert summary_window(SummaryPeriod.WEEKLY, as_of) == PeriodWindow(
        start=yesterday - 6, end=yesterday
    )
    # Feb 30 does not exist, so the month reaches back to Feb 29
    assert summary_window(SummaryPeriod.MONTHLY, as_of) == PeriodWindow(
        start=period_for(date(2024, 2, 29)), end=yesterday
    )


def test_monthly_summary_window_crosses_year_boundary() -> None:
    window = summary_window(SummaryPeriod.MONTHLY, datetime(2024, 1, 15))
    assert window == PeriodWindow(
        start=period_for(date(2023, 12, 14)),
        end=period_for(date(2024, 1, 14)),
    )
