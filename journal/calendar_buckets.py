"""Day and month buckets of trade counts and profit, plus win/lose streaks."""

from __future__ import annotations

import calendar as _calendar
from collections.abc import Iterable
from typing import Any, Optional

import pandas as pd

from .frames import count_and_profit, day_keys, month_keys, trades_frame
from .models import DayBucket, StreakStats


def day_key(trade: Any) -> str:
    """Calendar day of a trade, taken from the stored date string as-is."""
    return str(trade.date)[:10]


def _split_year_month(year_month: str) -> tuple[int, int]:
    try:
        year_text, month_text = year_month.strip().split("-", 1)
        year, month = int(year_text), int(month_text[:2])
    except ValueError as exc:
        raise ValueError(f"year_month must be YYYY-MM: {year_month}") from exc
    if not 1 <= month <= 12:
        raise ValueError(f"year_month must be YYYY-MM: {year_month}")
    return year, month


def month_days(year_month: str) -> list[str]:
    """Every ``YYYY-MM-DD`` key of the month, in order."""
    year, month = _split_year_month(year_month)
    days_in_month = _calendar.monthrange(year, month)[1]
    return [f"{year:04d}-{month:02d}-{day:02d}" for day in range(1, days_in_month + 1)]


def month_grid(year_month: str) -> tuple[int, int]:
    """
    Layout of a Sunday-first calendar grid for the month.

    Returns the number of blank cells before the 1st and the number of days.
    """
    year, month = _split_year_month(year_month)
    first_weekday, days_in_month = _calendar.monthrange(year, month)
    # monthrange counts from Monday == 0.
    return (first_weekday + 1) % 7, days_in_month


def _buckets(grouped: pd.DataFrame) -> dict[str, DayBucket]:
    return {
        str(key): DayBucket(count=int(count), profit=float(profit))
        for key, count, profit in zip(grouped.index, grouped["count"], grouped["profit"])
    }


def day_buckets(df: pd.DataFrame, year_month: Optional[str] = None) -> dict[str, DayBucket]:
    """Day buckets of an already built trades frame; see ``aggregate_by_day``."""
    found = _buckets(count_and_profit(df, day_keys(df)))
    if year_month is None:
        return found
    return {day: found.get(day, DayBucket()) for day in month_days(year_month)}


def aggregate_by_day(trades: Iterable[Any], year_month: Optional[str] = None) -> dict[str, DayBucket]:
    """
    Bucket trades by calendar day.

    With ``year_month`` the result is scoped to that month and back-filled with
    empty buckets for days without trades, so a calendar grid can render every
    cell. Without it only days that have at least one trade are emitted.
    """
    return day_buckets(trades_frame(trades), year_month)


def aggregate_by_month(trades: Iterable[Any]) -> dict[str, DayBucket]:
    df = trades_frame(trades)
    return _buckets(count_and_profit(df, month_keys(df)))


def winning_days(buckets: dict[str, DayBucket]) -> int:
    return sum(1 for bucket in buckets.values() if bucket.profit > 0)


def losing_days(buckets: dict[str, DayBucket]) -> int:
    return sum(1 for bucket in buckets.values() if bucket.profit < 0)


def compute_streaks(trades: Iterable[Any]) -> StreakStats:
    """Longest runs of winners and losers in the given order; flat trades are skipped."""
    max_win = 0
    max_lose = 0
    current = 0
    last_win: Optional[bool] = None
    for trade in trades:
        profit = float(trade.profit)
        if profit == 0:
            continue
        is_win = profit > 0
        current = current + 1 if last_win is is_win else 1
        last_win = is_win
        if is_win:
            max_win = max(max_win, current)
        else:
            max_lose = max(max_lose, current)
    return StreakStats(max_win_streak=max_win, max_lose_streak=max_lose)
