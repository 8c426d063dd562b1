"""Backtest statistics over a snapshot of logged trades."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any, Optional

import pandas as pd

from .calendar_buckets import compute_streaks, day_buckets
from .frames import hour_keys, hour_label, month_keys, trades_frame
from .models import MIDNIGHT, BacktestFilter, BacktestResult, EquityPoint

logger = logging.getLogger(__name__)

NAN = float("nan")


def chronological_key(trade: Any) -> str:
    """Sort key combining date and time; trades without a time sort as midnight."""
    return f"{trade.date}T{trade.time or MIDNIGHT}"


def hour_key(trade: Any) -> str:
    return hour_label(trade.time)


def filter_trades(trades: Iterable[Any], selection: Optional[BacktestFilter] = None) -> list[Any]:
    if selection is None:
        return list(trades)
    return [trade for trade in trades if selection.matches(trade)]


def sort_trades(trades: Iterable[Any]) -> list[Any]:
    # sorted() is stable, so equal timestamps keep their original order.
    return sorted(trades, key=chronological_key)


def max_drawdown(equity: pd.Series) -> float:
    """Largest decline of a running balance below its peak; the peak starts at 0."""
    if equity.empty:
        return 0.0
    peak = equity.clip(lower=0).cummax()
    return float((peak - equity).max())


def _equity_points(df: pd.DataFrame, equity: pd.Series) -> list[EquityPoint]:
    return [EquityPoint(date=str(day), profit=float(balance)) for day, balance in zip(df["date"], equity)]


def equity_curve(trades: Sequence[Any]) -> tuple[list[EquityPoint], float]:
    """Cumulative balance after each trade and the largest peak-to-balance decline."""
    df = trades_frame(trades)
    equity = df["profit"].cumsum()
    return _equity_points(df, equity), max_drawdown(equity)


def _counts(df: pd.DataFrame, keys: Any) -> dict[str, int]:
    if df.empty:
        return {}
    return {str(key): int(count) for key, count in df.groupby(keys, sort=False).size().items()}


def _profit_sums(df: pd.DataFrame, keys: pd.Series) -> dict[str, float]:
    if df.empty:
        return {}
    return {str(key): float(total) for key, total in df.groupby(keys, sort=False)["profit"].sum().items()}


class BacktestEngine:
    """Filters, orders and summarizes trades; holds no state between runs."""

    def run(self, trades: Iterable[Any], selection: Optional[BacktestFilter] = None) -> BacktestResult:
        ordered = sort_trades(filter_trades(trades, selection))
        df = trades_frame(ordered)
        profits = df["profit"]
        total = int(len(df))

        wins = profits[profits > 0]
        losses = profits[profits < 0]
        total_profit = float(profits.sum())
        gross_gain = float(wins.sum())
        gross_loss = float(losses.abs().sum())

        average_win = gross_gain / len(wins) if len(wins) else 0.0
        average_loss = gross_loss / len(losses) if len(losses) else 0.0

        equity = profits.cumsum()
        drawdown = max_drawdown(equity)
        streaks = compute_streaks(ordered)

        result = BacktestResult(
            total_trades=total,
            winning_trades=int(len(wins)),
            losing_trades=int(len(losses)),
            win_rate=len(wins) / total * 100 if total else NAN,
            total_profit=total_profit,
            average_profit=total_profit / total if total else NAN,
            max_drawdown=drawdown,
            profit_factor=gross_gain / gross_loss if gross_loss > 0 else 0.0,
            average_win=average_win,
            average_loss=average_loss,
            risk_reward_ratio=average_win / average_loss if average_loss > 0 else 0.0,
            trades_by_symbol=_counts(df, "symbol"),
            trades_by_month=_counts(df, month_keys(df)),
            trades_by_hour=_profit_sums(df, hour_keys(df)),
            trades_by_day=day_buckets(df),
            cumulative_profit=_equity_points(df, equity),
            max_win_streak=streaks.max_win_streak,
            max_lose_streak=streaks.max_lose_streak,
        )
        logger.debug(
            "Backtest over %s trades (filter=%s): profit=%.2f drawdown=%.2f",
            total,
            selection.to_dict() if selection else None,
            total_profit,
            drawdown,
        )
        return result


def run_backtest(trades: Iterable[Any], selection: Optional[BacktestFilter] = None) -> BacktestResult:
    return BacktestEngine().run(trades, selection)
