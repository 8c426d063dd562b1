"""pandas views of trade snapshots shared by the engine, calendar and reports."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pandas as pd

from .models import MIDNIGHT

TRADE_FRAME_COLUMNS: tuple[str, ...] = (
    "id",
    "date",
    "time",
    "symbol",
    "direction",
    "entry_price",
    "exit_price",
    "lot_size",
    "stop_loss",
    "pips",
    "profit",
    "possible_loss",
    "notes",
)


def trades_frame(trades: Iterable[Any]) -> pd.DataFrame:
    """One row per trade, in the given order, with a float ``profit`` column."""
    rows = []
    for trade in trades:
        rows.append(
            {
                "id": trade.id,
                "date": trade.date,
                "time": trade.time,
                "symbol": trade.symbol,
                "direction": getattr(trade.direction, "value", trade.direction),
                "entry_price": trade.entry_price,
                "exit_price": trade.exit_price,
                "lot_size": trade.lot_size,
                "stop_loss": trade.stop_loss,
                "pips": trade.pips,
                "profit": trade.profit,
                "possible_loss": trade.possible_loss,
                "notes": trade.notes,
            }
        )
    df = pd.DataFrame(rows, columns=list(TRADE_FRAME_COLUMNS))
    df["profit"] = df["profit"].astype(float)
    return df


def day_keys(df: pd.DataFrame) -> pd.Series:
    return df["date"].astype(str).str[:10]


def month_keys(df: pd.DataFrame) -> pd.Series:
    return df["date"].astype(str).str[:7]


def hour_label(time: Any) -> str:
    # Absent time lands in the 00:00 bucket together with genuine midnight trades.
    if time is None or (isinstance(time, float) and pd.isna(time)) or not str(time):
        return MIDNIGHT
    try:
        return f"{int(str(time).split(':', 1)[0]):02d}:00"
    except ValueError:
        return MIDNIGHT


def hour_keys(df: pd.DataFrame) -> pd.Series:
    return df["time"].map(hour_label)


def count_and_profit(df: pd.DataFrame, keys: pd.Series) -> pd.DataFrame:
    """``count`` and summed ``profit`` per key, keys in first-seen order."""
    if df.empty:
        return pd.DataFrame({"count": pd.Series(dtype=int), "profit": pd.Series(dtype=float)})
    return df.groupby(keys, sort=False)["profit"].agg(["count", "sum"]).rename(columns={"sum": "profit"})
