"""Data models for trade records and backtest result bundles."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

import numpy as np

from journal_core.instruments import normalize_symbol

ALL_SYMBOLS = "all"
MIDNIGHT = "00:00"

REQUIRED_TRADE_FIELDS: tuple[str, ...] = (
    "symbol",
    "direction",
    "entry_price",
    "exit_price",
    "lot_size",
    "date",
)

OPTIONAL_TRADE_FIELDS: tuple[str, ...] = (
    "time",
    "stop_loss",
    "notes",
)

# Stored records and imported ledgers use the camelCase names of the original journal format.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "entry_price": ("entry_price", "entryPrice"),
    "exit_price": ("exit_price", "exitPrice"),
    "lot_size": ("lot_size", "lotSize", "quantity"),
    "stop_loss": ("stop_loss", "stopLoss"),
}
_CANONICAL_FIELDS: dict[str, str] = {
    alias: name for name, aliases in FIELD_ALIASES.items() for alias in aliases
}


class TradeValidationError(ValueError):
    """Raised when raw trade input cannot be turned into a typed trade."""


class UnknownTradeError(KeyError):
    """Raised when an edit or delete targets an id the store does not hold."""


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"

    @classmethod
    def from_value(cls, value: Any) -> "Direction":
        if isinstance(value, Direction):
            return value
        side = str(value or "").strip().lower()
        if side in {"long", "buy"}:
            return cls.LONG
        if side in {"short", "sell"}:
            return cls.SHORT
        raise TradeValidationError(f"Unsupported direction value: {value}")


def finite_float(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or None when it is missing or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not np.isfinite(number):
        return None
    return number


def _lookup(row: dict[str, Any], name: str) -> Any:
    for key in FIELD_ALIASES.get(name, (name,)):
        if key in row:
            return row[key]
    return None


def _optional_text(row: dict[str, Any], name: str) -> Optional[str]:
    value = _lookup(row, name)
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    text = str(value).strip()
    return text or None


def _require_text(row: dict[str, Any], name: str) -> str:
    value = _optional_text(row, name)
    if value is None:
        raise TradeValidationError(f"{name} is required")
    return value


def _parse_positive(row: dict[str, Any], name: str, *, required: bool = True) -> Optional[float]:
    raw = _optional_text(row, name)
    if raw is None:
        if required:
            raise TradeValidationError(f"{name} is required")
        return None
    number = finite_float(raw)
    if number is None:
        raise TradeValidationError(f"{name} contains invalid numbers")
    if number <= 0:
        raise TradeValidationError(f"{name} must be positive")
    return number


def parse_trade_date(value: str) -> str:
    """Normalize a bare ``YYYY-MM-DD`` date, or the date part of an ISO ``YYYY-MM-DDT...`` timestamp."""
    day = str(value).strip().partition("T")[0]
    try:
        return datetime.strptime(day, "%Y-%m-%d").strftime("%Y-%m-%d")
    except ValueError as exc:
        raise TradeValidationError(f"date must be YYYY-MM-DD: {value}") from exc


def parse_trade_time(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        return datetime.strptime(value.strip()[:5], "%H:%M").strftime("%H:%M")
    except ValueError as exc:
        raise TradeValidationError(f"time must be HH:MM: {value}") from exc


@dataclass(frozen=True)
class TradeDraft:
    """Validated trade fields before the profit is derived."""

    symbol: str
    direction: Direction
    entry_price: float
    exit_price: float
    lot_size: float
    date: str
    time: Optional[str] = None
    stop_loss: Optional[float] = None
    notes: str = ""

    @classmethod
    def from_raw(cls, row: dict[str, Any]) -> "TradeDraft":
        """Parse and validate free-form input (CLI arguments, CSV cells, stored JSON)."""
        if not isinstance(row, dict):
            raise TradeValidationError("Trade input must be a mapping")
        try:
            symbol = normalize_symbol(_require_text(row, "symbol"))
        except ValueError as exc:
            raise TradeValidationError(str(exc)) from exc
        return cls(
            symbol=symbol,
            direction=Direction.from_value(_require_text(row, "direction")),
            entry_price=_parse_positive(row, "entry_price"),
            exit_price=_parse_positive(row, "exit_price"),
            lot_size=_parse_positive(row, "lot_size"),
            date=parse_trade_date(_require_text(row, "date")),
            time=parse_trade_time(_optional_text(row, "time")),
            stop_loss=_parse_positive(row, "stop_loss", required=False),
            notes=_optional_text(row, "notes") or "",
        )

    def updated(self, changes: dict[str, Any]) -> "TradeDraft":
        """Return a re-validated draft with ``changes`` applied over the current fields."""
        if "profit" in changes or "pips" in changes:
            raise TradeValidationError("profit is derived from prices and lot size and cannot be edited")
        row = self.to_record()
        for key, value in changes.items():
            row[_CANONICAL_FIELDS.get(key, key)] = value
        return TradeDraft.from_raw(row)

    def to_record(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "direction": self.direction.value,
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "lot_size": self.lot_size,
            "date": self.date,
            "time": self.time,
            "stop_loss": self.stop_loss,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class Trade:
    """A priced trade. ``pips``, ``profit`` and ``possible_loss`` are derived, never edited."""

    id: int
    symbol: str
    direction: Direction
    entry_price: float
    exit_price: float
    lot_size: float
    date: str
    time: Optional[str]
    stop_loss: Optional[float]
    notes: str
    pips: float
    profit: float
    possible_loss: float = 0.0

    @property
    def draft(self) -> TradeDraft:
        return TradeDraft(
            symbol=self.symbol,
            direction=self.direction,
            entry_price=self.entry_price,
            exit_price=self.exit_price,
            lot_size=self.lot_size,
            date=self.date,
            time=self.time,
            stop_loss=self.stop_loss,
            notes=self.notes,
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "direction": self.direction.value,
            "entryPrice": self.entry_price,
            "exitPrice": self.exit_price,
            "lotSize": self.lot_size,
            "date": self.date,
            "time": self.time,
            "stopLoss": self.stop_loss,
            "notes": self.notes,
            "pips": self.pips,
            "profit": self.profit,
            "possibleLoss": self.possible_loss,
        }


@dataclass(frozen=True)
class BacktestFilter:
    """Date range and symbol selection applied before any statistic is computed."""

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    symbol: Optional[str] = None

    def matches(self, trade: Any) -> bool:
        if self.start_date and trade.date < self.start_date:
            return False
        if self.end_date and trade.date > self.end_date:
            return False
        if self.symbol and self.symbol != ALL_SYMBOLS and trade.symbol != self.symbol:
            return False
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"start_date": self.start_date, "end_date": self.end_date, "symbol": self.symbol or ALL_SYMBOLS}


@dataclass
class DayBucket:
    count: int = 0
    profit: float = 0.0

    def add(self, profit: float) -> None:
        self.count += 1
        self.profit += profit

    def to_dict(self) -> dict[str, Any]:
        return {"count": self.count, "profit": self.profit}


@dataclass(frozen=True)
class EquityPoint:
    date: str
    profit: float

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "profit": self.profit}


@dataclass(frozen=True)
class StreakStats:
    max_win_streak: int = 0
    max_lose_streak: int = 0


@dataclass
class BacktestResult:
    """Statistics bundle for one filtered trade set; recomputed on every run."""

    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    total_profit: float
    average_profit: float
    max_drawdown: float
    profit_factor: float
    average_win: float
    average_loss: float
    risk_reward_ratio: float
    trades_by_symbol: dict[str, int] = field(default_factory=dict)
    trades_by_month: dict[str, int] = field(default_factory=dict)
    trades_by_hour: dict[str, float] = field(default_factory=dict)
    trades_by_day: dict[str, DayBucket] = field(default_factory=dict)
    cumulative_profit: list[EquityPoint] = field(default_factory=list)
    max_win_streak: int = 0
    max_lose_streak: int = 0

    @property
    def is_empty(self) -> bool:
        """Rate-like fields are undefined when no trade passed the filter."""
        return self.total_trades == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalTrades": self.total_trades,
            "winningTrades": self.winning_trades,
            "losingTrades": self.losing_trades,
            "winRate": self.win_rate,
            "totalProfit": self.total_profit,
            "averageProfit": self.average_profit,
            "maxDrawdown": self.max_drawdown,
            "profitFactor": self.profit_factor,
            "averageWin": self.average_win,
            "averageLoss": self.average_loss,
            "riskRewardRatio": self.risk_reward_ratio,
            "tradesBySymbol": dict(self.trades_by_symbol),
            "tradesByMonth": dict(self.trades_by_month),
            "tradesByHour": dict(self.trades_by_hour),
            "tradesByDay": {day: bucket.to_dict() for day, bucket in self.trades_by_day.items()},
            "cumulativeProfit": [point.to_dict() for point in self.cumulative_profit],
            "maxWinStreak": self.max_win_streak,
            "maxLoseStreak": self.max_lose_streak,
        }
