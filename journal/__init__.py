"""Trade journal: profit derivation, backtest statistics, calendar buckets and reports."""

from .calendar_buckets import (
    aggregate_by_day,
    aggregate_by_month,
    compute_streaks,
    losing_days,
    month_days,
    month_grid,
    winning_days,
)
from .engine import BacktestEngine, run_backtest
from .export import CalendarRecord, parse_calendar_export, render_calendar_export, write_calendar_export
from .frames import trades_frame
from .models import (
    ALL_SYMBOLS,
    BacktestFilter,
    BacktestResult,
    DayBucket,
    Direction,
    EquityPoint,
    StreakStats,
    Trade,
    TradeDraft,
    TradeValidationError,
    UnknownTradeError,
)
from .pnl import (
    ProfitBreakdown,
    compute_breakdown,
    compute_pips,
    compute_possible_loss,
    compute_profit,
    price_trade,
)
from .reporting import (
    build_dashboard_summary,
    drafts_from_frame,
    load_trades_csv,
    write_report_artifacts,
)
from .store import TradeStore

__all__ = [
    "ALL_SYMBOLS",
    "BacktestEngine",
    "BacktestFilter",
    "BacktestResult",
    "CalendarRecord",
    "DayBucket",
    "Direction",
    "EquityPoint",
    "ProfitBreakdown",
    "StreakStats",
    "Trade",
    "TradeDraft",
    "TradeStore",
    "TradeValidationError",
    "UnknownTradeError",
    "aggregate_by_day",
    "aggregate_by_month",
    "build_dashboard_summary",
    "compute_breakdown",
    "compute_pips",
    "compute_possible_loss",
    "compute_profit",
    "compute_streaks",
    "drafts_from_frame",
    "load_trades_csv",
    "losing_days",
    "month_days",
    "month_grid",
    "parse_calendar_export",
    "price_trade",
    "render_calendar_export",
    "run_backtest",
    "trades_frame",
    "winning_days",
    "write_calendar_export",
    "write_report_artifacts",
]
