"""Dashboard figures, ledger import and report artifacts for the trade journal."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Sequence
from datetime import date
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from .calendar_buckets import compute_streaks, day_buckets, losing_days, winning_days
from .engine import BacktestEngine, max_drawdown, sort_trades
from .export import DEFAULT_EXPORT_NAME, write_calendar_export
from .frames import trades_frame
from .models import (
    FIELD_ALIASES,
    OPTIONAL_TRADE_FIELDS,
    REQUIRED_TRADE_FIELDS,
    BacktestFilter,
    BacktestResult,
    Trade,
    TradeDraft,
    TradeValidationError,
)

logger = logging.getLogger(__name__)

WEEKDAY_NAMES: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def _json_default(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        try:
            return value.isoformat()
        except TypeError:
            return str(value)
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (set, tuple)):
        return list(value)
    return str(value)


def json_safe(value: Any) -> Any:
    """Replace NaN/inf floats (recursively) so the output is strict JSON."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: json_safe(item) for key, item in value.items()}
    if isinstance(value, list):
        return [json_safe(item) for item in value]
    return value


def _validate_trade_columns(df: pd.DataFrame) -> None:
    missing = [
        name
        for name in REQUIRED_TRADE_FIELDS
        if not any(alias in df.columns for alias in FIELD_ALIASES.get(name, (name,)))
    ]
    if missing:
        raise ValueError(f"Missing required trade columns: {missing}")


def load_trades_csv(path: str | Path) -> pd.DataFrame:
    """Read a raw trades ledger CSV; every cell stays text until validated."""
    return pd.read_csv(path, dtype=str, keep_default_na=False)


def drafts_from_frame(df: pd.DataFrame, *, skip_invalid: bool = False) -> list[TradeDraft]:
    """
    Validate ledger rows into trade drafts.

    Invalid rows raise ``TradeValidationError`` naming the 1-based data row,
    unless ``skip_invalid`` is set, in which case they are logged and dropped.
    """
    _validate_trade_columns(df)
    known = set(REQUIRED_TRADE_FIELDS) | set(OPTIONAL_TRADE_FIELDS)
    known |= {alias for aliases in FIELD_ALIASES.values() for alias in aliases}
    columns = [col for col in df.columns if col in known]

    drafts: list[TradeDraft] = []
    for row_number, row in enumerate(df[columns].to_dict("records"), start=1):
        try:
            drafts.append(TradeDraft.from_raw(row))
        except TradeValidationError as exc:
            if not skip_invalid:
                raise TradeValidationError(f"row {row_number}: {exc}") from exc
            logger.warning("Skipping ledger row %s: %s", row_number, exc)
    return drafts


def _performance_by_instrument(df: pd.DataFrame) -> list[dict[str, Any]]:
    if df.empty:
        return []
    grouped = df.groupby("symbol", sort=False)["profit"].sum()
    return [{"symbol": str(symbol), "profit": float(profit)} for symbol, profit in grouped.items()]


def _performance_by_weekday(df: pd.DataFrame) -> list[dict[str, Any]]:
    totals = [0.0] * len(WEEKDAY_NAMES)
    if not df.empty:
        weekdays = pd.to_datetime(df["date"], format="%Y-%m-%d").dt.dayofweek
        for idx, profit in df.groupby(weekdays)["profit"].sum().items():
            totals[int(idx)] = float(profit)
    return [{"weekday": name, "profit": totals[idx]} for idx, name in enumerate(WEEKDAY_NAMES)]


def _performance_by_hour(df: pd.DataFrame) -> list[dict[str, Any]]:
    # Unlike the backtest buckets, trades without a recorded time are left out here.
    timed = df[df["time"].notna() & (df["time"].astype(str) != "")]
    if timed.empty:
        return []
    hours = timed["time"].astype(str).str[:2].astype(int)
    grouped = timed.groupby(hours)["profit"].sum().sort_index()
    return [{"hour": f"{int(hour):02d}:00", "profit": float(profit)} for hour, profit in grouped.items()]


def build_dashboard_summary(trades: Sequence[Trade], year_month: Optional[str] = None) -> dict[str, Any]:
    """
    Evaluation figures of the journal dashboard over the whole trade collection.

    Rate-like fields fall back to 0 on an empty journal here; the backtest
    result keeps them undefined instead.
    """
    if year_month is None:
        year_month = date.today().strftime("%Y-%m")

    ordered = sort_trades(trades)
    df = trades_frame(ordered)
    profits = df["profit"].astype(float)
    wins = profits[profits > 0]
    losses = profits[profits < 0]
    total = int(len(df))

    gross_gain = float(wins.sum())
    gross_loss = float(losses.abs().sum())
    average_win = gross_gain / len(wins) if len(wins) else 0.0
    average_loss = gross_loss / len(losses) if len(losses) else 0.0

    equity = profits.cumsum()
    streaks = compute_streaks(ordered)
    month = day_buckets(df, year_month)

    return {
        "year_month": year_month,
        "total_trades": total,
        "net_return": float(profits.sum()),
        "win_rate": len(wins) / total * 100 if total else 0.0,
        "average_pl": float(profits.mean()) if total else 0.0,
        "profit_factor": gross_gain / gross_loss if len(losses) and gross_loss > 0 else 0.0,
        "biggest_winner": float(profits.max()) if total else 0.0,
        "biggest_loser": float(profits.min()) if total else 0.0,
        "max_drawdown": max_drawdown(equity),
        "max_win_streak": streaks.max_win_streak,
        "max_lose_streak": streaks.max_lose_streak,
        "winning_days": winning_days(month),
        "losing_days": losing_days(month),
        "average_win": average_win,
        "average_loss": average_loss,
        "risk_reward_ratio": average_win / average_loss if average_loss > 0 else None,
        "month_calendar": {day: bucket.to_dict() for day, bucket in month.items()},
        "by_instrument": _performance_by_instrument(df),
        "by_weekday": _performance_by_weekday(df),
        "by_hour": _performance_by_hour(df),
        "equity": [{"trade": idx + 1, "equity": float(value)} for idx, value in enumerate(equity.tolist())],
    }


def _md_table(rows: list[dict[str, Any]], columns: list[str]) -> str:
    if not rows:
        return "_No rows_\n"
    header = "| " + " | ".join(columns) + " |"
    sep = "| " + " | ".join(["---"] * len(columns)) + " |"
    body: list[str] = []
    for row in rows:
        values: list[str] = []
        for col in columns:
            value = row.get(col)
            if isinstance(value, float):
                values.append("n/a" if math.isnan(value) else f"{value:,.2f}")
            elif value is None:
                values.append("")
            else:
                values.append(str(value))
        body.append("| " + " | ".join(values) + " |")
    return "\n".join([header, sep, *body]) + "\n"


def _write_markdown_report(
    report_path: Path,
    result: BacktestResult,
    selection: BacktestFilter,
    dashboard: dict[str, Any],
    currency: str,
) -> None:
    sections: list[str] = []
    sections.append("# Trade Journal Report")
    sections.append("")
    sections.append("## Filter")
    sections.append("")
    sections.append(f"- Start: `{selection.start_date or '-'}`")
    sections.append(f"- End: `{selection.end_date or '-'}`")
    sections.append(f"- Symbol: `{selection.symbol or 'all'}`")
    sections.append(f"- Currency: `{currency}`")
    sections.append("")
    sections.append("## Backtest")
    sections.append("")
    if result.is_empty:
        sections.append("_No trades match the filter._")
    else:
        sections.append(_md_table([
            {"metric": "Total trades", "value": result.total_trades},
            {"metric": "Winning trades", "value": result.winning_trades},
            {"metric": "Losing trades", "value": result.losing_trades},
            {"metric": "Win rate %", "value": result.win_rate},
            {"metric": f"Total profit ({currency})", "value": result.total_profit},
            {"metric": "Average profit", "value": result.average_profit},
            {"metric": "Max drawdown", "value": result.max_drawdown},
            {"metric": "Profit factor", "value": result.profit_factor},
            {"metric": "Average win", "value": result.average_win},
            {"metric": "Average loss", "value": result.average_loss},
            {"metric": "Risk/reward", "value": result.risk_reward_ratio},
            {"metric": "Max win streak", "value": result.max_win_streak},
            {"metric": "Max lose streak", "value": result.max_lose_streak},
        ], ["metric", "value"]).rstrip())
    sections.append("")

    for title, rows, cols in [
        ("By Symbol", [{"symbol": k, "trades": v} for k, v in result.trades_by_symbol.items()], ["symbol", "trades"]),
        ("By Month", [{"month": k, "trades": v} for k, v in sorted(result.trades_by_month.items())], ["month", "trades"]),
        ("By Hour", [{"hour": k, "profit": v} for k, v in sorted(result.trades_by_hour.items())], ["hour", "profit"]),
    ]:
        sections.append(f"### {title}")
        sections.append("")
        sections.append(_md_table(rows, cols).rstrip())
        sections.append("")

    sections.append(f"## Dashboard ({dashboard['year_month']})")
    sections.append("")
    sections.append(_md_table([
        {"metric": f"Net return ({currency})", "value": dashboard["net_return"]},
        {"metric": "Win rate %", "value": dashboard["win_rate"]},
        {"metric": "Average P/L", "value": dashboard["average_pl"]},
        {"metric": "Biggest winner", "value": dashboard["biggest_winner"]},
        {"metric": "Biggest loser", "value": dashboard["biggest_loser"]},
        {"metric": "Winning days", "value": dashboard["winning_days"]},
        {"metric": "Losing days", "value": dashboard["losing_days"]},
    ], ["metric", "value"]).rstrip())
    sections.append("")
    sections.append("### By Weekday")
    sections.append("")
    sections.append(_md_table(dashboard["by_weekday"], ["weekday", "profit"]).rstrip())
    sections.append("")

    report_path.write_text("\n".join(sections), encoding="utf-8")


def write_report_artifacts(
    trades: Sequence[Trade],
    report_dir: str | Path,
    selection: Optional[BacktestFilter] = None,
    year_month: Optional[str] = None,
    currency: str = "USD",
) -> dict[str, Any]:
    """
    Write the filtered ledger, backtest/dashboard JSON, Markdown report and calendar export.

    Money figures are in ``currency``, the settlement currency the exchange
    rates convert into; it is recorded in both JSON files and the report.
    """
    out_dir = Path(report_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    selection = selection or BacktestFilter()

    result = BacktestEngine().run(trades, selection)
    dashboard = build_dashboard_summary(trades, year_month)
    filtered = sort_trades(trade for trade in trades if selection.matches(trade))

    trades_path = out_dir / "trades.csv"
    backtest_path = out_dir / "backtest.json"
    dashboard_path = out_dir / "dashboard.json"
    report_path = out_dir / "report.md"
    calendar_path = out_dir / DEFAULT_EXPORT_NAME

    trades_frame(filtered).to_csv(trades_path, index=False)
    backtest_payload = {"filter": selection.to_dict(), "currency": currency, "result": json_safe(result.to_dict())}
    backtest_path.write_text(json.dumps(backtest_payload, indent=2, default=_json_default), encoding="utf-8")
    dashboard_payload = json_safe({"currency": currency, **dashboard})
    dashboard_path.write_text(json.dumps(dashboard_payload, indent=2, default=_json_default), encoding="utf-8")
    _write_markdown_report(report_path, result, selection, dashboard, currency)
    write_calendar_export(calendar_path, result.trades_by_day, trades)

    logger.info("Wrote report for %s trades to %s", result.total_trades, out_dir)
    return {
        "result": result,
        "dashboard": dashboard,
        "paths": {
            "report_dir": str(out_dir),
            "trades_csv": str(trades_path),
            "backtest_json": str(backtest_path),
            "dashboard_json": str(dashboard_path),
            "report_md": str(report_path),
            "calendar_txt": str(calendar_path),
        },
    }
