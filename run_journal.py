"""CLI for logging trades and analyzing journal performance."""

from __future__ import annotations

import argparse
import json
import logging
import math
import sys
from pathlib import Path
from typing import Any

_HERE = Path(__file__).parent
if str(_HERE) not in sys.path:
    sys.path.insert(0, str(_HERE))

from journal import (  # noqa: E402
    BacktestEngine,
    BacktestFilter,
    TradeStore,
    UnknownTradeError,
    build_dashboard_summary,
    drafts_from_frame,
    load_trades_csv,
    write_calendar_export,
    write_report_artifacts,
)
from journal.engine import filter_trades, sort_trades  # noqa: E402
from journal.export import DEFAULT_EXPORT_NAME  # noqa: E402
from journal.models import parse_trade_date  # noqa: E402
from journal.reporting import json_safe  # noqa: E402
from journal_core.instruments import format_price, normalize_symbol  # noqa: E402
from journal_core.logging_setup import setup_logging  # noqa: E402
from journal_core.settings import JournalConfig  # noqa: E402

EDITABLE_FIELDS: dict[str, str] = {
    "symbol": "symbol",
    "direction": "direction",
    "entry": "entry_price",
    "exit": "exit_price",
    "lots": "lot_size",
    "date": "date",
    "time": "time",
    "stop_loss": "stop_loss",
    "notes": "notes",
}


def _add_trade_fields(parser: argparse.ArgumentParser, *, required: bool) -> None:
    parser.add_argument("--symbol", required=required, help="Instrument symbol, e.g. EUR/USD or eurusd")
    parser.add_argument("--direction", required=required, choices=["long", "short", "buy", "sell"])
    parser.add_argument("--entry", required=required, help="Entry price")
    parser.add_argument("--exit", required=required, help="Exit price")
    parser.add_argument("--lots", required=required, help="Position size in standard lots")
    parser.add_argument("--date", required=required, help="Trade date (YYYY-MM-DD)")
    parser.add_argument("--time", help="Optional time of day (HH:MM)")
    parser.add_argument("--stop-loss", dest="stop_loss", help="Optional stop-loss price")
    parser.add_argument("--notes", help="Free-text notes")


def _add_filter_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--start", help="Optional start date filter (YYYY-MM-DD)")
    parser.add_argument("--end", help="Optional end date filter (YYYY-MM-DD)")
    parser.add_argument("--symbol", default="all", help="Symbol filter, 'all' for every symbol")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Trade journal and performance analytics CLI")
    parser.add_argument("--config", help="Path to the journal JSON config")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (defaults to the config's log_level)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    add_parser = subparsers.add_parser("add", help="Log a new trade")
    _add_trade_fields(add_parser, required=True)

    edit_parser = subparsers.add_parser("edit", help="Change fields of a logged trade; profit is re-derived")
    edit_parser.add_argument("trade_id", type=int)
    _add_trade_fields(edit_parser, required=False)

    delete_parser = subparsers.add_parser("delete", help="Delete a logged trade")
    delete_parser.add_argument("trade_id", type=int)

    list_parser = subparsers.add_parser("list", help="List logged trades in chronological order")
    _add_filter_args(list_parser)

    import_parser = subparsers.add_parser("import-csv", help="Import trades from a ledger CSV")
    import_parser.add_argument("csv_path", help="Input trades ledger CSV path")
    import_parser.add_argument("--skip-invalid", action="store_true", help="Skip invalid rows instead of aborting")

    backtest_parser = subparsers.add_parser("backtest", help="Run backtest statistics over logged trades")
    _add_filter_args(backtest_parser)
    backtest_parser.add_argument("--json", action="store_true", help="Print the full result bundle as JSON")

    dashboard_parser = subparsers.add_parser("dashboard", help="Show dashboard figures for a month")
    dashboard_parser.add_argument("--month", help="Calendar month (YYYY-MM), defaults to the current month")
    dashboard_parser.add_argument("--json", action="store_true", help="Print the dashboard summary as JSON")

    export_parser = subparsers.add_parser("export-calendar", help="Write the day-bucket calendar export")
    _add_filter_args(export_parser)
    export_parser.add_argument("--output", help=f"Output path (defaults to <report_dir>/{DEFAULT_EXPORT_NAME})")

    report_parser = subparsers.add_parser("report", help="Write CSV/JSON/Markdown report artifacts")
    _add_filter_args(report_parser)
    report_parser.add_argument("--month", help="Dashboard month (YYYY-MM)")
    report_parser.add_argument("--report-dir", help="Output directory (defaults to the config's report_dir)")

    return parser.parse_args(argv)


def _build_filter(args: argparse.Namespace) -> BacktestFilter:
    symbol = args.symbol
    if symbol and symbol.lower() != "all":
        symbol = normalize_symbol(symbol)
    else:
        symbol = None
    start = parse_trade_date(args.start) if args.start else None
    end = parse_trade_date(args.end) if args.end else None
    return BacktestFilter(start_date=start, end_date=end, symbol=symbol)


def _trade_fields(args: argparse.Namespace) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for arg_name, field_name in EDITABLE_FIELDS.items():
        value = getattr(args, arg_name, None)
        if value is not None:
            fields[field_name] = value
    return fields


def _fmt(value: float) -> str:
    return "n/a" if isinstance(value, float) and math.isnan(value) else f"{value:,.2f}"


def _money(value: float, currency: str) -> str:
    return f"{_fmt(value)} {currency}"


def _run_add(args: argparse.Namespace, store: TradeStore, config: JournalConfig) -> int:
    trade = store.add(_trade_fields(args))
    store.save()
    logging.getLogger(__name__).info(
        "Trade %s saved: %.1f pips, profit %s",
        trade.id,
        trade.pips,
        _money(trade.profit, config.settlement_currency),
    )
    return 0


def _run_edit(args: argparse.Namespace, store: TradeStore, config: JournalConfig) -> int:
    changes = _trade_fields(args)
    if not changes:
        logging.getLogger(__name__).error("edit requires at least one field to change")
        return 4
    trade = store.edit(args.trade_id, changes)
    store.save()
    logging.getLogger(__name__).info(
        "Trade %s updated: profit %s", trade.id, _money(trade.profit, config.settlement_currency)
    )
    return 0


def _run_delete(args: argparse.Namespace, store: TradeStore) -> int:
    store.delete(args.trade_id)
    store.save()
    return 0


def _run_list(args: argparse.Namespace, store: TradeStore, config: JournalConfig) -> int:
    logger = logging.getLogger(__name__)
    selection = _build_filter(args)
    trades = sort_trades(filter_trades(store.snapshot(), selection))
    for trade in trades:
        logger.info(
            "%s | %s %s | %s | %s -> %s | %s lots | %.1f pips | %s",
            trade.id,
            trade.date,
            trade.time or "--:--",
            trade.symbol,
            format_price(trade.symbol, trade.entry_price, store.catalog),
            format_price(trade.symbol, trade.exit_price, store.catalog),
            trade.lot_size,
            trade.pips,
            _money(trade.profit, config.settlement_currency),
        )
    logger.info("Trades listed: %s", len(trades))
    return 0


def _run_import(args: argparse.Namespace, store: TradeStore) -> int:
    logger = logging.getLogger(__name__)
    csv_path = Path(args.csv_path)
    if not csv_path.exists():
        logger.error("csv does not exist: %s", csv_path)
        return 6
    drafts = drafts_from_frame(load_trades_csv(csv_path), skip_invalid=args.skip_invalid)
    store.add_many(drafts)
    store.save()
    logger.info("Imported trades: %s", len(drafts))
    return 0


def _run_backtest(args: argparse.Namespace, store: TradeStore, config: JournalConfig) -> int:
    logger = logging.getLogger(__name__)
    result = BacktestEngine().run(store.snapshot(), _build_filter(args))
    if args.json:
        print(json.dumps(json_safe(result.to_dict()), indent=2))
        return 0
    if result.is_empty:
        logger.info("No trades match the filter")
        return 0
    logger.info("Total trades: %s", result.total_trades)
    logger.info("Win rate: %s%%", _fmt(result.win_rate))
    logger.info("Total profit: %s", _money(result.total_profit, config.settlement_currency))
    logger.info("Average profit: %s", _money(result.average_profit, config.settlement_currency))
    logger.info("Max drawdown: %s", _money(result.max_drawdown, config.settlement_currency))
    logger.info("Profit factor: %s", _fmt(result.profit_factor))
    logger.info("Risk/reward: %s", _fmt(result.risk_reward_ratio))
    logger.info("Streaks: %s wins / %s losses", result.max_win_streak, result.max_lose_streak)
    return 0


def _run_dashboard(args: argparse.Namespace, store: TradeStore, config: JournalConfig) -> int:
    logger = logging.getLogger(__name__)
    summary = build_dashboard_summary(store.snapshot(), args.month)
    if args.json:
        print(json.dumps(json_safe(summary), indent=2))
        return 0
    logger.info("Month: %s", summary["year_month"])
    logger.info("Net return: %s", _money(summary["net_return"], config.settlement_currency))
    logger.info("Win rate: %s%%", _fmt(summary["win_rate"]))
    logger.info("Average P/L: %s", _money(summary["average_pl"], config.settlement_currency))
    logger.info("Profit factor: %s", _fmt(summary["profit_factor"]))
    logger.info(
        "Biggest winner / loser: %s / %s",
        _money(summary["biggest_winner"], config.settlement_currency),
        _money(summary["biggest_loser"], config.settlement_currency),
    )
    logger.info("Winning / losing days: %s / %s", summary["winning_days"], summary["losing_days"])
    return 0


def _run_export(args: argparse.Namespace, store: TradeStore, config: JournalConfig) -> int:
    trades = store.snapshot()
    result = BacktestEngine().run(trades, _build_filter(args))
    output = Path(args.output) if args.output else config.report_dir / DEFAULT_EXPORT_NAME
    write_calendar_export(output, result.trades_by_day, trades)
    logging.getLogger(__name__).info("Calendar export: %s (%s days)", output, len(result.trades_by_day))
    return 0


def _run_report(args: argparse.Namespace, store: TradeStore, config: JournalConfig) -> int:
    report_dir = Path(args.report_dir) if args.report_dir else config.report_dir
    artifacts = write_report_artifacts(
        store.snapshot(),
        report_dir,
        _build_filter(args),
        args.month,
        currency=config.settlement_currency,
    )
    logging.getLogger(__name__).info("Report dir: %s", artifacts["paths"]["report_dir"])
    return 0


def _load_config(args: argparse.Namespace) -> JournalConfig:
    if not args.config:
        return JournalConfig()
    config_path = Path(args.config)
    if not config_path.exists():
        raise FileNotFoundError(f"config does not exist: {config_path}")
    return JournalConfig.from_path(config_path)


def _run(args: argparse.Namespace, config: JournalConfig) -> int:
    logger = logging.getLogger(__name__)
    store = TradeStore(config.catalog, config.rates, path=config.store_path)
    try:
        store.load()
        if args.command == "add":
            return _run_add(args, store, config)
        if args.command == "edit":
            return _run_edit(args, store, config)
        if args.command == "delete":
            return _run_delete(args, store)
        if args.command == "list":
            return _run_list(args, store, config)
        if args.command == "import-csv":
            return _run_import(args, store)
        if args.command == "backtest":
            return _run_backtest(args, store, config)
        if args.command == "dashboard":
            return _run_dashboard(args, store, config)
        if args.command == "export-calendar":
            return _run_export(args, store, config)
        if args.command == "report":
            return _run_report(args, store, config)
    except UnknownTradeError as exc:
        logger.error("Unknown trade id: %s", exc.args[0])
        return 5
    except ValueError as exc:
        # TradeValidationError and malformed store/ledger files.
        logger.error(str(exc))
        return 4
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    try:
        config = _load_config(args)
    except FileNotFoundError as exc:
        setup_logging(log_level=args.log_level or "INFO")
        logging.getLogger(__name__).error(str(exc))
        raise SystemExit(2)
    except ValueError as exc:
        setup_logging(log_level=args.log_level or "INFO")
        logging.getLogger(__name__).error(str(exc))
        raise SystemExit(3)
    setup_logging(log_level=args.log_level or config.log_level, logs_dir=config.logs_dir)
    raise SystemExit(_run(args, config))


if __name__ == "__main__":
    main()
