"""Pipe-delimited calendar export of day buckets and its parser."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .calendar_buckets import day_key
from .models import DayBucket

FIELD_SEPARATOR = "|"
SYMBOL_SEPARATOR = ","
DEFAULT_EXPORT_NAME = "trade_calendar.txt"


@dataclass(frozen=True)
class CalendarRecord:
    date: str
    count: int
    profit: float
    symbols: tuple[str, ...]

    def to_line(self) -> str:
        return FIELD_SEPARATOR.join(
            [self.date, str(self.count), f"{self.profit:.2f}", SYMBOL_SEPARATOR.join(self.symbols)]
        )


def _symbols_by_day(trades: Iterable[Any]) -> dict[str, list[str]]:
    symbols: dict[str, list[str]] = {}
    for trade in trades:
        seen = symbols.setdefault(day_key(trade), [])
        if trade.symbol not in seen:
            seen.append(trade.symbol)
    return symbols


def calendar_records(buckets: Mapping[str, DayBucket], trades: Iterable[Any]) -> list[CalendarRecord]:
    """
    One record per day bucket, sorted by date.

    The symbol list of a day is drawn from ``trades``, which may be wider than
    the set the buckets were computed from.
    """
    symbols = _symbols_by_day(trades)
    records = [
        CalendarRecord(
            date=day,
            count=bucket.count,
            profit=round(bucket.profit, 2),
            symbols=tuple(symbols.get(day, [])),
        )
        for day, bucket in buckets.items()
    ]
    records.sort(key=lambda record: record.to_line())
    return records


def render_calendar_export(buckets: Mapping[str, DayBucket], trades: Iterable[Any]) -> str:
    return "\n".join(record.to_line() for record in calendar_records(buckets, trades))


def parse_calendar_export(text: str) -> list[CalendarRecord]:
    records: list[CalendarRecord] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        parts = line.split(FIELD_SEPARATOR)
        if len(parts) != 4:
            raise ValueError(f"line {lineno}: expected 4 fields, got {len(parts)}")
        date, count, profit, symbols = parts
        try:
            records.append(
                CalendarRecord(
                    date=date,
                    count=int(count),
                    profit=float(profit),
                    symbols=tuple(item for item in symbols.split(SYMBOL_SEPARATOR) if item),
                )
            )
        except ValueError as exc:
            raise ValueError(f"line {lineno}: invalid count or profit") from exc
    return records


def write_calendar_export(
    path: str | Path,
    buckets: Mapping[str, DayBucket],
    trades: Iterable[Any],
) -> Path:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(render_calendar_export(buckets, trades), encoding="utf-8")
    return out_path
