"""Ordered trade collection with JSON-file persistence."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any, Optional

from journal_core.instruments import ExchangeRateTable, InstrumentCatalog, InstrumentSpec

from .models import Trade, TradeDraft, TradeValidationError, UnknownTradeError
from .pnl import price_trade

logger = logging.getLogger(__name__)


def _epoch_millis() -> int:
    return int(time.time() * 1000)


class TradeStore:
    """
    Owns the trade records and hands out immutable snapshots.

    Every mutation builds a new tuple and swaps it in under a lock, so readers
    either see the collection before or after a change, never half of it.
    ``add`` and ``edit`` are the only ways a trade enters the store and both
    derive the profit from the trade's prices and lot size.
    """

    def __init__(
        self,
        catalog: Optional[Mapping[str, InstrumentSpec]] = None,
        rates: Optional[Mapping[str, float]] = None,
        path: str | Path | None = None,
        clock: Callable[[], int] = _epoch_millis,
    ):
        self.catalog = catalog if catalog is not None else InstrumentCatalog()
        self.rates = rates if rates is not None else ExchangeRateTable()
        self.path = Path(path) if path is not None else None
        self._clock = clock
        self._lock = threading.Lock()
        self._trades: tuple[Trade, ...] = ()

    def __len__(self) -> int:
        return len(self._trades)

    def snapshot(self) -> tuple[Trade, ...]:
        return self._trades

    def get(self, trade_id: int) -> Trade:
        for trade in self._trades:
            if trade.id == trade_id:
                return trade
        raise UnknownTradeError(trade_id)

    def _next_id(self) -> int:
        candidate = int(self._clock())
        if self._trades:
            candidate = max(candidate, max(trade.id for trade in self._trades) + 1)
        return candidate

    def _price(self, draft: TradeDraft, trade_id: int) -> Trade:
        if draft.symbol not in self.catalog:
            logger.warning("Symbol %s is not in the instrument catalog; profit recorded as 0", draft.symbol)
        return price_trade(draft, trade_id, self.catalog, self.rates)

    def add(self, draft: TradeDraft | dict[str, Any]) -> Trade:
        if not isinstance(draft, TradeDraft):
            draft = TradeDraft.from_raw(draft)
        with self._lock:
            trade = self._price(draft, self._next_id())
            self._trades = (*self._trades, trade)
        logger.info("Added trade %s %s %s profit=%.2f", trade.id, trade.symbol, trade.direction.value, trade.profit)
        return trade

    def add_many(self, drafts: Iterable[TradeDraft]) -> list[Trade]:
        return [self.add(draft) for draft in drafts]

    def edit(self, trade_id: int, changes: dict[str, Any]) -> Trade:
        """Apply field changes to a trade and re-derive its profit."""
        if "id" in changes:
            raise TradeValidationError("id cannot be edited")
        with self._lock:
            index = self._index_of(trade_id)
            current = self._trades[index]
            updated = self._price(current.draft.updated(changes), current.id)
            trades = list(self._trades)
            trades[index] = updated
            self._trades = tuple(trades)
        logger.info("Edited trade %s profit %.2f -> %.2f", trade_id, current.profit, updated.profit)
        return updated

    def delete(self, trade_id: int) -> Trade:
        with self._lock:
            index = self._index_of(trade_id)
            removed = self._trades[index]
            self._trades = self._trades[:index] + self._trades[index + 1:]
        logger.info("Deleted trade %s", trade_id)
        return removed

    def reprice(
        self,
        catalog: Mapping[str, InstrumentSpec],
        rates: Mapping[str, float],
    ) -> tuple[Trade, ...]:
        """Swap reference tables and re-derive every stored profit against them."""
        with self._lock:
            self.catalog = catalog
            self.rates = rates
            self._trades = tuple(self._price(trade.draft, trade.id) for trade in self._trades)
        return self._trades

    def _index_of(self, trade_id: int) -> int:
        for index, trade in enumerate(self._trades):
            if trade.id == trade_id:
                return index
        raise UnknownTradeError(trade_id)

    # Persistence

    def load(self) -> tuple[Trade, ...]:
        """Read the JSON file, re-deriving profits; a missing file is an empty journal."""
        if self.path is None or not self.path.exists():
            return self._trades
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except json.JSONDecodeError as exc:
            raise ValueError(f"Trade store is not valid JSON: {self.path}") from exc
        if not isinstance(payload, list):
            raise ValueError(f"Trade store must hold a JSON array: {self.path}")

        trades: list[Trade] = []
        seen_ids: set[int] = set()
        for position, record in enumerate(payload):
            try:
                trade_id = int(record["id"])
            except (KeyError, TypeError, ValueError) as exc:
                raise TradeValidationError(f"record {position} has no valid id") from exc
            if trade_id in seen_ids:
                raise TradeValidationError(f"Duplicate trade id: {trade_id}")
            seen_ids.add(trade_id)
            trades.append(self._price(TradeDraft.from_raw(record), trade_id))

        with self._lock:
            self._trades = tuple(trades)
        logger.debug("Loaded %s trades from %s", len(trades), self.path)
        return self._trades

    def save(self) -> Optional[Path]:
        if self.path is None:
            return None
        self.path.parent.mkdir(parents=True, exist_ok=True)
        records = [trade.to_record() for trade in self._trades]
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".trades-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(records, handle, indent=2)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Saved %s trades to %s", len(records), self.path)
        return self.path
