"""Profit, pip distance and stop-loss risk derived from trade fields."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from journal_core.instruments import ExchangeRateTable, InstrumentSpec

from .models import Direction, Trade, TradeDraft, finite_float

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfitBreakdown:
    pips: float = 0.0
    profit: float = 0.0


def _conversion_rate(rates: Mapping[str, float], currency: str) -> float:
    if isinstance(rates, ExchangeRateTable):
        return rates.rate(currency)
    return float(rates.get(currency, 1.0))


def _signed_distance(direction: Any, start: Optional[float], end: Optional[float]) -> Optional[float]:
    """Price move in the trade's favour from ``start`` to ``end``."""
    if start is None or end is None:
        return None
    try:
        side = Direction.from_value(direction)
    except ValueError:
        return None
    return end - start if side is Direction.LONG else start - end


def _pipeline(
    symbol: str,
    raw_diff: Optional[float],
    lot_size: Any,
    catalog: Mapping[str, InstrumentSpec],
    rates: Mapping[str, float],
) -> ProfitBreakdown:
    spec = catalog.get(symbol)
    if spec is None:
        logger.debug("No instrument spec for %s; profit degrades to 0", symbol)
        return ProfitBreakdown()
    lots = finite_float(lot_size)
    if raw_diff is None or lots is None:
        return ProfitBreakdown()

    pips = raw_diff / spec.pip_unit_size
    value_per_pip_per_lot = spec.contract_size * spec.pip_unit_size
    profit = pips * value_per_pip_per_lot * _conversion_rate(rates, spec.quote_currency) * lots
    return ProfitBreakdown(pips=pips, profit=profit)


def compute_breakdown(
    trade: Any,
    catalog: Mapping[str, InstrumentSpec],
    rates: Mapping[str, float],
) -> ProfitBreakdown:
    """Pips and settlement-currency profit for a closed trade; zeros for unknown symbols."""
    raw_diff = _signed_distance(trade.direction, finite_float(trade.entry_price), finite_float(trade.exit_price))
    return _pipeline(trade.symbol, raw_diff, trade.lot_size, catalog, rates)


def compute_pips(trade: Any, catalog: Mapping[str, InstrumentSpec], rates: Mapping[str, float]) -> float:
    return compute_breakdown(trade, catalog, rates).pips


def compute_profit(trade: Any, catalog: Mapping[str, InstrumentSpec], rates: Mapping[str, float]) -> float:
    return compute_breakdown(trade, catalog, rates).profit


def compute_possible_loss(
    trade: Any,
    catalog: Mapping[str, InstrumentSpec],
    rates: Mapping[str, float],
) -> float:
    """
    Loss magnitude if the stop-loss is hit.

    A stop on the profitable side of the entry, a missing stop and non-numeric
    prices all yield 0.
    """
    entry = finite_float(trade.entry_price)
    stop = finite_float(getattr(trade, "stop_loss", None))
    # entry - stop for longs, stop - entry for shorts.
    raw_diff = _signed_distance(trade.direction, stop, entry)
    loss = _pipeline(trade.symbol, raw_diff, trade.lot_size, catalog, rates).profit
    return loss if loss > 0 else 0.0


def price_trade(
    draft: TradeDraft,
    trade_id: int,
    catalog: Mapping[str, InstrumentSpec],
    rates: Mapping[str, float],
) -> Trade:
    """Build a stored trade, deriving pips, profit and possible loss from the draft."""
    breakdown = compute_breakdown(draft, catalog, rates)
    return Trade(
        id=int(trade_id),
        symbol=draft.symbol,
        direction=draft.direction,
        entry_price=draft.entry_price,
        exit_price=draft.exit_price,
        lot_size=draft.lot_size,
        date=draft.date,
        time=draft.time,
        stop_loss=draft.stop_loss,
        notes=draft.notes,
        pips=breakdown.pips,
        profit=breakdown.profit,
        possible_loss=compute_possible_loss(draft, catalog, rates),
    )
