"""Tests for profit, pips and possible-loss derivation."""

from types import SimpleNamespace

import pytest

from journal.models import Direction, TradeDraft
from journal.pnl import (
    ProfitBreakdown,
    compute_breakdown,
    compute_pips,
    compute_possible_loss,
    compute_profit,
    price_trade,
)


def _draft(**overrides) -> TradeDraft:
    fields = {
        "symbol": "EUR/USD",
        "direction": Direction.LONG,
        "entry_price": 1.10000,
        "exit_price": 1.10500,
        "lot_size": 1.0,
        "date": "2024-03-01",
    }
    fields.update(overrides)
    return TradeDraft(**fields)


class TestProfit:
    def test_long_eurusd(self, catalog, rates):
        trade = _draft()
        assert compute_pips(trade, catalog, rates) == pytest.approx(50.0)
        assert compute_profit(trade, catalog, rates) == pytest.approx(500.0)

    def test_short_usdjpy_converts_through_quote_currency(self, catalog, rates):
        trade = _draft(symbol="USD/JPY", direction=Direction.SHORT, entry_price=150.0, exit_price=149.0)
        breakdown = compute_breakdown(trade, catalog, rates)
        assert breakdown.pips == pytest.approx(100.0)
        assert breakdown.profit == pytest.approx(690.0)

    def test_losing_long_is_negative(self, catalog, rates):
        trade = _draft(exit_price=1.09800)
        assert compute_pips(trade, catalog, rates) == pytest.approx(-20.0)
        assert compute_profit(trade, catalog, rates) == pytest.approx(-200.0)

    def test_lot_size_scales_profit_not_pips(self, catalog, rates):
        trade = _draft(lot_size=2.5)
        assert compute_pips(trade, catalog, rates) == pytest.approx(50.0)
        assert compute_profit(trade, catalog, rates) == pytest.approx(1250.0)

    def test_gold_contract_size(self, catalog, rates):
        trade = _draft(symbol="XAU/USD", entry_price=2300.00, exit_price=2310.00)
        assert compute_pips(trade, catalog, rates) == pytest.approx(1000.0)
        assert compute_profit(trade, catalog, rates) == pytest.approx(1000.0)

    def test_unconfigured_quote_currency_uses_rate_one(self, catalog):
        trade = _draft(symbol="USD/CHF", entry_price=0.9000, exit_price=0.9010)
        assert compute_profit(trade, catalog, {}) == pytest.approx(100.0)

    def test_plain_mapping_rates_are_accepted(self, catalog):
        trade = _draft(symbol="EUR/GBP", entry_price=0.8500, exit_price=0.8510)
        assert compute_profit(trade, catalog, {"GBP": 1.27}) == pytest.approx(127.0)

    def test_unknown_symbol_degrades_to_zero(self, catalog, rates):
        trade = _draft(symbol="DOGE/USD")
        assert compute_breakdown(trade, catalog, rates) == ProfitBreakdown(0.0, 0.0)

    @pytest.mark.parametrize("bad", ["abc", float("nan"), float("inf"), None])
    def test_non_numeric_prices_degrade_to_zero(self, catalog, rates, bad):
        trade = SimpleNamespace(symbol="EUR/USD", direction="long", entry_price=bad, exit_price=1.1, lot_size=1)
        assert compute_profit(trade, catalog, rates) == 0.0
        assert compute_pips(trade, catalog, rates) == 0.0

    def test_unknown_direction_degrades_to_zero(self, catalog, rates):
        trade = SimpleNamespace(symbol="EUR/USD", direction="sideways", entry_price=1.1, exit_price=1.2, lot_size=1)
        assert compute_profit(trade, catalog, rates) == 0.0

    def test_profit_is_reproducible(self, catalog, rates):
        trade = _draft(symbol="GBP/JPY", direction=Direction.SHORT, entry_price=190.12, exit_price=189.55, lot_size=0.3)
        first = compute_breakdown(trade, catalog, rates)
        assert compute_breakdown(trade, catalog, rates) == first


class TestPossibleLoss:
    def test_long_stop_below_entry(self, catalog, rates):
        trade = _draft(stop_loss=1.09500)
        assert compute_possible_loss(trade, catalog, rates) == pytest.approx(500.0)

    def test_short_stop_above_entry(self, catalog, rates):
        trade = _draft(symbol="USD/JPY", direction=Direction.SHORT, entry_price=150.0, exit_price=149.0, stop_loss=150.5)
        assert compute_possible_loss(trade, catalog, rates) == pytest.approx(345.0)

    def test_stop_on_profitable_side_clamps_to_zero(self, catalog, rates):
        trade = _draft(stop_loss=1.10200)
        assert compute_possible_loss(trade, catalog, rates) == 0.0

    def test_missing_stop_is_zero(self, catalog, rates):
        assert compute_possible_loss(_draft(), catalog, rates) == 0.0

    def test_non_numeric_stop_is_zero(self, catalog, rates):
        trade = SimpleNamespace(
            symbol="EUR/USD", direction="long", entry_price=1.1, exit_price=1.2, lot_size=1, stop_loss="n/a"
        )
        assert compute_possible_loss(trade, catalog, rates) == 0.0

    def test_unknown_symbol_is_zero(self, catalog, rates):
        assert compute_possible_loss(_draft(symbol="DOGE/USD", stop_loss=1.0), catalog, rates) == 0.0


def test_price_trade_stores_all_derived_fields(catalog, rates):
    trade = price_trade(_draft(stop_loss=1.09800, time="09:30", notes="breakout"), 42, catalog, rates)
    assert trade.id == 42
    assert trade.pips == pytest.approx(50.0)
    assert trade.profit == pytest.approx(500.0)
    assert trade.possible_loss == pytest.approx(200.0)
    assert trade.time == "09:30"
    assert trade.notes == "breakout"
    assert trade.draft == _draft(stop_loss=1.09800, time="09:30", notes="breakout")
