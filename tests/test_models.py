"""Tests for trade input validation and the record shapes."""

import pytest

from journal.models import (
    BacktestFilter,
    Direction,
    TradeDraft,
    TradeValidationError,
    parse_trade_date,
    parse_trade_time,
)

from .conftest import make_trade


def _row(**overrides):
    row = {
        "symbol": "EUR/USD",
        "direction": "long",
        "entry_price": "1.1",
        "exit_price": "1.105",
        "lot_size": "1",
        "date": "2024-03-01",
    }
    row.update(overrides)
    return row


class TestDirection:
    @pytest.mark.parametrize("raw,expected", [("long", Direction.LONG), ("BUY", Direction.LONG), (" sell ", Direction.SHORT)])
    def test_from_value(self, raw, expected):
        assert Direction.from_value(raw) is expected

    def test_rejects_unknown(self):
        with pytest.raises(TradeValidationError):
            Direction.from_value("flat")


class TestDraftFromRaw:
    def test_parses_and_normalizes(self):
        draft = TradeDraft.from_raw(_row(symbol="gbp_usd", direction="sell", time="9:05", notes="  fade  "))
        assert draft.symbol == "GBP/USD"
        assert draft.direction is Direction.SHORT
        assert draft.entry_price == 1.1
        assert draft.time == "09:05"
        assert draft.notes == "fade"
        assert draft.stop_loss is None

    def test_camel_case_and_quantity_aliases(self):
        row = {
            "symbol": "EUR/USD",
            "direction": "long",
            "entryPrice": 1.1,
            "exitPrice": 1.2,
            "quantity": 3,
            "stopLoss": 1.05,
            "date": "2024-03-01",
        }
        draft = TradeDraft.from_raw(row)
        assert (draft.entry_price, draft.exit_price, draft.lot_size, draft.stop_loss) == (1.1, 1.2, 3.0, 1.05)

    def test_date_keeps_only_the_calendar_day(self):
        assert TradeDraft.from_raw(_row(date="2024-03-01T10:30:00Z")).date == "2024-03-01"

    def test_blank_optional_fields_are_absent(self):
        draft = TradeDraft.from_raw(_row(time="", stop_loss="", notes=None))
        assert draft.time is None
        assert draft.stop_loss is None
        assert draft.notes == ""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"symbol": ""},
            {"symbol": "not a pair"},
            {"direction": "up"},
            {"entry_price": "abc"},
            {"exit_price": "0"},
            {"lot_size": "-1"},
            {"lot_size": "nan"},
            {"date": "03/01/2024"},
            {"date": "2024-02-30"},
            {"date": "2024-03-01xyz"},
            {"date": "2024-03-01 10:30"},
            {"time": "25:00"},
            {"stop_loss": "-5"},
        ],
    )
    def test_invalid_input_is_rejected(self, overrides):
        with pytest.raises(TradeValidationError):
            TradeDraft.from_raw(_row(**overrides))

    def test_missing_required_field(self):
        row = _row()
        del row["lot_size"]
        with pytest.raises(TradeValidationError, match="lot_size"):
            TradeDraft.from_raw(row)

    def test_non_mapping_rejected(self):
        with pytest.raises(TradeValidationError):
            TradeDraft.from_raw(["EUR/USD"])


class TestDraftUpdated:
    def test_applies_changes_under_any_alias(self):
        draft = TradeDraft.from_raw(_row())
        updated = draft.updated({"exitPrice": "1.2", "quantity": 2})
        assert updated.exit_price == 1.2
        assert updated.lot_size == 2.0
        assert draft.exit_price == 1.105

    @pytest.mark.parametrize("field", ["profit", "pips"])
    def test_derived_fields_are_not_editable(self, field):
        with pytest.raises(TradeValidationError):
            TradeDraft.from_raw(_row()).updated({field: 10})

    def test_revalidates(self):
        with pytest.raises(TradeValidationError):
            TradeDraft.from_raw(_row()).updated({"date": "yesterday"})


def test_parse_helpers():
    assert parse_trade_date(" 2024-12-31 ") == "2024-12-31"
    assert parse_trade_date("2024-3-1") == "2024-03-01"
    assert parse_trade_date("2024-03-01T23:30:00+05:00") == "2024-03-01"
    assert parse_trade_time(None) is None
    assert parse_trade_time("23:59:59") == "23:59"


def test_trade_record_uses_stored_names():
    record = make_trade(12.5, time="10:00", trade_id=9).to_record()
    assert record["id"] == 9
    assert record["entryPrice"] == 1.1
    assert record["lotSize"] == 1.0
    assert record["profit"] == 12.5
    assert record["direction"] == "long"


def test_filter_matches_inclusive_bounds_and_symbol():
    selection = BacktestFilter(start_date="2024-03-01", end_date="2024-03-31", symbol="EUR/USD")
    assert selection.matches(make_trade(1, date="2024-03-01"))
    assert selection.matches(make_trade(1, date="2024-03-31"))
    assert not selection.matches(make_trade(1, date="2024-04-01"))
    assert not selection.matches(make_trade(1, symbol="GBP/USD"))
    assert BacktestFilter().to_dict() == {"start_date": None, "end_date": None, "symbol": "all"}
