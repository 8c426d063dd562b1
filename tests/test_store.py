"""Tests for the trade store: derived profit on every mutation, snapshots and persistence."""

import dataclasses
import json
import logging

import pytest

from journal.models import TradeValidationError, UnknownTradeError
from journal.pnl import compute_profit
from journal.store import TradeStore


def _clock(values):
    iterator = iter(values)
    return lambda: next(iterator)


@pytest.fixture
def store(catalog, rates):
    return TradeStore(catalog, rates, clock=_clock([1_000, 1_000, 1_000, 5_000]))


@pytest.fixture
def eurusd_row():
    return {
        "symbol": "eurusd",
        "direction": "long",
        "entry_price": "1.10000",
        "exit_price": "1.10500",
        "lot_size": "1",
        "date": "2024-03-01",
    }


def test_add_derives_profit(store, eurusd_row):
    trade = store.add(eurusd_row)
    assert trade.symbol == "EUR/USD"
    assert trade.profit == pytest.approx(500.0)
    assert store.snapshot() == (trade,)


def test_ids_are_unique_and_monotonic(store, eurusd_row):
    ids = [store.add(eurusd_row).id for _ in range(4)]
    assert ids == [1_000, 1_001, 1_002, 5_000]


def test_edit_recomputes_profit(store, eurusd_row, catalog, rates):
    trade = store.add(eurusd_row)
    edited = store.edit(trade.id, {"exitPrice": "1.09900", "lot_size": "2"})
    assert edited.id == trade.id
    assert edited.profit == pytest.approx(-200.0)
    assert edited.profit == pytest.approx(compute_profit(edited, catalog, rates))
    assert store.get(trade.id) is edited


def test_edit_symbol_switches_instrument(store, eurusd_row):
    trade = store.add(eurusd_row)
    edited = store.edit(trade.id, {"symbol": "USD/JPY", "entry_price": 150, "exit_price": 151})
    assert edited.pips == pytest.approx(100.0)
    assert edited.profit == pytest.approx(690.0)


def test_profit_cannot_be_set_directly(store, eurusd_row):
    trade = store.add(eurusd_row)
    with pytest.raises(TradeValidationError):
        store.edit(trade.id, {"profit": 1_000_000})
    with pytest.raises(dataclasses.FrozenInstanceError):
        trade.profit = 1_000_000
    with pytest.raises(TradeValidationError):
        store.edit(trade.id, {"id": 7})


def test_invalid_edit_leaves_store_untouched(store, eurusd_row):
    trade = store.add(eurusd_row)
    with pytest.raises(TradeValidationError):
        store.edit(trade.id, {"exit_price": "-1"})
    assert store.snapshot() == (trade,)


def test_snapshot_is_not_affected_by_later_mutation(store, eurusd_row):
    first = store.add(eurusd_row)
    snapshot = store.snapshot()
    store.add(eurusd_row)
    store.delete(first.id)
    assert snapshot == (first,)
    assert len(store) == 1


def test_unknown_ids_raise(store):
    with pytest.raises(UnknownTradeError):
        store.edit(123, {"notes": "x"})
    with pytest.raises(UnknownTradeError):
        store.delete(123)
    with pytest.raises(UnknownTradeError):
        store.get(123)


def test_unknown_symbol_is_accepted_with_zero_profit(store, eurusd_row, caplog):
    eurusd_row["symbol"] = "DOGE/USD"
    with caplog.at_level(logging.WARNING):
        trade = store.add(eurusd_row)
    assert trade.profit == 0.0
    assert "not in the instrument catalog" in caplog.text


def test_reprice_applies_new_rates(store, catalog):
    store.add(
        {"symbol": "USD/JPY", "direction": "short", "entry_price": 150, "exit_price": 149, "lot_size": 1, "date": "2024-03-01"}
    )
    (repriced,) = store.reprice(catalog, {"JPY": 0.01})
    assert repriced.profit == pytest.approx(1000.0)


class TestPersistence:
    def test_save_and_load_round_trip(self, tmp_path, catalog, rates, eurusd_row):
        path = tmp_path / "trades.json"
        store = TradeStore(catalog, rates, path=path, clock=_clock([10, 20]))
        store.add(eurusd_row)
        store.add({**eurusd_row, "time": "14:05", "stop_loss": "1.099", "notes": "news"})
        store.save()

        records = json.loads(path.read_text(encoding="utf-8"))
        assert records[1]["entryPrice"] == 1.1
        assert records[1]["stopLoss"] == 1.099
        assert records[1]["time"] == "14:05"

        reloaded = TradeStore(catalog, rates, path=path)
        assert reloaded.load() == store.snapshot()

    def test_load_rederives_profit_from_stored_prices(self, tmp_path, catalog, rates):
        path = tmp_path / "trades.json"
        record = {
            "id": 1718000000000,
            "symbol": "EUR/USD",
            "direction": "long",
            "entryPrice": 1.1,
            "exitPrice": 1.105,
            "quantity": 1,
            "date": "2024-06-10",
            "notes": "",
            "profit": 999999,
        }
        path.write_text(json.dumps([record]), encoding="utf-8")
        (trade,) = TradeStore(catalog, rates, path=path).load()
        assert trade.id == 1718000000000
        assert trade.profit == pytest.approx(500.0)

    def test_missing_file_is_empty_journal(self, tmp_path, catalog, rates):
        assert TradeStore(catalog, rates, path=tmp_path / "absent.json").load() == ()

    @pytest.mark.parametrize(
        "content",
        ["{not json", json.dumps({"id": 1}), json.dumps([{"symbol": "EUR/USD"}])],
    )
    def test_malformed_file_raises_value_error(self, tmp_path, catalog, rates, content):
        path = tmp_path / "trades.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ValueError):
            TradeStore(catalog, rates, path=path).load()

    def test_duplicate_ids_rejected(self, tmp_path, catalog, rates, eurusd_row):
        path = tmp_path / "trades.json"
        path.write_text(json.dumps([{**eurusd_row, "id": 1}, {**eurusd_row, "id": 1}]), encoding="utf-8")
        with pytest.raises(TradeValidationError):
            TradeStore(catalog, rates, path=path).load()

    def test_save_without_path_is_noop(self, store):
        assert store.save() is None
