from typing import Optional

import pytest

from journal.models import Direction, Trade
from journal_core.instruments import ExchangeRateTable, InstrumentCatalog


@pytest.fixture
def catalog() -> InstrumentCatalog:
    return InstrumentCatalog()


@pytest.fixture
def rates() -> ExchangeRateTable:
    # Round JPY rate so expected values are easy to state.
    return ExchangeRateTable.with_overrides({"JPY": 0.0069})


def make_trade(
    profit: float,
    date: str = "2024-03-01",
    time: Optional[str] = None,
    symbol: str = "EUR/USD",
    trade_id: int = 1,
) -> Trade:
    """Trade with a fixed profit, for statistics that only read profit/date/time/symbol."""
    return Trade(
        id=trade_id,
        symbol=symbol,
        direction=Direction.LONG,
        entry_price=1.1,
        exit_price=1.1,
        lot_size=1.0,
        date=date,
        time=time,
        stop_loss=None,
        notes="",
        pips=0.0,
        profit=profit,
    )


@pytest.fixture
def trade_factory():
    return make_trade
