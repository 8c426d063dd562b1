"""Core utilities shared by the trade journal packages."""

from .instruments import (
    DEFAULT_EXCHANGE_RATES,
    DEFAULT_INSTRUMENT_SPECS,
    SYMBOL_ALIASES,
    ExchangeRateTable,
    InstrumentCatalog,
    InstrumentSpec,
    format_price,
    get_price_precision,
    normalize_symbol,
    resolve_symbol_alias,
)
from .logging_setup import setup_logging, teardown_logging
from .settings import JournalConfig

__all__ = [
    "setup_logging",
    "teardown_logging",
    "JournalConfig",
    "InstrumentSpec",
    "InstrumentCatalog",
    "ExchangeRateTable",
    "DEFAULT_INSTRUMENT_SPECS",
    "DEFAULT_EXCHANGE_RATES",
    "SYMBOL_ALIASES",
    "resolve_symbol_alias",
    "normalize_symbol",
    "get_price_precision",
    "format_price",
]
