"""Instrument reference data, exchange rates and symbol normalization helpers."""

from __future__ import annotations

import math
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

# User-facing aliases for common symbols.
SYMBOL_ALIASES: dict[str, str] = {
    "GOLD": "XAU/USD",
    "BTC": "BTC/USD",
    "BITCOIN": "BTC/USD",
}

_PAIR_RE = re.compile(r"^[A-Z0-9]{3,}/[A-Z0-9]{3,}$")


@dataclass(frozen=True)
class InstrumentSpec:
    """Pip size, contract size and quote currency of one tradable symbol."""

    pip_unit_size: float
    contract_size: float
    quote_currency: str

    @classmethod
    def from_raw(cls, symbol: str, value: Any) -> "InstrumentSpec":
        if isinstance(value, InstrumentSpec):
            return value
        if not isinstance(value, dict):
            raise ValueError(f"instrument spec for {symbol} must be a mapping")
        try:
            pip_unit_size = float(value.get("pip_unit_size", value.get("pipUnitSize")))
            contract_size = float(value.get("contract_size", value.get("contractSize")))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"instrument spec for {symbol} contains invalid numbers") from exc
        quote_currency = str(value.get("quote_currency", value.get("quoteCurrency")) or "").strip().upper()
        if pip_unit_size <= 0 or contract_size <= 0:
            raise ValueError(f"instrument spec for {symbol} requires positive pip and contract sizes")
        if not quote_currency:
            raise ValueError(f"quote_currency is required for {symbol}")
        return cls(pip_unit_size=pip_unit_size, contract_size=contract_size, quote_currency=quote_currency)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pip_unit_size": self.pip_unit_size,
            "contract_size": self.contract_size,
            "quote_currency": self.quote_currency,
        }


DEFAULT_INSTRUMENT_SPECS: dict[str, InstrumentSpec] = {
    "EUR/USD": InstrumentSpec(0.0001, 100_000, "USD"),
    "GBP/USD": InstrumentSpec(0.0001, 100_000, "USD"),
    "USD/JPY": InstrumentSpec(0.01, 100_000, "JPY"),
    "USD/CHF": InstrumentSpec(0.0001, 100_000, "CHF"),
    "AUD/USD": InstrumentSpec(0.0001, 100_000, "USD"),
    "USD/CAD": InstrumentSpec(0.0001, 100_000, "CAD"),
    "NZD/USD": InstrumentSpec(0.0001, 100_000, "USD"),
    "EUR/GBP": InstrumentSpec(0.0001, 100_000, "GBP"),
    "EUR/JPY": InstrumentSpec(0.01, 100_000, "JPY"),
    "GBP/JPY": InstrumentSpec(0.01, 100_000, "JPY"),
    "XAU/USD": InstrumentSpec(0.01, 100, "USD"),
    "BTC/USD": InstrumentSpec(1.0, 1, "USD"),
}

# Example conversion factors into the USD settlement currency.
DEFAULT_EXCHANGE_RATES: dict[str, float] = {
    "USD": 1.0,
    "JPY": 1 / 144.88948,
    "CHF": 1.10,
    "CAD": 0.73,
    "GBP": 1.27,
    "EUR": 1.08,
}


class InstrumentCatalog(Mapping[str, InstrumentSpec]):
    """Read-only symbol -> InstrumentSpec table."""

    def __init__(self, specs: Mapping[str, Any] | None = None):
        source = DEFAULT_INSTRUMENT_SPECS if specs is None else specs
        self._specs: dict[str, InstrumentSpec] = {
            str(symbol): InstrumentSpec.from_raw(str(symbol), value) for symbol, value in source.items()
        }

    @classmethod
    def with_overrides(cls, overrides: Mapping[str, Any] | None) -> "InstrumentCatalog":
        merged: dict[str, Any] = dict(DEFAULT_INSTRUMENT_SPECS)
        for symbol, value in (overrides or {}).items():
            merged[normalize_symbol(str(symbol), allow_aliases=False)] = value
        return cls(merged)

    def __getitem__(self, symbol: str) -> InstrumentSpec:
        return self._specs[symbol]

    def __iter__(self) -> Iterator[str]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {symbol: spec.to_dict() for symbol, spec in self._specs.items()}


class ExchangeRateTable(Mapping[str, float]):
    """Quote currency -> settlement currency conversion factors."""

    def __init__(self, rates: Mapping[str, Any] | None = None):
        source = DEFAULT_EXCHANGE_RATES if rates is None else rates
        self._rates: dict[str, float] = {}
        for currency, value in source.items():
            try:
                rate = float(value)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"exchange rate for {currency} is not a number") from exc
            if rate <= 0:
                raise ValueError(f"exchange rate for {currency} must be positive")
            self._rates[str(currency).strip().upper()] = rate

    @classmethod
    def with_overrides(cls, overrides: Mapping[str, Any] | None) -> "ExchangeRateTable":
        merged: dict[str, Any] = dict(DEFAULT_EXCHANGE_RATES)
        merged.update({str(key).strip().upper(): value for key, value in (overrides or {}).items()})
        return cls(merged)

    def rate(self, currency: str) -> float:
        """Conversion factor for a currency, 1.0 when it is not configured."""
        return self._rates.get(str(currency).strip().upper(), 1.0)

    def __getitem__(self, currency: str) -> float:
        return self._rates[currency]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rates)

    def __len__(self) -> int:
        return len(self._rates)

    def to_dict(self) -> dict[str, float]:
        return dict(self._rates)


def resolve_symbol_alias(raw: str) -> str:
    """Resolve user alias to a canonical catalog symbol if available."""
    key = raw.strip().upper()
    return SYMBOL_ALIASES.get(key, key)


def normalize_symbol(raw: str, *, allow_aliases: bool = True) -> str:
    """
    Normalize user input to the catalog's ``BASE/QUOTE`` symbol format.

    Examples:
    - eurusd -> EUR/USD
    - eur_usd -> EUR/USD
    - gold -> XAU/USD
    """
    if not raw or not raw.strip():
        raise ValueError("Symbol is required.")

    normalized = raw.strip().upper().replace("_", "/").replace("-", "/")
    normalized = normalized.replace(" ", "")

    if allow_aliases:
        normalized = resolve_symbol_alias(normalized)

    if "/" not in normalized and len(normalized) == 6 and normalized.isalnum():
        normalized = f"{normalized[:3]}/{normalized[3:]}"

    if not _PAIR_RE.match(normalized):
        raise ValueError(f"Invalid symbol format: {raw}")

    return normalized


def get_price_precision(symbol: str, catalog: Mapping[str, InstrumentSpec] | None = None) -> int:
    """Display precision: one digit finer than the pip, two digits for whole-unit pips."""
    spec = (catalog if catalog is not None else DEFAULT_INSTRUMENT_SPECS).get(symbol)
    if spec is None or spec.pip_unit_size >= 1:
        return 2
    return -math.floor(math.log10(spec.pip_unit_size) + 1e-9) + 1


def format_price(symbol: str, value: float, catalog: Mapping[str, InstrumentSpec] | None = None) -> str:
    """Format price string using instrument-aware precision."""
    precision = get_price_precision(symbol, catalog)
    return f"{float(value):,.{precision}f}"
