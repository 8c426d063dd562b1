"""Journal configuration loaded from an optional JSON file."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .instruments import ExchangeRateTable, InstrumentCatalog

SUPPORTED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class JournalConfig:
    """Reference tables and file locations shared by every journal command."""

    store_path: Path = Path("trades.json")
    report_dir: Path = Path("reports")
    logs_dir: Path = Path("logs")
    log_level: str = "INFO"
    settlement_currency: str = "USD"
    catalog: InstrumentCatalog = field(default_factory=InstrumentCatalog)
    rates: ExchangeRateTable = field(default_factory=ExchangeRateTable)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "JournalConfig":
        if not isinstance(payload, dict):
            raise ValueError("Journal config must be a JSON object")

        instruments = payload.get("instruments")
        if instruments is not None and not isinstance(instruments, dict):
            raise ValueError("instruments must be a mapping of symbol to spec")
        exchange_rates = payload.get("exchange_rates")
        if exchange_rates is not None and not isinstance(exchange_rates, dict):
            raise ValueError("exchange_rates must be a mapping of currency to rate")

        log_level = str(payload.get("log_level", "INFO")).strip().upper()
        if log_level not in SUPPORTED_LOG_LEVELS:
            raise ValueError(f"Unsupported log_level: {payload.get('log_level')}")

        settlement_currency = str(payload.get("settlement_currency", "USD")).strip().upper()
        if not settlement_currency:
            raise ValueError("settlement_currency is required")

        return cls(
            store_path=Path(payload.get("store_path") or "trades.json"),
            report_dir=Path(payload.get("report_dir") or "reports"),
            logs_dir=Path(payload.get("logs_dir") or "logs"),
            log_level=log_level,
            settlement_currency=settlement_currency,
            catalog=InstrumentCatalog.with_overrides(instruments),
            rates=ExchangeRateTable.with_overrides(exchange_rates),
        )

    @classmethod
    def from_path(cls, path: str | Path) -> "JournalConfig":
        config_path = Path(path)
        try:
            payload = json.loads(config_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Journal config is not valid JSON: {config_path}") from exc
        config = cls.from_dict(payload)
        for name in ("store_path", "report_dir", "logs_dir"):
            value = getattr(config, name)
            if not value.is_absolute():
                setattr(config, name, (config_path.parent / value).resolve())
        return config

    def to_dict(self) -> dict[str, Any]:
        return {
            "store_path": str(self.store_path),
            "report_dir": str(self.report_dir),
            "logs_dir": str(self.logs_dir),
            "log_level": self.log_level,
            "settlement_currency": self.settlement_currency,
            "instruments": self.catalog.to_dict(),
            "exchange_rates": self.rates.to_dict(),
        }
