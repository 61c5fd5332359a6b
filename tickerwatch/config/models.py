"""Typed configuration models for the ticker viewer.

The config subsystem relies on pydantic to validate the YAML file and to hand
strongly-typed objects to the runtime. Every section has defaults so an empty
file yields a working viewer against the public endpoints.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, model_validator

from tickerwatch.core.enums import BithumbMarket, BybitCategory


class BybitConfig(BaseModel):
    """Bybit V5 public market endpoints and polling cadence."""

    rest_endpoint: str = "https://api.bybit.com"
    categories: List[BybitCategory] = Field(
        default_factory=lambda: [BybitCategory.SPOT, BybitCategory.LINEAR, BybitCategory.INVERSE]
    )
    refresh_interval_sec: PositiveFloat = 1.0
    funding_history_limit: int = Field(20, ge=1, le=200)
    metadata_retry_sec: float = Field(30.0, ge=0)


class BithumbConfig(BaseModel):
    """Bithumb public ticker endpoint. All markets share one aggregated view."""

    enabled: bool = True
    rest_endpoint: str = "https://api.bithumb.com"
    markets: List[BithumbMarket] = Field(
        default_factory=lambda: [BithumbMarket.KRW, BithumbMarket.USDT, BithumbMarket.BTC]
    )
    refresh_interval_sec: PositiveFloat = 3.0

    @model_validator(mode="after")
    def _require_markets(self) -> "BithumbConfig":
        if self.enabled and not self.markets:
            raise ValueError("bithumb.markets must not be empty when bithumb is enabled")
        return self


class ExchangeRateConfig(BaseModel):
    """Daily fiat conversion rates (exchangerate-api.com v6 layout)."""

    enabled: bool = False
    endpoint: str = "https://v6.exchangerate-api.com/v6"
    api_key: Optional[str] = Field(None, min_length=5)
    base_currency: str = Field("USD", min_length=3, max_length=3)

    @model_validator(mode="after")
    def _require_key_when_enabled(self) -> "ExchangeRateConfig":
        if self.enabled and not self.api_key:
            raise ValueError("exchange_rates.api_key is required when exchange_rates.enabled is true")
        return self


class EffectsConfig(BaseModel):
    """Timing of the transient up/down price flash."""

    price_effect_duration_ms: int = Field(200, gt=0)

    @property
    def price_effect_duration_sec(self) -> float:
        return self.price_effect_duration_ms / 1000.0


class HttpConfig(BaseModel):
    timeout_sec: PositiveFloat = 5.0


class TelemetryConfig(BaseModel):
    """Logging switches."""

    log_level: str = Field("INFO")
    log_dir: str = Field("data/logs")


class ConsoleConfig(BaseModel):
    max_rows: int = Field(25, ge=1)


class ViewerConfig(BaseModel):
    """Top-level config composed of exchange, effect, HTTP and telemetry sections."""

    bybit: BybitConfig = Field(default_factory=BybitConfig)
    bithumb: BithumbConfig = Field(default_factory=BithumbConfig)
    exchange_rates: ExchangeRateConfig = Field(default_factory=ExchangeRateConfig)
    effects: EffectsConfig = Field(default_factory=EffectsConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
    console: ConsoleConfig = Field(default_factory=ConsoleConfig)

    model_config = ConfigDict(frozen=True)
