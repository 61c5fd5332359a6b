"""Normalized records produced by the feed clients.

Every numeric field stays a decimal string exactly as the upstream API delivered
it (percentages excepted, see :mod:`tickerwatch.data_feed.normalize`). Optional
fields are ``None`` when a category does not carry them.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

from tickerwatch.core.enums import BybitCategory, Exchange
from tickerwatch.core.types import Symbol, TickerKey


@dataclass(frozen=True, slots=True)
class TickerRecord:
    """One instrument's state within one snapshot; replaced wholesale every tick."""

    exchange: Exchange
    symbol: Symbol
    market: str
    last_price: str = ""
    bid_price: str = ""
    ask_price: str = ""
    change_24h_pct: str = "+0.00"
    volume_24h: str = ""
    turnover_24h: str = ""
    # Bybit category-specific fields
    index_price: Optional[str] = None
    mark_price: Optional[str] = None
    usd_index_price: Optional[str] = None
    prev_price_24h: Optional[str] = None
    high_price_24h: Optional[str] = None
    low_price_24h: Optional[str] = None
    prev_price_1h: Optional[str] = None
    bid_size: Optional[str] = None
    ask_size: Optional[str] = None
    open_interest: Optional[str] = None
    open_interest_value: Optional[str] = None
    funding_rate: Optional[str] = None
    next_funding_time: Optional[str] = None
    basis_rate: Optional[str] = None
    basis: Optional[str] = None
    delivery_fee_rate: Optional[str] = None
    delivery_time: Optional[str] = None
    predicted_delivery_price: Optional[str] = None
    # Bithumb fields
    base_coin: Optional[str] = None
    quote_coin: Optional[str] = None
    price_change_24h: Optional[str] = None
    timestamp: Optional[str] = None

    @property
    def key(self) -> TickerKey:
        return (self.exchange.value, str(self.symbol), self.market)

    @property
    def pair(self) -> str:
        if self.base_coin and self.quote_coin:
            return f"{self.base_coin}/{self.quote_coin}"
        return str(self.symbol)

    @property
    def search_key(self) -> str:
        """``{base}{quote}{base}`` (e.g. ``ETHKRWETH``) to tell markets apart."""

        if self.base_coin and self.quote_coin:
            return f"{self.base_coin}{self.quote_coin}{self.base_coin}"
        return str(self.symbol)


@dataclass(frozen=True, slots=True)
class InstrumentMetadata:
    """Reference data from ``/v5/market/instruments-info``."""

    category: BybitCategory
    symbol: Symbol
    status: str = ""
    base_coin: str = ""
    quote_coin: str = ""
    settle_coin: Optional[str] = None
    contract_type: Optional[str] = None
    tick_size: Optional[str] = None
    min_price: Optional[str] = None
    max_price: Optional[str] = None
    qty_step: Optional[str] = None
    min_order_qty: Optional[str] = None
    max_order_qty: Optional[str] = None

    @property
    def price_decimals(self) -> int | None:
        """Decimal places implied by ``tick_size`` (``"0.10"`` -> 2)."""

        if not self.tick_size:
            return None
        try:
            Decimal(self.tick_size)
        except InvalidOperation:
            return None
        _, _, fraction = self.tick_size.partition(".")
        return len(fraction)


@dataclass(frozen=True, slots=True)
class FundingRatePoint:
    """Single settled funding rate (timestamp in milliseconds)."""

    symbol: Symbol
    rate: str
    timestamp_ms: int


@dataclass(slots=True)
class ExchangeRateSnapshot:
    """Fiat conversion table for one base currency."""

    base_code: str
    rates: Dict[str, float]
    last_update_utc: datetime
    next_update_utc: datetime | None = None
    fetched_at: datetime | None = None

    @property
    def last_update_date(self) -> date:
        return self.last_update_utc.date()

    def rate_for(self, quote: str) -> float | None:
        return self.rates.get(quote.upper())


__all__ = [
    "ExchangeRateSnapshot",
    "FundingRatePoint",
    "InstrumentMetadata",
    "TickerRecord",
]
