"""Ticker sources: what one view polls on each tick."""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import Dict, Iterable, List, Protocol

from tickerwatch.core.enums import BithumbMarket, BybitCategory, Exchange
from tickerwatch.data_feed.bithumb_client import BithumbClient
from tickerwatch.data_feed.bybit_client import BybitClient
from tickerwatch.data_feed.models import TickerRecord

from .aggregator import MultiMarketAggregator


@dataclass(slots=True)
class TickerBatch:
    """One successful snapshot plus the markets that failed in it."""

    records: List[TickerRecord]
    market_errors: Dict[str, str] = field(default_factory=dict)


class TickerSource(Protocol):
    name: str
    exchange: Exchange
    metadata_category: BybitCategory | None

    async def fetch(self) -> TickerBatch: ...


class BybitTickerSource:
    """Full ticker list of one Bybit category; errors propagate to the view."""

    exchange = Exchange.BYBIT

    def __init__(self, client: BybitClient, category: BybitCategory) -> None:
        self._client = client
        self.category = category
        self.metadata_category: BybitCategory | None = category
        self.name = f"bybit:{category.value}"

    async def fetch(self) -> TickerBatch:
        return TickerBatch(records=await self._client.fetch_tickers(self.category))


class BithumbTickerSource:
    """Union of the configured Bithumb quote markets."""

    exchange = Exchange.BITHUMB
    metadata_category: BybitCategory | None = None

    def __init__(self, client: BithumbClient, markets: Iterable[BithumbMarket]) -> None:
        markets = list(markets)
        self.name = "bithumb:" + ",".join(market.value for market in markets)
        self._aggregator = MultiMarketAggregator(
            {market.value: partial(client.fetch_market, market) for market in markets},
            error_prefix="Bithumb API error",
        )

    @property
    def markets(self) -> List[str]:
        return self._aggregator.markets

    async def fetch(self) -> TickerBatch:
        result = await self._aggregator.fetch_all()
        return TickerBatch(records=result.records, market_errors=result.errors)


__all__ = ["BithumbTickerSource", "BybitTickerSource", "TickerBatch", "TickerSource"]
