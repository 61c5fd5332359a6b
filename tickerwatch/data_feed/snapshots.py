"""Fetch boundary: one request per market, outcome returned as a value.

Feed clients raise; :func:`fetch_snapshot` is where those errors stop. Callers
(the aggregator and the ticker sources) receive a :class:`MarketFetchResult`
that either holds the records or the error with its upstream message.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List

from tickerwatch.core.errors import MarketDataError

from .models import TickerRecord

LOGGER = logging.getLogger(__name__)

SnapshotCall = Callable[[], Awaitable[List[TickerRecord]]]


@dataclass(slots=True)
class MarketFetchResult:
    """Outcome of fetching one sub-market."""

    market: str
    records: List[TickerRecord] = field(default_factory=list)
    error: MarketDataError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_message(self) -> str | None:
        return self.error.message if self.error is not None else None


async def fetch_snapshot(market: str, call: SnapshotCall) -> MarketFetchResult:
    """Run ``call`` once and capture market-data failures as a value."""

    try:
        records = await call()
    except MarketDataError as exc:
        LOGGER.warning("Snapshot fetch failed for %s: %s", market, exc, extra={"market": market})
        return MarketFetchResult(market=market, error=exc)
    return MarketFetchResult(market=market, records=records)


__all__ = ["MarketFetchResult", "SnapshotCall", "fetch_snapshot"]
