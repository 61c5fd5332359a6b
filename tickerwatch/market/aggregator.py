"""Fan-out over sub-markets with partial-failure tolerance."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping

from tickerwatch.core.errors import AggregateFetchError, PartialAggregateFailure
from tickerwatch.core.types import TickerKey
from tickerwatch.data_feed.models import TickerRecord
from tickerwatch.data_feed.snapshots import MarketFetchResult, SnapshotCall, fetch_snapshot

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class AggregateResult:
    records: List[TickerRecord] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    results: List[MarketFetchResult] = field(default_factory=list)

    @property
    def partial_failure(self) -> PartialAggregateFailure | None:
        return PartialAggregateFailure(self.errors) if self.errors else None

    @property
    def succeeded_markets(self) -> List[str]:
        return [result.market for result in self.results if result.ok]


class MultiMarketAggregator:
    """Fetch every sub-market concurrently and merge the survivors.

    Succeeds while at least one market answered; raises
    :class:`AggregateFetchError` carrying every market's message otherwise.
    """

    def __init__(
        self,
        fetchers: Mapping[str, SnapshotCall],
        *,
        error_prefix: str = "API error",
        logger: logging.Logger | None = None,
    ) -> None:
        if not fetchers:
            raise ValueError("aggregator requires at least one market")
        self._fetchers = dict(fetchers)
        self._error_prefix = error_prefix
        self._logger = logger or LOGGER

    @property
    def markets(self) -> List[str]:
        return list(self._fetchers)

    async def fetch_all(self) -> AggregateResult:
        results = await asyncio.gather(
            *(fetch_snapshot(market, call) for market, call in self._fetchers.items())
        )
        errors = {
            result.market: result.error_message or f"Unknown error for {result.market} market"
            for result in results
            if not result.ok
        }
        if len(errors) == len(results):
            raise AggregateFetchError(self._error_prefix, errors)
        if errors:
            self._logger.warning("Partial market failure", extra={"failed_markets": list(errors)})

        merged: Dict[TickerKey, TickerRecord] = {}
        for result in results:
            for record in result.records:
                if record.key in merged:
                    self._logger.debug("Duplicate ticker key dropped", extra={"key": list(record.key)})
                    continue
                merged[record.key] = record
        return AggregateResult(records=list(merged.values()), errors=errors, results=list(results))


__all__ = ["AggregateResult", "MultiMarketAggregator"]
