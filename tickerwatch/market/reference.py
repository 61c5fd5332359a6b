"""Instrument reference data shared by every Bybit view.

Metadata is fetched at most once per category: concurrent first references
join the same in-flight request and later references read the cache. A failed
category is fetched again once ``retry_after_sec`` has passed.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Protocol

from tickerwatch.core.enums import BybitCategory, MetadataStatus
from tickerwatch.core.errors import MarketDataError
from tickerwatch.core.types import Symbol
from tickerwatch.data_feed.models import FundingRatePoint, InstrumentMetadata

from .single_flight import SingleFlight

LOGGER = logging.getLogger(__name__)


class ReferenceDataClient(Protocol):
    async def fetch_instruments(self, category: BybitCategory) -> List[InstrumentMetadata]: ...

    async def fetch_funding_history(
        self, category: BybitCategory, symbol: Symbol | str, limit: int = 20
    ) -> List[FundingRatePoint]: ...


class InstrumentCatalog:
    """Per-category metadata cache with single-flight loading."""

    def __init__(
        self,
        client: ReferenceDataClient,
        *,
        funding_limit: int = 20,
        retry_after_sec: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._funding_limit = funding_limit
        self._retry_after = retry_after_sec
        self._clock = clock
        self._logger = logger or LOGGER
        self._index: Dict[BybitCategory, Dict[str, InstrumentMetadata]] = {}
        self._status: Dict[BybitCategory, MetadataStatus] = {}
        self._errors: Dict[BybitCategory, str] = {}
        self._failed_at: Dict[BybitCategory, float] = {}
        self._loads: SingleFlight[BybitCategory, bool] = SingleFlight()
        self._funding: SingleFlight[tuple[BybitCategory, str, int], List[FundingRatePoint]] = SingleFlight()

    def status(self, category: BybitCategory) -> MetadataStatus:
        return self._status.get(category, MetadataStatus.MISSING)

    def error(self, category: BybitCategory) -> str | None:
        return self._errors.get(category)

    def lookup(self, category: BybitCategory, symbol: str) -> InstrumentMetadata | None:
        return self._index.get(category, {}).get(str(symbol))

    def instruments(self, category: BybitCategory) -> List[InstrumentMetadata]:
        return list(self._index.get(category, {}).values())

    def retry_due(self, category: BybitCategory) -> bool:
        """True when ``category`` failed and its retry delay has elapsed."""

        failed_at = self._failed_at.get(category)
        if failed_at is None or self.status(category) is not MetadataStatus.FAILED:
            return False
        return self._clock() - failed_at >= self._retry_after

    def needs_load(self, category: BybitCategory) -> bool:
        return self.status(category) is MetadataStatus.MISSING or self.retry_due(category)

    async def ensure_loaded(self, category: BybitCategory) -> bool:
        """Load ``category`` once; returns ``True`` when its metadata is usable.

        A failed category reports ``False`` without a request until its retry
        delay has elapsed, so a broken endpoint is not hammered every tick.
        """

        status = self.status(category)
        if status is MetadataStatus.READY:
            return True
        if status is MetadataStatus.FAILED and not self.retry_due(category):
            return False
        return await self._loads.do(category, lambda: self._load(category))

    async def _load(self, category: BybitCategory) -> bool:
        self._status[category] = MetadataStatus.LOADING
        try:
            instruments = await self._client.fetch_instruments(category)
        except MarketDataError as exc:
            self._status[category] = MetadataStatus.FAILED
            self._errors[category] = exc.message
            self._failed_at[category] = self._clock()
            self._logger.warning(
                "Instrument metadata load failed",
                extra={"category": category.value, "error": exc.message},
            )
            return False
        except BaseException:
            # Unexpected failures leave the category missing, never loading.
            self._status.pop(category, None)
            raise
        self._errors.pop(category, None)
        self._failed_at.pop(category, None)
        self._index[category] = {str(item.symbol): item for item in instruments}
        self._status[category] = MetadataStatus.READY
        self._logger.info(
            "Instrument metadata loaded",
            extra={"category": category.value, "instruments": len(instruments)},
        )
        return True

    def invalidate(self, category: BybitCategory | None = None) -> None:
        categories = [category] if category is not None else list(self._status)
        for item in categories:
            self._index.pop(item, None)
            self._status.pop(item, None)
            self._errors.pop(item, None)
            self._failed_at.pop(item, None)

    async def funding_history(
        self,
        category: BybitCategory,
        symbol: str,
        limit: int | None = None,
    ) -> List[FundingRatePoint]:
        """Funding history for one symbol; spot has none and is never requested."""

        if category is BybitCategory.SPOT:
            return []
        size = limit or self._funding_limit
        key = (category, str(symbol), size)
        return await self._funding.do(
            key, lambda: self._client.fetch_funding_history(category, symbol, size)
        )

    def close(self) -> None:
        self._loads.cancel_all()
        self._funding.cancel_all()
        for category, status in list(self._status.items()):
            if status is MetadataStatus.LOADING:
                self._status.pop(category)


__all__ = ["InstrumentCatalog", "ReferenceDataClient"]
