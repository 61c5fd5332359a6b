"""One logical ticker view: its snapshot, effects, filters and error state.

A view owns everything that is instance-scoped: the previous-snapshot store
inside its :class:`PriceEffectTracker`, its expiry timers and its listeners.
Fetch failures end here and become :class:`ViewState` fields.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Dict, List

from tickerwatch.core.enums import MetadataStatus, SortDirection, SortField
from tickerwatch.core.errors import AggregateFetchError, MarketDataError
from tickerwatch.core.time_utils import now_utc
from tickerwatch.core.types import TickerKey, TimerSource
from tickerwatch.data_feed.models import FundingRatePoint
from tickerwatch.market.diff_engine import PriceEffectTracker
from tickerwatch.market.models import DisplayTicker, SortCriterion
from tickerwatch.market.reference import InstrumentCatalog
from tickerwatch.market.sources import TickerSource
from tickerwatch.market.view_model import build_display_list

LOGGER = logging.getLogger(__name__)

Listener = Callable[["ViewState"], None]


@dataclass(frozen=True, slots=True)
class ViewState:
    """Immutable snapshot handed to listeners after every change."""

    tickers: List[DisplayTicker] = field(default_factory=list)
    loading: bool = True
    error: str | None = None
    stale: bool = False
    has_data: bool = False
    market_errors: Dict[str, str] = field(default_factory=dict)
    search_term: str = ""
    sort: SortCriterion = field(default_factory=SortCriterion)
    market_filter: str | None = None
    last_updated: datetime | None = None
    metadata_status: MetadataStatus | None = None
    metadata_error: str | None = None

    @property
    def blocking(self) -> bool:
        """Error with nothing to show: only possible before the first success."""

        return self.error is not None and not self.has_data

    @property
    def total(self) -> int:
        return len(self.tickers)


class TickerView:
    def __init__(
        self,
        source: TickerSource,
        *,
        effect_duration_sec: float = 0.2,
        timers: TimerSource | None = None,
        catalog: InstrumentCatalog | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.source = source
        self._catalog = catalog if source.metadata_category is not None else None
        self._logger = logger or LOGGER
        self._tracker = PriceEffectTracker(effect_duration_sec, timers=timers, on_expire=self._on_effect_expired)
        self._rows: Dict[TickerKey, DisplayTicker] = {}
        self._listeners: List[Listener] = []
        self._metadata_task: asyncio.Task[bool] | None = None
        self._closed = False
        self._state = ViewState()

    @property
    def name(self) -> str:
        return self.source.name

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that removes it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # Refresh -------------------------------------------------------------
    async def refresh(self) -> None:
        """One polling cycle. Never raises for market-data failures."""

        if self._closed:
            return
        try:
            batch = await self.source.fetch()
        except MarketDataError as exc:
            if not self._closed:
                self._on_failure(exc)
            return
        if self._closed:
            # A response arriving after teardown must not touch state.
            return
        displays = self._tracker.apply(batch.records)
        self._ensure_metadata()
        self._rows = {ticker.key: self._join(ticker) for ticker in displays}
        self._update(
            loading=False,
            error=None,
            stale=False,
            has_data=True,
            market_errors=dict(batch.market_errors),
            last_updated=now_utc(),
        )

    def _on_failure(self, exc: MarketDataError) -> None:
        market_errors = exc.errors if isinstance(exc, AggregateFetchError) else {}
        self._logger.warning(
            "Ticker refresh failed",
            extra={"view": self.name, "error": exc.message, "first_load": not self._state.has_data},
        )
        self._update(
            loading=False,
            error=exc.message,
            stale=self._state.has_data,
            market_errors=dict(market_errors),
        )

    # Reference data -------------------------------------------------------
    def _join(self, ticker: DisplayTicker) -> DisplayTicker:
        if self._catalog is None or self.source.metadata_category is None:
            return ticker
        instrument = self._catalog.lookup(self.source.metadata_category, ticker.symbol)
        return replace(ticker, instrument=instrument) if instrument is not None else ticker

    def _ensure_metadata(self) -> None:
        category = self.source.metadata_category
        if self._catalog is None or category is None:
            return
        if not self._catalog.needs_load(category):
            return
        if self._metadata_task is not None and not self._metadata_task.done():
            return
        self._metadata_task = asyncio.create_task(self.load_metadata())
        self._metadata_task.add_done_callback(self._on_metadata_done)

    def _on_metadata_done(self, task: asyncio.Task[bool]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error("Instrument metadata task failed", exc_info=exc, extra={"view": self.name})

    async def load_metadata(self) -> bool:
        """Load this view's instrument metadata and re-join the current rows."""

        category = self.source.metadata_category
        if self._catalog is None or category is None:
            return False
        loaded = await self._catalog.ensure_loaded(category)
        if self._closed:
            return loaded
        if loaded:
            self._rows = {key: self._join(ticker) for key, ticker in self._rows.items()}
        self._update()
        return loaded

    async def funding_history(self, symbol: str, limit: int | None = None) -> List[FundingRatePoint]:
        if self._catalog is None or self.source.metadata_category is None:
            return []
        return await self._catalog.funding_history(self.source.metadata_category, symbol, limit)

    # Effects ----------------------------------------------------------------
    def _on_effect_expired(self, key: TickerKey) -> None:
        ticker = self._rows.get(key)
        if ticker is None or self._closed:
            return
        self._rows[key] = replace(ticker, effect=self._tracker.effect(key))
        self._update()

    # Display controls -------------------------------------------------------
    def set_search_term(self, term: str) -> None:
        self._update(search_term=term)

    def set_sort(self, sort_by: SortField | str, direction: SortDirection | str | None = None) -> None:
        sort_field = SortField(sort_by)
        sort_direction = SortDirection(direction) if direction is not None else self._state.sort.direction
        self._update(sort=SortCriterion(field=sort_field, direction=sort_direction))

    def toggle_sort_direction(self) -> None:
        current = self._state.sort
        self._update(sort=replace(current, direction=current.direction.toggled()))

    def set_market_filter(self, market: str | None) -> None:
        self._update(market_filter=market)

    def _update(self, **changes: object) -> None:
        state = replace(self._state, **changes)
        tickers = build_display_list(
            list(self._rows.values()), state.search_term, state.sort, state.market_filter
        )
        category = self.source.metadata_category
        metadata_status = self._catalog.status(category) if self._catalog and category else None
        metadata_error = self._catalog.error(category) if self._catalog and category else None
        self._state = replace(
            state,
            tickers=tickers,
            metadata_status=metadata_status,
            metadata_error=metadata_error,
        )
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                self._logger.exception("View listener failed", extra={"view": self.name})

    def close(self) -> None:
        """Stop reacting: cancel effect timers and any metadata load."""

        if self._closed:
            return
        self._closed = True
        self._tracker.close()
        if self._metadata_task is not None and not self._metadata_task.done():
            self._metadata_task.cancel()
        self._listeners.clear()


__all__ = ["TickerView", "ViewState"]
