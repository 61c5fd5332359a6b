from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Tuple

import httpx
import pytest

from tickerwatch.core.enums import BybitCategory, Exchange
from tickerwatch.core.types import Symbol
from tickerwatch.data_feed.models import FundingRatePoint, InstrumentMetadata, TickerRecord
from tickerwatch.market.sources import TickerBatch


@dataclass
class FakeTimerHandle:
    when: float
    callback: Callable[..., Any]
    args: Tuple[Any, ...]
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimers:
    """Manual clock implementing ``call_later``; :meth:`advance` fires due handles."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: List[FakeTimerHandle] = []

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeTimerHandle:
        handle = FakeTimerHandle(self.now + delay, callback, args)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> List[FakeTimerHandle]:
        return [handle for handle in self.handles if not handle.cancelled and not handle.fired]

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = sorted((h for h in self.pending if h.when <= self.now), key=lambda h: h.when)
        for handle in due:
            if handle.cancelled:
                continue
            handle.fired = True
            handle.callback(*handle.args)


@pytest.fixture
def fake_timers() -> FakeTimers:
    return FakeTimers()


@pytest.fixture
def ticker_factory() -> Callable[..., TickerRecord]:
    def _factory(symbol: str = "BTCUSDT", last_price: str = "100", **overrides: Any) -> TickerRecord:
        payload: Dict[str, Any] = {
            "exchange": overrides.pop("exchange", Exchange.BYBIT),
            "symbol": Symbol(symbol),
            "market": overrides.pop("market", "spot"),
            "last_price": last_price,
        }
        payload.update(overrides)
        return TickerRecord(**payload)

    return _factory


@pytest.fixture
def bithumb_ticker_factory(ticker_factory) -> Callable[..., TickerRecord]:
    def _factory(symbol: str, market: str = "KRW", last_price: str = "1000", **overrides: Any) -> TickerRecord:
        return ticker_factory(
            symbol,
            last_price,
            exchange=Exchange.BITHUMB,
            market=market,
            base_coin=symbol,
            quote_coin=market,
            **overrides,
        )

    return _factory


def json_session(
    handler: Callable[[httpx.Request], httpx.Response],
    base_url: str = "https://api.example.test",
) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=base_url)


@pytest.fixture
def recorded_requests() -> List[httpx.Request]:
    return []


@pytest.fixture
def mock_session(recorded_requests) -> Callable[..., httpx.AsyncClient]:
    """Build an ``AsyncClient`` answering from a ``path -> (status, body)`` table."""

    def _build(routes: Mapping[str, Tuple[int, Any]], base_url: str = "https://api.example.test") -> httpx.AsyncClient:
        def handler(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            status, body = routes.get(request.url.path, (404, {"message": "no route"}))
            if isinstance(body, (bytes, str)):
                return httpx.Response(status, content=body)
            return httpx.Response(status, content=json.dumps(body), headers={"content-type": "application/json"})

        return json_session(handler, base_url)

    return _build


class FakeReferenceClient:
    """Stand-in for :class:`BybitClient` reference endpoints with call counters."""

    def __init__(self, instruments: Mapping[BybitCategory, List[InstrumentMetadata]] | None = None) -> None:
        self.instruments = dict(instruments or {})
        self.instrument_calls: List[BybitCategory] = []
        self.funding_calls: List[Tuple[BybitCategory, str, int]] = []
        self.fail_with: Exception | None = None
        self.gate: Any = None

    async def fetch_instruments(self, category: BybitCategory) -> List[InstrumentMetadata]:
        self.instrument_calls.append(category)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.instruments.get(category, []))

    async def fetch_funding_history(self, category: BybitCategory, symbol: str, limit: int = 20) -> List[FundingRatePoint]:
        self.funding_calls.append((category, str(symbol), limit))
        if self.gate is not None:
            await self.gate.wait()
        return [FundingRatePoint(symbol=Symbol(str(symbol)), rate="0.0001", timestamp_ms=1_700_000_000_000)]


@pytest.fixture
def reference_client() -> FakeReferenceClient:
    return FakeReferenceClient(
        {
            BybitCategory.LINEAR: [
                InstrumentMetadata(category=BybitCategory.LINEAR, symbol=Symbol("BTCUSDT"), tick_size="0.10"),
                InstrumentMetadata(category=BybitCategory.LINEAR, symbol=Symbol("ETHUSDT"), tick_size="0.01"),
            ]
        }
    )


class ScriptedSource:
    """Ticker source returning queued batches or raising queued errors."""

    def __init__(self, *, metadata_category: BybitCategory | None = None, name: str = "scripted") -> None:
        self.name = name
        self.exchange = Exchange.BYBIT
        self.metadata_category = metadata_category
        self.script: List[TickerBatch | Exception] = []
        self.calls = 0

    def push(self, item: TickerBatch | Exception) -> None:
        self.script.append(item)

    async def fetch(self) -> TickerBatch:
        self.calls += 1
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def scripted_source() -> ScriptedSource:
    return ScriptedSource()

