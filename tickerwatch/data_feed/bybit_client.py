"""Bybit V5 public market-data client.

The client covers the read-only endpoints the viewer polls:

* ``GET /v5/market/tickers`` for per-category ticker snapshots;
* ``GET /v5/market/instruments-info`` for tick size and coin metadata;
* ``GET /v5/market/funding/history`` for settled funding rates (derivatives).

Every call performs exactly one logical request and never retries; the polling
scheduler simply tries again on the next tick. Failures are raised as
:class:`~tickerwatch.core.errors.TransportError` (network, HTTP status, bad JSON)
or :class:`~tickerwatch.core.errors.UpstreamError` (``retCode`` != 0).
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Optional

import httpx

from tickerwatch.config.models import BybitConfig
from tickerwatch.core.enums import BybitCategory
from tickerwatch.core.errors import NotFoundError, TransportError, UpstreamError
from tickerwatch.core.types import Symbol

from .instruments import parse_funding_history_response, parse_instruments_response
from .models import FundingRatePoint, InstrumentMetadata, TickerRecord
from .normalize import MALFORMED_PAYLOAD_ERRORS
from .tickers import parse_bybit_ticker_response

LOGGER = logging.getLogger(__name__)

INSTRUMENTS_PAGE_LIMIT = 1000
MAX_INSTRUMENT_PAGES = 20


class BybitClient:
    """Async REST client for Bybit public market data.

    Parameters
    ----------
    config:
        :class:`tickerwatch.config.models.BybitConfig` with the REST endpoint.
    session:
        Optional pre-configured :class:`httpx.AsyncClient` (e.g. with a
        ``MockTransport`` in tests).
    """

    def __init__(
        self,
        config: BybitConfig,
        session: httpx.AsyncClient | None = None,
        *,
        timeout: float = 5.0,
    ) -> None:
        self._rest_base = config.rest_endpoint
        self._client = session or httpx.AsyncClient(base_url=self._rest_base, timeout=timeout)

    # ------------------------------------------------------------------
    # REST helpers
    # ------------------------------------------------------------------
    async def aclose(self) -> None:
        """Close the underlying HTTP client."""

        await self._client.aclose()

    async def _request(self, path: str, *, params: Mapping[str, Any], context: str) -> Mapping[str, Any] | None:
        """GET ``path`` and return the ``result`` field of the Bybit envelope."""

        start = time.perf_counter()
        try:
            response = await self._client.get(path, params=dict(params))
        except httpx.HTTPError as exc:
            raise TransportError(f"Failed to fetch Bybit {context}: {exc}") from exc
        latency_ms = (time.perf_counter() - start) * 1_000.0

        if response.is_error:
            raise TransportError(
                _error_message(response) or f"Failed to fetch Bybit {context} (HTTP {response.status_code})",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(f"Invalid JSON from Bybit {context}") from exc
        if not isinstance(payload, Mapping):
            raise TransportError(f"Invalid JSON from Bybit {context}")

        ret_code = payload.get("retCode", -1)
        if ret_code != 0:
            raise UpstreamError(ret_code, payload.get("retMsg") or "Invalid API response structure", payload)
        result = payload.get("result")
        if not isinstance(result, Mapping) or result.get("list") is None:
            raise UpstreamError(ret_code, payload.get("retMsg") or "Invalid API response structure", payload)
        LOGGER.debug("Bybit %s ok", path, extra={"context": context, "latency_ms": round(latency_ms, 1)})
        return result

    # ------------------------------------------------------------------
    # Public market data
    # ------------------------------------------------------------------
    async def fetch_tickers(self, category: BybitCategory) -> List[TickerRecord]:
        """Return the full ticker snapshot for ``category``."""

        result = await self._request(
            "/v5/market/tickers",
            params={"category": category.value},
            context=f"{category.value} tickers",
        )
        try:
            return parse_bybit_ticker_response(category, result)
        except MALFORMED_PAYLOAD_ERRORS as exc:
            raise TransportError(f"Malformed Bybit {category.value} ticker payload: {exc}") from exc

    async def fetch_ticker(self, category: BybitCategory, symbol: Symbol | str) -> TickerRecord:
        """Return one ticker; raises :class:`NotFoundError` when Bybit omits it."""

        result = await self._request(
            "/v5/market/tickers",
            params={"category": category.value, "symbol": str(symbol)},
            context=f"{category.value} ticker {symbol}",
        )
        try:
            records = parse_bybit_ticker_response(category, result)
        except MALFORMED_PAYLOAD_ERRORS as exc:
            raise TransportError(f"Malformed Bybit {category.value} ticker payload: {exc}") from exc
        for record in records:
            if record.symbol == symbol:
                return record
        raise NotFoundError(f"{symbol} not found in Bybit {category.value} tickers")

    async def fetch_instruments(
        self,
        category: BybitCategory,
        symbol: Optional[Symbol | str] = None,
    ) -> List[InstrumentMetadata]:
        """Return instrument metadata for ``category`` (optionally one symbol).

        Derivative categories are cursor-paginated; pages are followed until
        ``nextPageCursor`` is empty.
        """

        params: Dict[str, Any] = {"category": category.value}
        if symbol:
            params["symbol"] = str(symbol)
        else:
            params["limit"] = INSTRUMENTS_PAGE_LIMIT
        instruments: List[InstrumentMetadata] = []
        for _ in range(MAX_INSTRUMENT_PAGES):
            result = await self._request(
                "/v5/market/instruments-info",
                params=params,
                context=f"{category.value} instruments",
            )
            try:
                instruments.extend(parse_instruments_response(category, result))
            except MALFORMED_PAYLOAD_ERRORS as exc:
                raise TransportError(f"Malformed Bybit {category.value} instruments payload: {exc}") from exc
            cursor = (result or {}).get("nextPageCursor")
            if not cursor or symbol:
                break
            params = {**params, "cursor": cursor}
        return instruments

    async def fetch_funding_history(
        self,
        category: BybitCategory,
        symbol: Symbol | str,
        limit: int = 20,
    ) -> List[FundingRatePoint]:
        """Return funding-rate history, oldest first. Spot has none: ``[]``."""

        if category is BybitCategory.SPOT:
            return []
        result = await self._request(
            "/v5/market/funding/history",
            params={"category": category.value, "symbol": str(symbol), "limit": limit},
            context=f"{category.value} funding history {symbol}",
        )
        try:
            return parse_funding_history_response(result)
        except MALFORMED_PAYLOAD_ERRORS as exc:
            raise TransportError(f"Malformed Bybit funding payload for {symbol}: {exc}") from exc


def _error_message(response: httpx.Response) -> str | None:
    """Extract ``retMsg`` from an error response body when it is JSON."""

    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, Mapping):
        message = body.get("retMsg")
        return str(message) if message else None
    return None


__all__ = ["BybitClient"]
