"""Bithumb public ticker client.

``GET /public/ticker/ALL_<market>`` returns every coin quoted in one market
(KRW, USDT or BTC). A response with ``status`` other than ``"0000"`` is a
business error; its ``message`` is surfaced through
:class:`~tickerwatch.core.errors.UpstreamError`.
"""
from __future__ import annotations

import logging
import time
from typing import Any, List, Mapping

import httpx

from tickerwatch.config.models import BithumbConfig
from tickerwatch.core.enums import BithumbMarket
from tickerwatch.core.errors import TransportError, UpstreamError

from .models import TickerRecord
from .normalize import MALFORMED_PAYLOAD_ERRORS
from .tickers import parse_bithumb_ticker_response

LOGGER = logging.getLogger(__name__)

STATUS_OK = "0000"


class BithumbClient:
    """Async REST client for the Bithumb public ticker endpoint."""

    def __init__(
        self,
        config: BithumbConfig,
        session: httpx.AsyncClient | None = None,
        *,
        timeout: float = 5.0,
    ) -> None:
        self._client = session or httpx.AsyncClient(base_url=config.rest_endpoint, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_market(self, market: BithumbMarket) -> List[TickerRecord]:
        """Return every ticker quoted in ``market``."""

        path = f"/public/ticker/ALL_{market.value}"
        start = time.perf_counter()
        try:
            response = await self._client.get(path)
        except httpx.HTTPError as exc:
            raise TransportError(f"Failed to fetch Bithumb tickers for market {market.value}: {exc}") from exc
        if response.is_error:
            raise TransportError(
                f"Failed to fetch Bithumb tickers for market {market.value} (HTTP {response.status_code})",
                status_code=response.status_code,
            )
        try:
            payload: Mapping[str, Any] = response.json()
        except ValueError as exc:
            raise TransportError(f"Invalid JSON from Bithumb {market.value} market") from exc

        status = str(payload.get("status", ""))
        if status != STATUS_OK:
            raise UpstreamError(status, payload.get("message") or f"Unknown error for {market.value} market", payload)
        data = payload.get("data")
        if not isinstance(data, Mapping):
            raise UpstreamError(status, f"Invalid or empty response for {market.value} market", payload)
        try:
            records = parse_bithumb_ticker_response(market, data)
        except MALFORMED_PAYLOAD_ERRORS as exc:
            raise TransportError(f"Malformed Bithumb {market.value} payload: {exc}") from exc
        LOGGER.debug(
            "Bithumb %s ok",
            path,
            extra={"market": market.value, "rows": len(records), "latency_ms": round((time.perf_counter() - start) * 1_000.0, 1)},
        )
        return records


__all__ = ["BithumbClient"]
