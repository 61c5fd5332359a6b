"""Fiat exchange-rate client with a per-UTC-day cache.

The upstream (exchangerate-api.com v6) refreshes once a day, so a successful
response is reused until the UTC calendar date changes.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Mapping

import httpx

from tickerwatch.config.models import ExchangeRateConfig
from tickerwatch.core.errors import TransportError, UpstreamError
from tickerwatch.core.time_utils import from_unix_seconds, now_utc

from .models import ExchangeRateSnapshot
from .normalize import MALFORMED_PAYLOAD_ERRORS

LOGGER = logging.getLogger(__name__)


class ExchangeRateClient:
    """Fetch ``latest/<base>`` conversion rates, cached per base until UTC midnight."""

    def __init__(
        self,
        config: ExchangeRateConfig,
        session: httpx.AsyncClient | None = None,
        *,
        timeout: float = 5.0,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._endpoint = config.endpoint.rstrip("/")
        self._api_key = config.api_key or ""
        self._default_base = config.base_currency.upper()
        self._client = session or httpx.AsyncClient(timeout=timeout)
        self._clock = clock
        self._cache: Dict[str, tuple[date, ExchangeRateSnapshot]] = {}

    async def aclose(self) -> None:
        await self._client.aclose()

    def cached(self, base: str | None = None) -> ExchangeRateSnapshot | None:
        """Return today's cached snapshot for ``base`` without fetching."""

        code = (base or self._default_base).upper()
        entry = self._cache.get(code)
        if entry is None:
            return None
        fetched_on, snapshot = entry
        if fetched_on != self._clock().date():
            return None
        return snapshot

    async def fetch_rates(self, base: str | None = None) -> ExchangeRateSnapshot:
        code = (base or self._default_base).upper()
        snapshot = self.cached(code)
        if snapshot is not None:
            LOGGER.debug("Using cached exchange rates", extra={"base": code})
            return snapshot

        url = f"{self._endpoint}/{self._api_key}/latest/{code}"
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise TransportError(f"Failed to fetch exchange rates: {exc}") from exc
        try:
            payload: Mapping[str, Any] = response.json()
        except ValueError:
            payload = {}

        if payload.get("result") == "error":
            error_type = payload.get("error-type") or "Failed to fetch exchange rates due to API error"
            raise UpstreamError(str(error_type), str(error_type), payload)
        if response.is_error or payload.get("result") != "success":
            raise TransportError(
                f"Failed to fetch exchange rates. HTTP status: {response.status_code}",
                status_code=response.status_code,
            )

        snapshot = _parse_snapshot(payload, fetched_at=self._clock())
        self._cache[code] = (self._clock().date(), snapshot)
        LOGGER.info(
            "Fetched exchange rates",
            extra={"base": code, "quotes": len(snapshot.rates), "last_update": snapshot.last_update_utc.isoformat()},
        )
        return snapshot


def _parse_snapshot(payload: Mapping[str, Any], *, fetched_at: datetime) -> ExchangeRateSnapshot:
    try:
        rates = {str(code).upper(): float(rate) for code, rate in (payload.get("conversion_rates") or {}).items()}
        last_update = from_unix_seconds(int(payload["time_last_update_unix"]))
        next_unix = payload.get("time_next_update_unix")
        next_update = from_unix_seconds(int(next_unix)) if next_unix else None
    except MALFORMED_PAYLOAD_ERRORS as exc:
        raise TransportError(f"Malformed exchange-rate payload: {exc}") from exc
    return ExchangeRateSnapshot(
        base_code=str(payload.get("base_code", "")).upper(),
        rates=rates,
        last_update_utc=last_update,
        next_update_utc=next_update,
        fetched_at=fetched_at,
    )


__all__ = ["ExchangeRateClient"]
