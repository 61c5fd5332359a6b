"""Error hierarchy shared by the viewer subsystems.

Feed clients raise the most specific error available; the snapshot boundary and
the view state turn them into values so that no fetch failure ever reaches the
polling loop.
"""
from __future__ import annotations

from typing import Any, Mapping


class CoreError(Exception):
    """Base class for all custom exceptions in the application."""


class ConfigurationError(CoreError):
    """Raised when configuration files are missing or invalid."""


class MarketDataError(CoreError):
    """Raised for failures while fetching or parsing market data."""

    @property
    def message(self) -> str:
        return str(self)


class TransportError(MarketDataError):
    """Network/HTTP failure or an undecodable response body."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamError(MarketDataError):
    """The API answered but reported a business error (bad symbol, bad key, ...)."""

    def __init__(self, code: int | str, message: str, payload: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.payload = payload or {}


class AggregateFetchError(UpstreamError):
    """Every sub-market of an aggregated fetch failed."""

    def __init__(self, prefix: str, errors: Mapping[str, str]) -> None:
        joined = "\n".join(f"{market}: {message}" for market, message in errors.items())
        super().__init__("aggregate", f"{prefix}: {joined}")
        self.errors = dict(errors)


class PartialAggregateFailure(MarketDataError):
    """Some, but not all, sub-markets failed. Reported as a value, never raised."""

    def __init__(self, errors: Mapping[str, str]) -> None:
        markets = ", ".join(errors)
        super().__init__(f"Failed markets: {markets}")
        self.errors = dict(errors)


class NotFoundError(MarketDataError):
    """Requested symbol is absent from a snapshot."""
