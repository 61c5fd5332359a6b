"""Enumerations shared across viewer subsystems.

Exchanges, sub-markets, price effects and sort options are referenced by the
feed clients, the diff engine and the view model alike, so they live in the core
package.
"""
from __future__ import annotations

from enum import Enum


class Exchange(str, Enum):
    """Upstream exchanges polled by the viewer."""

    BYBIT = "bybit"
    BITHUMB = "bithumb"


class BybitCategory(str, Enum):
    """Bybit V5 product categories."""

    SPOT = "spot"
    LINEAR = "linear"
    INVERSE = "inverse"


class BithumbMarket(str, Enum):
    """Bithumb quote-currency markets."""

    KRW = "KRW"
    USDT = "USDT"
    BTC = "BTC"


class PriceEffect(str, Enum):
    """Transient price-move signal derived by the diff engine."""

    NONE = "none"
    UP = "up"
    DOWN = "down"
    FLAT = "flat"

    @property
    def is_active(self) -> bool:
        return self in (PriceEffect.UP, PriceEffect.DOWN)


class SortField(str, Enum):
    """Fields the ticker list can be ordered by."""

    NONE = "none"
    SYMBOL = "symbol"
    LAST_PRICE = "lastPrice"
    CHANGE_PERCENT = "changePercent"
    VOLUME = "volume"
    TURNOVER = "turnover"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def toggled(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


class MetadataStatus(str, Enum):
    """Lifecycle of a cached reference-data category."""

    MISSING = "missing"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"
