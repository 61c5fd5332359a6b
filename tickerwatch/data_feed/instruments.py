"""Parsing of Bybit reference data: instrument filters and funding history."""
from __future__ import annotations

from typing import Any, List, Mapping

from tickerwatch.core.enums import BybitCategory
from tickerwatch.core.types import Symbol

from .models import FundingRatePoint, InstrumentMetadata
from .normalize import optional_str


def parse_instrument(category: BybitCategory, raw: Mapping[str, Any]) -> InstrumentMetadata:
    """Convert one ``/v5/market/instruments-info`` entry.

    Spot instruments report ``basePrecision`` instead of ``qtyStep`` and carry
    no settle coin or contract type.
    """

    price_filter = raw.get("priceFilter") or {}
    lot_filter = raw.get("lotSizeFilter") or {}
    qty_step = lot_filter.get("qtyStep", lot_filter.get("basePrecision"))
    return InstrumentMetadata(
        category=category,
        symbol=Symbol(str(raw["symbol"])),
        status=str(raw.get("status", "")),
        base_coin=str(raw.get("baseCoin", "")),
        quote_coin=str(raw.get("quoteCoin", "")),
        settle_coin=optional_str(raw.get("settleCoin")),
        contract_type=optional_str(raw.get("contractType")),
        tick_size=optional_str(price_filter.get("tickSize")),
        min_price=optional_str(price_filter.get("minPrice")),
        max_price=optional_str(price_filter.get("maxPrice")),
        qty_step=optional_str(qty_step),
        min_order_qty=optional_str(lot_filter.get("minOrderQty")),
        max_order_qty=optional_str(lot_filter.get("maxOrderQty")),
    )


def parse_instruments_response(category: BybitCategory, payload: Mapping[str, Any] | None) -> List[InstrumentMetadata]:
    if not payload:
        return []
    return [parse_instrument(category, raw) for raw in payload.get("list", []) or [] if raw.get("symbol")]


def parse_funding_history_response(payload: Mapping[str, Any] | None) -> List[FundingRatePoint]:
    """Convert ``/v5/market/funding/history`` into chronological points.

    Bybit returns newest first; the list is re-sorted oldest -> newest.
    """

    if not payload:
        return []
    points: List[FundingRatePoint] = []
    for raw in payload.get("list", []) or []:
        points.append(
            FundingRatePoint(
                symbol=Symbol(str(raw.get("symbol", ""))),
                rate=str(raw.get("fundingRate", "")),
                timestamp_ms=int(raw.get("fundingRateTimestamp", 0)),
            )
        )
    points.sort(key=lambda point: point.timestamp_ms)
    return points


__all__ = ["parse_funding_history_response", "parse_instrument", "parse_instruments_response"]
