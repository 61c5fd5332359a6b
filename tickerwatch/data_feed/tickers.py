"""Parsing of ticker payloads into :class:`TickerRecord` objects."""
from __future__ import annotations

import logging
from typing import Any, List, Mapping

from tickerwatch.core.enums import BithumbMarket, BybitCategory, Exchange
from tickerwatch.core.types import Symbol

from .models import TickerRecord
from .normalize import normalize_fraction_percent, normalize_percent, optional_str

LOGGER = logging.getLogger(__name__)

# Bybit camelCase field -> TickerRecord attribute for the optional fields.
_BYBIT_OPTIONAL_FIELDS: Mapping[str, str] = {
    "indexPrice": "index_price",
    "markPrice": "mark_price",
    "usdIndexPrice": "usd_index_price",
    "prevPrice24h": "prev_price_24h",
    "highPrice24h": "high_price_24h",
    "lowPrice24h": "low_price_24h",
    "prevPrice1h": "prev_price_1h",
    "bid1Size": "bid_size",
    "ask1Size": "ask_size",
    "openInterest": "open_interest",
    "openInterestValue": "open_interest_value",
    "fundingRate": "funding_rate",
    "nextFundingTime": "next_funding_time",
    "basisRate": "basis_rate",
    "basis": "basis",
    "deliveryFeeRate": "delivery_fee_rate",
    "deliveryTime": "delivery_time",
    "predictedDeliveryPrice": "predicted_delivery_price",
}


def parse_bybit_ticker(category: BybitCategory, raw: Mapping[str, Any]) -> TickerRecord:
    """Convert one ``/v5/market/tickers`` list entry."""

    optional = {attr: optional_str(raw.get(key)) for key, attr in _BYBIT_OPTIONAL_FIELDS.items()}
    return TickerRecord(
        exchange=Exchange.BYBIT,
        symbol=Symbol(str(raw["symbol"])),
        market=category.value,
        last_price=str(raw.get("lastPrice", "")),
        bid_price=str(raw.get("bid1Price", "")),
        ask_price=str(raw.get("ask1Price", "")),
        change_24h_pct=normalize_fraction_percent(optional_str(raw.get("price24hPcnt"))),
        volume_24h=str(raw.get("volume24h", "")),
        turnover_24h=str(raw.get("turnover24h", "")),
        **optional,
    )


def parse_bybit_ticker_response(category: BybitCategory, payload: Mapping[str, Any] | None) -> List[TickerRecord]:
    """Convert the ``result`` object of ``/v5/market/tickers``.

    Entries without a symbol are skipped; Bybit never sends them but a malformed
    row must not poison the whole snapshot.
    """

    if not payload:
        return []
    records: List[TickerRecord] = []
    for raw in payload.get("list", []) or []:
        if not raw.get("symbol"):
            LOGGER.debug("Skipping Bybit ticker row without symbol", extra={"category": category.value})
            continue
        records.append(parse_bybit_ticker(category, raw))
    return records


def parse_bithumb_ticker(market: BithumbMarket, symbol: str, raw: Mapping[str, Any], snapshot_date: str) -> TickerRecord:
    """Convert one ``data[<coin>]`` entry of ``/public/ticker/ALL_<market>``."""

    return TickerRecord(
        exchange=Exchange.BITHUMB,
        symbol=Symbol(symbol),
        market=market.value,
        last_price=str(raw.get("closing_price", "")),
        change_24h_pct=normalize_percent(optional_str(raw.get("fluctate_rate_24H"))),
        volume_24h=str(raw.get("units_traded_24H", "")),
        turnover_24h=str(raw.get("acc_trade_value_24H", "")),
        prev_price_24h=optional_str(raw.get("prev_closing_price")),
        high_price_24h=optional_str(raw.get("max_price")),
        low_price_24h=optional_str(raw.get("min_price")),
        price_change_24h=optional_str(raw.get("fluctate_24H")),
        base_coin=symbol,
        quote_coin=market.value,
        timestamp=snapshot_date,
    )


def parse_bithumb_ticker_response(market: BithumbMarket, data: Mapping[str, Any] | None) -> List[TickerRecord]:
    """Convert the ``data`` object; its ``date`` key is the snapshot time, not a coin."""

    if not data:
        return []
    snapshot_date = str(data.get("date", "")) if isinstance(data.get("date"), (str, int)) else ""
    records: List[TickerRecord] = []
    for symbol, raw in data.items():
        if symbol == "date" or not isinstance(raw, Mapping):
            continue
        records.append(parse_bithumb_ticker(market, symbol, raw, snapshot_date))
    return records


__all__ = [
    "parse_bithumb_ticker",
    "parse_bithumb_ticker_response",
    "parse_bybit_ticker",
    "parse_bybit_ticker_response",
]
