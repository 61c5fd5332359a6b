"""Filter and sort the diffed ticker list for display.

Everything here is pure: inputs are never mutated and the same arguments
always produce the same ordering.
"""
from __future__ import annotations

from decimal import Decimal
from functools import cmp_to_key
from typing import Dict, List, Sequence

from tickerwatch.core.enums import SortDirection, SortField
from tickerwatch.data_feed.normalize import is_blank, parse_decimal

from .models import DisplayTicker, SortCriterion

ALL_MARKETS = "ALL"

# SortField -> TickerRecord attribute backing it.
SORT_ATTRIBUTES: Dict[SortField, str] = {
    SortField.SYMBOL: "symbol",
    SortField.LAST_PRICE: "last_price",
    SortField.CHANGE_PERCENT: "change_24h_pct",
    SortField.VOLUME: "volume_24h",
    SortField.TURNOVER: "turnover_24h",
}


def _matches(ticker: DisplayTicker, needle: str) -> bool:
    record = ticker.record
    return any(needle in candidate.lower() for candidate in (str(record.symbol), record.pair, record.search_key))


def filter_tickers(
    tickers: Sequence[DisplayTicker],
    search_term: str = "",
    market: str | None = None,
) -> List[DisplayTicker]:
    needle = search_term.strip().lower()
    selected = []
    for ticker in tickers:
        if market and market.upper() != ALL_MARKETS and ticker.record.market.upper() != market.upper():
            continue
        if needle and not _matches(ticker, needle):
            continue
        selected.append(ticker)
    return selected


def compare_values(left: str | None, right: str | None) -> int:
    """Ascending comparison: missing first, numeric when both parse, else text."""

    if left is None and right is None:
        return 0
    if left is None:
        return -1
    if right is None:
        return 1
    left_num: Decimal | None = parse_decimal(left)
    right_num: Decimal | None = parse_decimal(right)
    if left_num is not None and right_num is not None:
        return (left_num > right_num) - (left_num < right_num)
    return (left > right) - (left < right)


def _sort_value(ticker: DisplayTicker, attribute: str) -> str | None:
    value = getattr(ticker.record, attribute, None)
    return None if is_blank(value) else str(value)


def sort_tickers(tickers: Sequence[DisplayTicker], criterion: SortCriterion) -> List[DisplayTicker]:
    attribute = SORT_ATTRIBUTES.get(criterion.field)
    if attribute is None:
        return list(tickers)
    sign = -1 if criterion.direction is SortDirection.DESC else 1

    def _cmp(left: DisplayTicker, right: DisplayTicker) -> int:
        return sign * compare_values(_sort_value(left, attribute), _sort_value(right, attribute))

    # sorted() is stable, so equal keys keep their source order in both directions.
    return sorted(tickers, key=cmp_to_key(_cmp))


def build_display_list(
    tickers: Sequence[DisplayTicker],
    search_term: str = "",
    criterion: SortCriterion | None = None,
    market: str | None = None,
) -> List[DisplayTicker]:
    return sort_tickers(filter_tickers(tickers, search_term, market), criterion or SortCriterion())


__all__ = ["ALL_MARKETS", "SORT_ATTRIBUTES", "build_display_list", "compare_values", "filter_tickers", "sort_tickers"]
