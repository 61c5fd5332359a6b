"""Human-readable rendering of decimal strings."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from tickerwatch.core.time_utils import from_unix_ms
from tickerwatch.data_feed.normalize import parse_decimal

NOT_AVAILABLE = "N/A"

_SUFFIXES = ((Decimal("1e9"), "B"), (Decimal("1e6"), "M"), (Decimal("1e3"), "K"))


def _tick_decimals(tick_size: str | None) -> int | None:
    if not tick_size or parse_decimal(tick_size) is None:
        return None
    _, _, fraction = tick_size.partition(".")
    return len(fraction)


def _fixed(number: Decimal, decimals: int) -> str:
    quantum = Decimal(1).scaleb(-decimals)
    try:
        number = number.quantize(quantum, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # Exponent too large to quantize; format() still rounds.
        pass
    return f"{number:,.{decimals}f}"


def format_price(value: str | None, tick_size: str | None = None) -> str:
    """Tick-size precision when known, else 6/4/2 decimals by magnitude."""

    if value is None or value == "":
        return NOT_AVAILABLE
    number = parse_decimal(value)
    if number is None:
        return str(value)
    decimals = _tick_decimals(tick_size)
    if decimals is None:
        magnitude = abs(number)
        decimals = 6 if magnitude < 1 else 4 if magnitude < 100 else 2
    return _fixed(number, decimals)


def format_volume(value: str | None) -> str:
    number = parse_decimal(value)
    if number is None:
        return NOT_AVAILABLE
    magnitude = abs(number)
    for threshold, suffix in _SUFFIXES:
        if magnitude >= threshold:
            return f"{_fixed(number / threshold, 2)}{suffix}"
    if magnitude >= 100:
        return _fixed(number, 2)
    if magnitude >= 10:
        return _fixed(number, 3)
    return _fixed(number, 4)


def format_percent(value: str | None) -> str:
    return f"{value}%" if value else NOT_AVAILABLE


def format_timestamp_ms(value: str | int | None) -> str:
    """``YYYY-MM-DD HH:MM:SS UTC`` for epoch milliseconds."""

    if value is None or value == "" or value == 0 or value == "0":
        return NOT_AVAILABLE
    try:
        moment = from_unix_ms(int(value))
    except (TypeError, ValueError, OverflowError, OSError):
        return "Invalid Date"
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


__all__ = ["NOT_AVAILABLE", "format_percent", "format_price", "format_timestamp_ms", "format_volume"]
