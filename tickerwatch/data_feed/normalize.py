"""String normalization shared by the feed clients.

Bybit reports the 24h change as a raw fraction (``"0.0523"``) while Bithumb
already reports a percentage (``"5.23"``). Both end up as a signed string with
two decimals (``"+5.23"``). Values are handled as :class:`~decimal.Decimal` so
the upstream decimal strings are not distorted by binary floats.
"""
from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, DecimalException, InvalidOperation

_HUNDRED = Decimal(100)
_TWO_PLACES = Decimal("0.01")
_ZERO_PERCENT = "+0.00"
# Output shape of this module: explicit sign, exactly two decimals.
_FORMATTED_PERCENT = re.compile(r"^[+-]\d+\.\d{2}$")
# Raised by the payload parsers on rows of the wrong shape or absurd numbers.
MALFORMED_PAYLOAD_ERRORS = (KeyError, TypeError, ValueError, AttributeError, ArithmeticError)


def parse_decimal(value: object) -> Decimal | None:
    """Return a finite Decimal for ``value`` or ``None`` when it does not parse."""

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    return number


def is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def _format_signed(number: Decimal) -> str | None:
    try:
        magnitude = abs(number.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))
    except DecimalException:
        return None
    # -0 counts as non-negative; a tiny negative value keeps its sign ("-0.00").
    if number >= 0:
        return f"+{magnitude}"
    return f"-{magnitude}"


def _sign_fallback(raw: str | None) -> str:
    if not raw:
        return _ZERO_PERCENT
    if raw.startswith("-") or raw.startswith("+"):
        return raw
    return f"+{raw}"


def is_formatted_percent(raw: str | None) -> bool:
    """True for output of this module that cannot also be a raw Bybit fraction.

    Bybit never prefixes ``+`` and a fraction cannot fall below ``-1``, so only
    ``"+1.25"`` or ``"-3.00"`` style values qualify; ``"-0.05"`` does not.
    """

    if not raw or _FORMATTED_PERCENT.match(raw) is None:
        return False
    return raw.startswith("+") or Decimal(raw) <= -1


def normalize_fraction_percent(raw: str | None) -> str:
    """Format a raw fraction as a signed percentage.

    ``"0.0523"`` -> ``"+5.23"``; ``"-0.05"`` -> ``"-5.00"``. A value that is
    already formatted (``"-3.00"``, ``"+1.25"``) is returned unchanged. When
    the input is not numeric, a ``+`` is prefixed only if the string carries no
    sign (``"N/A"`` -> ``"+N/A"``).
    """

    if is_formatted_percent(raw):
        return raw  # type: ignore[return-value]
    number = parse_decimal(raw)
    if number is None:
        return _sign_fallback(raw)
    try:
        scaled = number * _HUNDRED
    except DecimalException:
        return _sign_fallback(raw)
    return _format_signed(scaled) or _sign_fallback(raw)


def normalize_percent(raw: str | None) -> str:
    """Same as :func:`normalize_fraction_percent` for values already in percent."""

    number = parse_decimal(raw)
    if number is None:
        return _sign_fallback(raw)
    return _format_signed(number) or _sign_fallback(raw)


def optional_str(value: object) -> str | None:
    """Upstream optional field -> ``None`` when absent, else its string form."""

    if value is None:
        return None
    return str(value)


__all__ = [
    "MALFORMED_PAYLOAD_ERRORS",
    "is_blank",
    "is_formatted_percent",
    "normalize_fraction_percent",
    "normalize_percent",
    "optional_str",
    "parse_decimal",
]
