"""View-side models: diffed tickers and sort criteria."""
from __future__ import annotations

from dataclasses import dataclass

from tickerwatch.core.enums import PriceEffect, SortDirection, SortField
from tickerwatch.core.types import TickerKey
from tickerwatch.data_feed.models import InstrumentMetadata, TickerRecord


@dataclass(frozen=True, slots=True)
class DisplayTicker:
    """A :class:`TickerRecord` plus the transient effect and joined metadata.

    ``effect`` is presentation state owned by the diff engine; it says nothing
    about the market itself.
    """

    record: TickerRecord
    effect: PriceEffect = PriceEffect.NONE
    instrument: InstrumentMetadata | None = None

    @property
    def key(self) -> TickerKey:
        return self.record.key

    @property
    def symbol(self) -> str:
        return str(self.record.symbol)

    @property
    def tick_size(self) -> str | None:
        return self.instrument.tick_size if self.instrument else None


@dataclass(frozen=True, slots=True)
class SortCriterion:
    """Field + direction; one instance per logical view."""

    field: SortField = SortField.TURNOVER
    direction: SortDirection = SortDirection.DESC

    @classmethod
    def parse(cls, field: str, direction: str = SortDirection.DESC.value) -> "SortCriterion":
        return cls(field=SortField(field), direction=SortDirection(direction))


__all__ = ["DisplayTicker", "SortCriterion"]
