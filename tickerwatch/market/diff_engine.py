"""Tick-to-tick price comparison and the short-lived highlight effects.

Each key is either idle (effect ``none``/``flat``, no timer) or active
(``up``/``down``, exactly one pending timer). A new movement cancels the old
timer before scheduling the next one; an unchanged price settles the key
immediately.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from typing import Callable, Dict, Iterable, List, Sequence

from tickerwatch.core.enums import PriceEffect
from tickerwatch.core.types import Cancellable, TickerKey, TimerSource
from tickerwatch.data_feed.models import TickerRecord
from tickerwatch.data_feed.normalize import is_blank, parse_decimal

from .models import DisplayTicker

CARRY_FORWARD_FIELDS: tuple[str, ...] = ("usd_index_price",)


@dataclass(slots=True)
class _KeyState:
    previous: TickerRecord
    effect: PriceEffect = PriceEffect.NONE
    timer: Cancellable | None = None


def compare_prices(previous: str | None, current: str | None) -> PriceEffect:
    """Direction of ``current`` relative to ``previous``; ``none`` if either is unusable."""

    before = parse_decimal(previous)
    after = parse_decimal(current)
    if before is None or after is None:
        return PriceEffect.NONE
    if after > before:
        return PriceEffect.UP
    if after < before:
        return PriceEffect.DOWN
    return PriceEffect.FLAT


class PriceEffectTracker:
    """Diff consecutive snapshots of one view and own their effect timers."""

    def __init__(
        self,
        duration_sec: float = 0.2,
        *,
        timers: TimerSource | None = None,
        on_expire: Callable[[TickerKey], None] | None = None,
        carry_forward: Sequence[str] = CARRY_FORWARD_FIELDS,
    ) -> None:
        self._duration = duration_sec
        self._timers = timers
        self._on_expire = on_expire
        self._carry_forward = tuple(carry_forward)
        self._states: Dict[TickerKey, _KeyState] = {}
        self._closed = False

    @property
    def pending_timers(self) -> int:
        return sum(1 for state in self._states.values() if state.timer is not None)

    def effect(self, key: TickerKey) -> PriceEffect:
        state = self._states.get(key)
        return state.effect if state else PriceEffect.NONE

    def apply(self, records: Iterable[TickerRecord]) -> List[DisplayTicker]:
        """Diff ``records`` against the previous tick and return them with effects."""

        if self._closed:
            return [DisplayTicker(record=record) for record in records]
        output: List[DisplayTicker] = []
        next_states: Dict[TickerKey, _KeyState] = {}
        for record in records:
            key = record.key
            if key in next_states:
                continue
            state = self._states.pop(key, None)
            if state is None:
                next_states[key] = _KeyState(previous=record)
                output.append(DisplayTicker(record=record))
                continue
            record = self._carry(state.previous, record)
            effect = compare_prices(state.previous.last_price, record.last_price)
            self._cancel(state)
            if effect.is_active:
                state.timer = self._schedule(key)
            state.effect = effect
            state.previous = record
            next_states[key] = state
            output.append(DisplayTicker(record=record, effect=effect))
        # Keys missing from this snapshot start fresh if they come back.
        for state in self._states.values():
            self._cancel(state)
        self._states = next_states
        return output

    def close(self) -> None:
        """Cancel every pending timer; expiries after this are impossible."""

        self._closed = True
        for state in self._states.values():
            self._cancel(state)
        self._states.clear()

    def _carry(self, previous: TickerRecord, record: TickerRecord) -> TickerRecord:
        carried = {
            name: getattr(previous, name)
            for name in self._carry_forward
            if is_blank(getattr(record, name)) and not is_blank(getattr(previous, name))
        }
        return replace(record, **carried) if carried else record

    def _schedule(self, key: TickerKey) -> Cancellable:
        timers = self._timers if self._timers is not None else asyncio.get_running_loop()
        return timers.call_later(self._duration, self._expire, key)

    def _cancel(self, state: _KeyState) -> None:
        if state.timer is not None:
            state.timer.cancel()
            state.timer = None

    def _expire(self, key: TickerKey) -> None:
        state = self._states.get(key)
        if self._closed or state is None or state.timer is None:
            return
        state.timer = None
        state.effect = PriceEffect.FLAT
        if self._on_expire is not None:
            self._on_expire(key)


__all__ = ["CARRY_FORWARD_FIELDS", "PriceEffectTracker", "compare_prices"]
