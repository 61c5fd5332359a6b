"""Shared type aliases for readability and contract enforcement."""
from __future__ import annotations

from typing import Any, Callable, NewType, Protocol, Tuple, TypeAlias

Symbol = NewType("Symbol", str)

# (exchange, symbol, market) uniquely identifies a ticker inside one snapshot.
TickerKey: TypeAlias = Tuple[str, str, str]


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class TimerSource(Protocol):
    """Anything that can schedule a callback, e.g. an asyncio event loop."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> Cancellable: ...
