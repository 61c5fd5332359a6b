"""Terminal rendering of the live ticker views with rich."""
from __future__ import annotations

import asyncio
import contextlib
from typing import Sequence

from rich import box
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tickerwatch.core.enums import PriceEffect
from tickerwatch.market.formatting import format_percent, format_price, format_volume
from tickerwatch.market.models import DisplayTicker
from tickerwatch.runtime.view import TickerView, ViewState

EFFECT_STYLES = {
    PriceEffect.UP: "bold green",
    PriceEffect.DOWN: "bold red",
    PriceEffect.FLAT: "",
    PriceEffect.NONE: "",
}
EFFECT_MARKERS = {PriceEffect.UP: "▲", PriceEffect.DOWN: "▼"}


def _change_style(change: str) -> str:
    if change.startswith("-"):
        return "red"
    if change.startswith("+") and change.strip("+0.") != "":
        return "green"
    return "dim"


def ticker_row(ticker: DisplayTicker) -> tuple[Text, Text, Text, str, str]:
    record = ticker.record
    price = Text(format_price(record.last_price, ticker.tick_size), style=EFFECT_STYLES[ticker.effect])
    marker = EFFECT_MARKERS.get(ticker.effect)
    if marker:
        price.append(f" {marker}")
    change = Text(format_percent(record.change_24h_pct), style=_change_style(record.change_24h_pct))
    return (
        Text(record.pair),
        price,
        change,
        format_volume(record.volume_24h),
        format_volume(record.turnover_24h),
    )


def _status_line(state: ViewState) -> Text:
    text = Text()
    if state.loading:
        text.append("loading...", style="dim")
    if state.error:
        label = "ERROR" if state.blocking else "STALE"
        text.append(f"{label}: {state.error}", style="bold red" if state.blocking else "yellow")
    for market, message in state.market_errors.items():
        if state.error is None:
            text.append(f"{market} unavailable: {message}  ", style="yellow")
    if state.metadata_error:
        text.append(f"  metadata: {state.metadata_error}", style="dim yellow")
    if state.last_updated is not None and not text.plain:
        text.append(f"updated {state.last_updated.strftime('%H:%M:%S')} UTC", style="dim")
    return text


class ConsoleRenderer:
    """Draw one panel per view, top ``max_rows`` rows each."""

    def __init__(self, views: Sequence[TickerView], *, max_rows: int = 25, console: Console | None = None) -> None:
        self._views = list(views)
        self._max_rows = max_rows
        self.console = console or Console()

    def render_view(self, view: TickerView) -> Panel:
        state = view.state
        table = Table(box=box.SIMPLE, show_header=True, padding=(0, 1), expand=True)
        table.add_column("Pair", style="bold")
        table.add_column("Last", justify="right")
        table.add_column("24h %", justify="right")
        table.add_column("Volume", justify="right")
        table.add_column("Turnover", justify="right")
        if not state.blocking:
            for ticker in state.tickers[: self._max_rows]:
                table.add_row(*ticker_row(ticker))
        sort = state.sort
        title = f"{view.name}  ({state.total} tickers, sort {sort.field.value} {sort.direction.value})"
        return Panel(Group(_status_line(state), table), title=title, box=box.ROUNDED)

    def render(self) -> Group:
        return Group(*(self.render_view(view) for view in self._views))

    async def run(self, stop: asyncio.Event, *, refresh_per_second: float = 4.0) -> None:
        period = 1.0 / refresh_per_second
        with Live(self.render(), console=self.console, refresh_per_second=refresh_per_second) as live:
            while not stop.is_set():
                live.update(self.render())
                with contextlib.suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(stop.wait(), timeout=period)


__all__ = ["ConsoleRenderer", "ticker_row"]
