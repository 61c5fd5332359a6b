from __future__ import annotations

import asyncio
import logging
import signal
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from tickerwatch.config.loader import load_viewer_config, resolve_config_path
from tickerwatch.config.models import ViewerConfig
from tickerwatch.core.errors import MarketDataError
from tickerwatch.data_feed.bithumb_client import BithumbClient
from tickerwatch.data_feed.bybit_client import BybitClient
from tickerwatch.data_feed.exchange_rates import ExchangeRateClient
from tickerwatch.interfaces.console import ConsoleRenderer
from tickerwatch.market.reference import InstrumentCatalog
from tickerwatch.market.sources import BithumbTickerSource, BybitTickerSource
from tickerwatch.runtime.scheduler import PollingScheduler
from tickerwatch.runtime.view import TickerView
from tickerwatch.telemetry import configure_logging


@dataclass(slots=True)
class ViewerApp:
    """Every long-lived object of one viewer session, torn down together."""

    config: ViewerConfig
    logger: logging.Logger
    bybit: BybitClient
    bithumb: BithumbClient | None
    catalog: InstrumentCatalog
    views: List[TickerView] = field(default_factory=list)
    schedulers: List[PollingScheduler] = field(default_factory=list)

    def start(self) -> None:
        for scheduler in self.schedulers:
            scheduler.start()

    async def stop(self) -> None:
        await asyncio.gather(*(scheduler.stop() for scheduler in self.schedulers))
        self.catalog.close()
        await self.bybit.aclose()
        if self.bithumb is not None:
            await self.bithumb.aclose()
        self.logger.info("Shutdown complete")


def build_app(config: ViewerConfig, logger: logging.Logger) -> ViewerApp:
    timeout = config.http.timeout_sec
    duration = config.effects.price_effect_duration_sec
    bybit = BybitClient(config.bybit, timeout=timeout)
    catalog = InstrumentCatalog(
        bybit,
        funding_limit=config.bybit.funding_history_limit,
        retry_after_sec=config.bybit.metadata_retry_sec,
        logger=logger.getChild("reference"),
    )
    bithumb = BithumbClient(config.bithumb, timeout=timeout) if config.bithumb.enabled else None
    app = ViewerApp(config=config, logger=logger, bybit=bybit, bithumb=bithumb, catalog=catalog)

    for category in config.bybit.categories:
        view = TickerView(
            BybitTickerSource(bybit, category),
            effect_duration_sec=duration,
            catalog=catalog,
            logger=logger.getChild(f"view.bybit.{category.value}"),
        )
        app.views.append(view)
        app.schedulers.append(
            PollingScheduler(view, config.bybit.refresh_interval_sec, logger=logger.getChild("scheduler"))
        )
    if bithumb is not None:
        view = TickerView(
            BithumbTickerSource(bithumb, config.bithumb.markets),
            effect_duration_sec=duration,
            logger=logger.getChild("view.bithumb"),
        )
        app.views.append(view)
        app.schedulers.append(
            PollingScheduler(view, config.bithumb.refresh_interval_sec, logger=logger.getChild("scheduler"))
        )
    return app


async def log_exchange_rates(config: ViewerConfig, logger: logging.Logger) -> None:
    if not config.exchange_rates.enabled:
        return
    client = ExchangeRateClient(config.exchange_rates, timeout=config.http.timeout_sec)
    try:
        snapshot = await client.fetch_rates()
    except MarketDataError as exc:
        logger.warning("Exchange rates unavailable", extra={"error": exc.message})
        return
    finally:
        await client.aclose()
    logger.info(
        "Exchange rates loaded",
        extra={"base": snapshot.base_code, "KRW": snapshot.rate_for("KRW"), "date": str(snapshot.last_update_date)},
    )


async def run(config: ViewerConfig, logger: logging.Logger) -> None:
    app = build_app(config, logger)
    stop = asyncio.Event()

    def _request_stop(signum: int) -> None:
        logger.info("Received signal", extra={"signal": signum})
        stop.set()

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, _request_stop, signum)
        except NotImplementedError:  # pragma: no cover - Windows event loop
            signal.signal(signum, lambda received, _frame: loop.call_soon_threadsafe(_request_stop, received))

    await log_exchange_rates(config, logger)
    app.start()
    renderer = ConsoleRenderer(app.views, max_rows=config.console.max_rows)
    try:
        await renderer.run(stop)
    finally:
        await app.stop()


def main() -> None:
    config = load_viewer_config(resolve_config_path())
    logger = configure_logging(
        log_dir=Path(config.telemetry.log_dir).resolve(),
        level=config.telemetry.log_level,
        console=False,
    )
    logger.info(
        "Starting ticker viewer",
        extra={"bybit_categories": [c.value for c in config.bybit.categories], "bithumb": config.bithumb.enabled},
    )
    try:
        asyncio.run(run(config, logger))
    except KeyboardInterrupt:  # pragma: no cover - manual exit
        logger.info("Interrupted by user")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - top-level safety
        print(f"Fatal error: {exc}", file=sys.stderr)
        raise
