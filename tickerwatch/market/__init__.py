"""Aggregation, reference data, diffing and the display view model."""
from .aggregator import AggregateResult, MultiMarketAggregator
from .diff_engine import PriceEffectTracker, compare_prices
from .models import DisplayTicker, SortCriterion
from .reference import InstrumentCatalog
from .single_flight import SingleFlight
from .sources import BithumbTickerSource, BybitTickerSource, TickerBatch, TickerSource
from .view_model import build_display_list, filter_tickers, sort_tickers

__all__ = [
    "AggregateResult",
    "BithumbTickerSource",
    "BybitTickerSource",
    "DisplayTicker",
    "InstrumentCatalog",
    "MultiMarketAggregator",
    "PriceEffectTracker",
    "SingleFlight",
    "SortCriterion",
    "TickerBatch",
    "TickerSource",
    "build_display_list",
    "compare_prices",
    "filter_tickers",
    "sort_tickers",
]
