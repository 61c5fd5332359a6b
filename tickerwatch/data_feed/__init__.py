"""Market data ingestion package.

Clients here talk to the Bybit, Bithumb and exchange-rate REST endpoints and
normalize raw payloads into the records defined in :mod:`.models`.
"""

from .bithumb_client import BithumbClient
from .bybit_client import BybitClient
from .exchange_rates import ExchangeRateClient
from .models import ExchangeRateSnapshot, FundingRatePoint, InstrumentMetadata, TickerRecord
from .snapshots import MarketFetchResult, fetch_snapshot

__all__ = [
    "BithumbClient",
    "BybitClient",
    "ExchangeRateClient",
    "ExchangeRateSnapshot",
    "FundingRatePoint",
    "InstrumentMetadata",
    "MarketFetchResult",
    "TickerRecord",
    "fetch_snapshot",
]
