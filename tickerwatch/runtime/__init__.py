"""Runtime layer: view state per logical view and its polling scheduler."""

from .scheduler import PollingScheduler, Refreshable
from .view import TickerView, ViewState

__all__ = ["PollingScheduler", "Refreshable", "TickerView", "ViewState"]
