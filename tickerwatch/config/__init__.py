"""Configuration loading and validation package."""

from .loader import load_viewer_config, resolve_config_path
from .models import (
    BithumbConfig,
    BybitConfig,
    ConsoleConfig,
    EffectsConfig,
    ExchangeRateConfig,
    HttpConfig,
    TelemetryConfig,
    ViewerConfig,
)

__all__ = [
    "BithumbConfig",
    "BybitConfig",
    "ConsoleConfig",
    "EffectsConfig",
    "ExchangeRateConfig",
    "HttpConfig",
    "TelemetryConfig",
    "ViewerConfig",
    "load_viewer_config",
    "resolve_config_path",
]
