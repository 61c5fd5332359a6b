"""YAML loader for the config subsystem.

The viewer reads a single YAML file, validates it via models.py and returns a
typed :class:`ViewerConfig`. Missing sections fall back to model defaults.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

import yaml
from pydantic import ValidationError

from tickerwatch.core.errors import ConfigurationError

from .models import ViewerConfig

_DEFAULT_CONFIG_PATH = Path("config") / "viewer.yml"
CONFIG_ENV_VAR = "TICKERWATCH_CONFIG"


def _read_yaml(path: Path) -> Mapping:
    """Read a YAML file and return a mapping (empty dict if file is blank)."""

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f"YAML root must be a mapping in {path}")
    return data


def load_viewer_config(path: Path | str = _DEFAULT_CONFIG_PATH) -> ViewerConfig:
    """Load viewer.yml (bybit, bithumb, exchange_rates, effects, http, telemetry)."""

    data = _read_yaml(Path(path))
    try:
        return ViewerConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid config in {path}: {exc}") from exc


def resolve_config_path(default: Path = _DEFAULT_CONFIG_PATH) -> Path:
    """Return the config path from ``TICKERWATCH_CONFIG`` or ``default``."""

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return default
