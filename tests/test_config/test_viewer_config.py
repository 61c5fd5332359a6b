from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from tickerwatch.config.loader import CONFIG_ENV_VAR, load_viewer_config, resolve_config_path
from tickerwatch.config.models import EffectsConfig, ExchangeRateConfig, ViewerConfig
from tickerwatch.core.enums import BithumbMarket, BybitCategory
from tickerwatch.core.errors import ConfigurationError


def _write_yaml(path: Path, content: str) -> Path:
    path.write_text(dedent(content), encoding="utf-8")
    return path


def test_load_viewer_config_should_parse_valid_yaml(tmp_path: Path) -> None:
    path = _write_yaml(
        tmp_path / "viewer.yml",
        """
        bybit:
          categories: [linear]
          refresh_interval_sec: 2
        bithumb:
          markets: [KRW, BTC]
        effects:
          price_effect_duration_ms: 350
        telemetry:
          log_level: DEBUG
        """,
    )
    config = load_viewer_config(path)
    assert config.bybit.categories == [BybitCategory.LINEAR]
    assert config.bybit.refresh_interval_sec == 2.0
    assert config.bithumb.markets == [BithumbMarket.KRW, BithumbMarket.BTC]
    assert config.effects.price_effect_duration_sec == pytest.approx(0.35)
    assert config.telemetry.log_level == "DEBUG"
    assert config.exchange_rates.enabled is False


def test_empty_yaml_should_yield_defaults(tmp_path: Path) -> None:
    config = load_viewer_config(_write_yaml(tmp_path / "viewer.yml", ""))
    assert config == ViewerConfig()
    assert config.bithumb.refresh_interval_sec == 3.0
    assert config.bybit.refresh_interval_sec == 1.0
    assert config.effects.price_effect_duration_ms == 200


def test_missing_config_should_raise_file_not_found(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_viewer_config(tmp_path / "absent.yml")


def test_non_mapping_root_should_raise_value_error(tmp_path: Path) -> None:
    path = _write_yaml(tmp_path / "viewer.yml", "- just\n- a list\n")
    with pytest.raises(ValueError):
        load_viewer_config(path)


def test_invalid_section_should_raise_configuration_error(tmp_path: Path) -> None:
    path = _write_yaml(
        tmp_path / "viewer.yml",
        """
        bybit:
          categories: [options]
        """,
    )
    with pytest.raises(ConfigurationError):
        load_viewer_config(path)


def test_exchange_rates_enabled_should_require_api_key() -> None:
    with pytest.raises(ValueError):
        ExchangeRateConfig(enabled=True)
    assert ExchangeRateConfig(enabled=True, api_key="abcdef").api_key == "abcdef"


def test_effect_duration_should_be_positive() -> None:
    with pytest.raises(ValueError):
        EffectsConfig(price_effect_duration_ms=0)


def test_resolve_config_path_should_prefer_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "custom.yml"))
    assert resolve_config_path() == tmp_path / "custom.yml"
    monkeypatch.delenv(CONFIG_ENV_VAR)
    assert resolve_config_path(Path("x.yml")) == Path("x.yml")


def test_example_config_should_load() -> None:
    repo_root = Path(__file__).resolve().parents[2]
    config = load_viewer_config(repo_root / "config" / "viewer.yml")
    assert BybitCategory.INVERSE in config.bybit.categories
    assert config.bithumb.enabled is True
