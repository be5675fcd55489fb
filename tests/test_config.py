"""Tests for settings loading."""

import os
from pathlib import Path

import pytest

from tradedash.config import _apply_env_overrides, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("TRADEDASH_"):
            monkeypatch.delenv(key)


def test_missing_file_gives_defaults(tmp_path):
    settings = load_settings(tmp_path / "absent.yml")

    assert settings.gateway.port == 3001
    assert settings.gateway.url == "http://localhost:3001"
    assert settings.poller.ticker_interval == 2.0
    assert settings.poller.chart_interval == 30.0
    assert settings.poller.window == 100
    assert set(settings.exchanges) == {"binance", "bybit", "dhan"}
    assert settings.watchlist == []


def test_yaml_file(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(
        """
gateway:
  port: 4000
  use_for_market_data: true
exchanges:
  bybit:
    sandbox: true
    options:
      category: spot
watchlist:
  - exchange: binance
    symbol: BTCUSDT
  - exchange: dhan
    symbol: RELIANCE
    interval: 1d
telegram:
  bot_token: "123:abc"
  chat_id: "42"
"""
    )

    settings = load_settings(path)

    assert settings.gateway.port == 4000
    assert settings.gateway.use_for_market_data is True
    assert settings.exchanges["bybit"].options == {"category": "spot"}
    assert [w.symbol for w in settings.watchlist] == ["BTCUSDT", "RELIANCE"]
    assert settings.watchlist[0].interval == "1h"
    assert settings.telegram.bot_token.get_secret_value() == "123:abc"
    assert settings.redacted()["telegram"]["bot_token"] == "***"


def test_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "config.yml"
    path.write_text("gateway:\n  port: 4000\n")
    monkeypatch.setenv("TRADEDASH_GATEWAY__PORT", "5000")
    monkeypatch.setenv("TRADEDASH_POLLER__LIVE", "false")
    monkeypatch.setenv("TRADEDASH_LOG_LEVEL", "DEBUG")

    settings = load_settings(path)

    assert settings.gateway.port == 5000
    assert settings.poller.live is False


def test_config_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "other.yml"
    path.write_text("env: prod\n")
    monkeypatch.setenv("TRADEDASH_CONFIG", str(path))

    assert load_settings().env == "prod"


def test_apply_env_overrides_nested():
    data = _apply_env_overrides(
        {"exchanges": {"binance": {"sandbox": False}}},
        {"TRADEDASH_EXCHANGES__BINANCE__SANDBOX": "true", "OTHER": "x"},
    )

    assert data == {"exchanges": {"binance": {"sandbox": True}}}


def test_unknown_key_rejected(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("gatway:\n  port: 1\n")

    with pytest.raises(ValueError, match="Invalid configuration"):
        load_settings(path)


def test_non_mapping_root(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("- a\n- b\n")

    with pytest.raises(ValueError):
        load_settings(Path(path))


def test_sample_base_prices(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("exchanges:\n  dhan:\n    sample_base_price: 1800\n")

    assert load_settings(path).sample_base_prices() == {"dhan": 1800.0}
