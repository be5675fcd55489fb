"""Tests for CLI command parsing and basic functionality."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock, Mock, patch

import pytest
from typer.testing import CliRunner

from tradedash.cli import app
from tradedash.errors import UpstreamUnavailable
from tradedash.models import Candle, Ticker
from tradedash.store import ConfigStore, ConnectionStatus, JsonFileStorage


@pytest.fixture
def container(tmp_path):
    """Container with a real store on disk and mocked network parts."""
    mock_container = Mock()
    mock_container.store = ConfigStore(JsonFileStorage(tmp_path / "storage.json"))
    mock_container.aclose = AsyncMock()
    mock_container.adapters = {}
    return mock_container


def test_cli_help():
    """Test that CLI shows help correctly."""
    runner = CliRunner()
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "Trading dashboard" in result.output


def test_cli_commands_available():
    """Test that all expected CLI commands are available."""
    runner = CliRunner()
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("ticker", "candles", "symbols", "watch", "config-show", "config-set", "test-connection", "enable-trading", "alert"):
        assert command in result.output


@patch("tradedash.cli.init_components")
def test_ticker_command(mock_init_components, container):
    """Test ticker renders the normalized snapshot."""
    adapter = Mock()
    adapter.get_ticker = AsyncMock(
        return_value=Ticker("BTCUSDT", Decimal("43250.5"), Decimal("2.1"), Decimal("1200000"), Decimal("43900"), Decimal("42800"))
    )
    container.adapters = {"bybit": adapter}
    mock_init_components.return_value = container

    runner = CliRunner()
    result = runner.invoke(app, ["ticker", "bybit", "BTCUSDT"])

    assert result.exit_code == 0
    assert "43250.5" in result.output
    assert "2.10%" in result.output
    adapter.get_ticker.assert_awaited_once_with("BTCUSDT")
    container.aclose.assert_awaited_once()


@patch("tradedash.cli.init_components")
def test_ticker_upstream_error(mock_init_components, container):
    adapter = Mock()
    adapter.get_ticker = AsyncMock(side_effect=UpstreamUnavailable("Invalid symbol."))
    container.adapters = {"binance": adapter}
    mock_init_components.return_value = container

    runner = CliRunner()
    result = runner.invoke(app, ["ticker", "binance", "NOPE"])

    assert result.exit_code == 1
    assert "Invalid symbol." in result.output


@patch("tradedash.cli.init_components")
def test_ticker_unknown_exchange(mock_init_components, container):
    mock_init_components.return_value = container

    runner = CliRunner()
    result = runner.invoke(app, ["ticker", "kraken", "BTCUSDT"])

    assert result.exit_code == 1
    assert "not configured" in result.output


@patch("tradedash.cli.init_components")
def test_candles_command(mock_init_components, container):
    adapter = Mock()
    adapter.get_candles = AsyncMock(
        return_value=[Candle(1700000000000, Decimal("1"), Decimal("2"), Decimal("0.5"), Decimal("1.5"), Decimal("10"))]
    )
    container.adapters = {"binance": adapter}
    mock_init_components.return_value = container

    runner = CliRunner()
    result = runner.invoke(app, ["candles", "binance", "ETHUSDT", "--interval", "4h", "--limit", "5"])

    assert result.exit_code == 0
    assert "2023-11-14" in result.output
    adapter.get_candles.assert_awaited_once_with("ETHUSDT", "4h", 5)


@patch("tradedash.cli.init_components")
def test_config_set_and_show(mock_init_components, container):
    """config-set persists credentials; config-show masks them."""
    mock_init_components.return_value = container
    runner = CliRunner()

    result = runner.invoke(app, ["config-set", "binance", "--api-key", "abcdefghij", "--secret-key", "secretvalue", "--testnet"])
    assert result.exit_code == 0

    saved = container.store.get("binance")
    assert saved.api_key == "abcdefghij"
    assert saved.testnet is True
    assert saved.status is ConnectionStatus.DISCONNECTED

    result = runner.invoke(app, ["config-show"])
    assert result.exit_code == 0
    assert "abc***hij" in result.output
    assert "abcdefghij" not in result.output


@patch("tradedash.cli.init_components")
def test_config_set_needs_a_field(mock_init_components, container):
    mock_init_components.return_value = container

    runner = CliRunner()
    result = runner.invoke(app, ["config-set", "bybit"])

    assert result.exit_code == 1


@patch("tradedash.cli.init_components")
def test_enable_trading_locked_until_connected(mock_init_components, container):
    mock_init_components.return_value = container
    runner = CliRunner()

    result = runner.invoke(app, ["enable-trading", "bybit"])
    assert result.exit_code == 1
    assert container.store.get("bybit").enabled is False

    container.store.update("bybit", status=ConnectionStatus.CONNECTED)
    result = runner.invoke(app, ["enable-trading", "bybit"])
    assert result.exit_code == 0
    assert container.store.get("bybit").enabled is True


@patch("tradedash.cli.init_components")
def test_test_connection_success(mock_init_components, container):
    container.store.update("bybit", api_key="k", secret_key="s")
    container.gateway = Mock()
    container.gateway.test_credentials = AsyncMock(return_value={})
    mock_init_components.return_value = container

    runner = CliRunner()
    result = runner.invoke(app, ["test-connection", "bybit"])

    assert result.exit_code == 0
    assert "Successfully connected to Bybit" in result.output
    assert container.store.get("bybit").status is ConnectionStatus.CONNECTED


@patch("tradedash.cli.init_components")
def test_test_connection_failure(mock_init_components, container):
    container.store.update("binance", api_key="k", secret_key="s")
    container.gateway = Mock()
    container.gateway.test_credentials = AsyncMock(side_effect=UpstreamUnavailable("Invalid API-key"))
    mock_init_components.return_value = container

    runner = CliRunner()
    result = runner.invoke(app, ["test-connection", "binance"])

    assert result.exit_code == 1
    assert "Connection Failed" in result.output
    assert container.store.get("binance").status is ConnectionStatus.ERROR


@patch("tradedash.cli.init_components")
def test_test_connection_missing_credentials(mock_init_components, container):
    container.gateway = Mock()
    container.gateway.test_credentials = AsyncMock()
    mock_init_components.return_value = container

    runner = CliRunner()
    result = runner.invoke(app, ["test-connection", "dhan"])

    assert result.exit_code == 1
    assert "Access Token" in result.output
    container.gateway.test_credentials.assert_not_called()


@patch("tradedash.cli.init_components")
def test_alert_command(mock_init_components, container):
    container.notifier = Mock()
    container.notifier.send = AsyncMock(return_value={"message_id": 1})
    mock_init_components.return_value = container

    runner = CliRunner()
    result = runner.invoke(app, ["alert", "hello"])

    assert result.exit_code == 0
    container.notifier.send.assert_awaited_once_with("hello")


@patch("tradedash.cli.init_components")
def test_watch_requires_exchange_and_symbol_together(mock_init_components, container):
    mock_init_components.return_value = container

    runner = CliRunner()
    result = runner.invoke(app, ["watch", "--exchange", "binance"])

    assert result.exit_code == 1
