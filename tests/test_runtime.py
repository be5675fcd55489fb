"""Tests for container wiring and the watch runtime."""

import asyncio

import pytest

from tradedash.di import build_container
from tradedash.runtime import run
from tradedash.settings import GatewaySettings, PollerSettings, Settings, WatchItem


def make_settings(tmp_path, **kwargs):
    return Settings(storage_path=tmp_path / "storage.json", **kwargs)


def test_build_container_direct_adapters(tmp_path):
    container = build_container(make_settings(tmp_path))

    assert set(container.adapters) == {"binance", "bybit", "dhan"}
    assert all(adapter.gateway is None for adapter in container.adapters.values())
    assert container.notifier.configured is False


def test_build_container_proxied_adapters(tmp_path):
    settings = make_settings(tmp_path, gateway=GatewaySettings(use_for_market_data=True, url="http://proxy:3001"))

    container = build_container(settings)

    assert container.gateway.base_url == "http://proxy:3001"
    assert all(adapter.gateway is container.gateway for adapter in container.adapters.values())


@pytest.mark.asyncio
async def test_run_with_empty_watchlist_returns(tmp_path, caplog):
    container = build_container(make_settings(tmp_path))

    await run(container)

    assert "watchlist is empty" in caplog.text


@pytest.mark.asyncio
async def test_run_polls_ticker_and_chart_until_shutdown(tmp_path):
    settings = make_settings(
        tmp_path,
        poller=PollerSettings(ticker_interval=0.01, chart_interval=0.05, live=False),
        watchlist=[WatchItem(exchange="dhan", symbol="RELIANCE", interval="1d")],
    )
    container = build_container(settings)
    updates = []

    runner = asyncio.create_task(run(container, listener=lambda sub, snap: updates.append((sub.include_candles, snap))))
    await asyncio.sleep(0.04)
    container.shutdown.set()
    await runner

    ticker_updates = [snap for charts, snap in updates if not charts]
    chart_updates = [snap for charts, snap in updates if charts]
    assert len(ticker_updates) >= 2
    assert chart_updates
    assert all(snap.is_sample for _, snap in updates)
    assert len(chart_updates[0].candles) == 101
    assert container.poller.subscriptions() == []
