"""Tests for the proxy gateway HTTP client."""

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from tradedash.errors import MalformedResponse, ProxyUnreachable, UpstreamUnavailable
from tradedash.gateway.client import GatewayClient


def create_async_response(status=200, json_data=None):
    """Create a mock async response."""
    resp = AsyncMock()
    resp.status = status
    resp.json = AsyncMock(return_value=json_data)
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=None)
    return resp


def client_with(status=200, json_data=None):
    client = GatewayClient("http://localhost:3001/")
    session = MagicMock()
    session.request = MagicMock(return_value=create_async_response(status, json_data))
    client._ensure_session = AsyncMock(return_value=session)
    return client, session


class TestGatewayClient:
    """Envelope unwrapping and error mapping."""

    @pytest.mark.asyncio
    async def test_prices_unwraps_data(self):
        client, session = client_with(200, {"success": True, "data": {"lastPrice": "1"}})

        data = await client.prices("binance", "BTCUSDT")

        assert data == {"lastPrice": "1"}
        method, url = session.request.call_args.args
        assert method == "GET"
        assert url == "http://localhost:3001/api/prices/binance/BTCUSDT"

    @pytest.mark.asyncio
    async def test_klines_sends_limit(self):
        client, session = client_with(200, {"success": True, "data": []})

        await client.klines("bybit", "BTCUSDT", "1h", 25)

        assert session.request.call_args.args[1] == "http://localhost:3001/api/klines/bybit/BTCUSDT/1h"
        assert session.request.call_args.kwargs["params"] == {"limit": 25}

    @pytest.mark.asyncio
    async def test_test_credentials_posts_body(self):
        client, session = client_with(200, {"success": True, "data": {}})

        await client.test_credentials("dhan", "token", testnet=True)

        assert session.request.call_args.args == ("POST", "http://localhost:3001/api/dhan/test")
        assert session.request.call_args.kwargs["json"] == {"apiKey": "token", "secretKey": "", "testnet": True}

    @pytest.mark.asyncio
    async def test_failure_envelope_raises_upstream(self):
        client, _ = client_with(400, {"success": False, "error": "Missing apiKey or secretKey"})

        with pytest.raises(UpstreamUnavailable) as exc_info:
            await client.test_credentials("binance", "", "x")

        assert exc_info.value.message == "Missing apiKey or secretKey"
        assert exc_info.value.status == 400
        assert not isinstance(exc_info.value, ProxyUnreachable)

    @pytest.mark.asyncio
    async def test_non_envelope_body_is_malformed(self):
        client, _ = client_with(502, None)

        with pytest.raises(MalformedResponse):
            await client.symbols("binance")

    @pytest.mark.asyncio
    async def test_connection_refused_is_proxy_unreachable(self):
        client = GatewayClient()
        session = MagicMock()
        session.request = MagicMock(side_effect=aiohttp.ClientConnectionError("refused"))
        client._ensure_session = AsyncMock(return_value=session)

        with pytest.raises(ProxyUnreachable):
            await client.prices("binance", "BTCUSDT")

    @pytest.mark.asyncio
    async def test_health(self):
        client, _ = client_with(200, {"status": "OK", "message": "Trading API Proxy Server is running"})

        assert (await client.health())["status"] == "OK"

    @pytest.mark.asyncio
    async def test_health_failure(self):
        client, _ = client_with(500, None)

        with pytest.raises(ProxyUnreachable):
            await client.health()

    @pytest.mark.asyncio
    async def test_close_without_session(self):
        client = GatewayClient()
        await client.close()
        assert client.session is None
