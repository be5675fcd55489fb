"""HTTP client for the proxy gateway."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Mapping

import aiohttp

from ..errors import MalformedResponse, ProxyUnreachable, UpstreamUnavailable

logger = logging.getLogger(__name__)


class GatewayClient:
    """Talks to a running proxy gateway and unwraps its ``{success, data | error}`` envelope."""

    def __init__(self, base_url: str = "http://localhost:3001", *, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session: aiohttp.ClientSession | None = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self.session

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        body: Mapping[str, Any] | None = None,
    ) -> tuple[int, Any]:
        session = await self._ensure_session()
        url = f"{self.base_url}{path}"

        try:
            async with session.request(method, url, params=params, json=body) as resp:
                try:
                    payload = await resp.json(content_type=None)
                except (aiohttp.ContentTypeError, json.JSONDecodeError, ValueError):
                    payload = None
                return resp.status, payload
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise ProxyUnreachable(f"Proxy gateway unreachable at {self.base_url}: {exc or type(exc).__name__}") from exc

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        status, payload = await self._request(method, path, **kwargs)
        if not isinstance(payload, dict):
            raise MalformedResponse(f"Proxy gateway returned an unexpected body (HTTP {status})", status=status)
        if not payload.get("success"):
            message = payload.get("error") or f"Proxy gateway returned HTTP {status}"
            raise UpstreamUnavailable(str(message), status=status, payload=payload)
        return payload.get("data")

    async def health(self) -> dict[str, Any]:
        status, payload = await self._request("GET", "/health")
        if status != 200 or not isinstance(payload, dict):
            raise ProxyUnreachable(f"Proxy gateway health check failed (HTTP {status})", status=status)
        return payload

    async def test_credentials(self, exchange: str, api_key: str, secret_key: str = "", testnet: bool = False) -> Any:
        body = {"apiKey": api_key, "secretKey": secret_key, "testnet": testnet}
        return await self._call("POST", f"/api/{exchange}/test", body=body)

    async def prices(self, exchange: str, symbol: str) -> Any:
        return await self._call("GET", f"/api/prices/{exchange}/{symbol}")

    async def klines(self, exchange: str, symbol: str, interval: str, limit: int = 100) -> Any:
        return await self._call("GET", f"/api/klines/{exchange}/{symbol}/{interval}", params={"limit": limit})

    async def symbols(self, exchange: str) -> Any:
        return await self._call("GET", f"/api/symbols/{exchange}")

    async def close(self) -> None:
        if self.session:
            await self.session.close()
            self.session = None
