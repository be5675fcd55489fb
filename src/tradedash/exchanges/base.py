"""Base class for exchange adapters."""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import json
import logging
from typing import TYPE_CHECKING, Any, Mapping

import aiohttp

from ..errors import MalformedResponse, MissingCredentials, UpstreamUnavailable
from ..models import Candle, Ticker
from .normalization import check_symbol_mismatch, map_interval, normalize_symbol

if TYPE_CHECKING:
    from ..gateway.client import GatewayClient

logger = logging.getLogger(__name__)


class BaseExchangeAdapter:
    """Base class for all exchange adapters.

    Subclasses describe the exchange (URLs, interval tokens, payload shapes);
    this class owns the HTTP session, error conversion and the choice between
    calling the exchange directly or going through the proxy gateway.
    """

    name: str = ""
    requires_secret: bool = True
    supports_live_data: bool = True
    intervals: Mapping[str, str] = {}

    def __init__(
        self,
        api_key: str = "",
        api_secret: str = "",
        *,
        sandbox: bool = False,
        gateway: "GatewayClient | None" = None,
        timeout: float = 10.0,
        **options: Any,
    ):
        """Initialize exchange adapter.

        Args:
            api_key: API key (access token for brokers without a secret)
            api_secret: API secret
            sandbox: Use sandbox/testnet environment
            gateway: Route public market-data calls through the proxy gateway
            timeout: Total request timeout in seconds
            **options: Additional exchange-specific options
        """
        self.api_key = api_key or ""
        self.api_secret = api_secret or ""
        self.sandbox = sandbox
        self.gateway = gateway
        self.timeout = timeout
        self.options = options
        self.session: aiohttp.ClientSession | None = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(sandbox={self.sandbox}, proxied={self.gateway is not None})"

    @staticmethod
    def generate_signature(secret: str, message: str) -> str:
        """Hex-encoded HMAC-SHA256 of ``message`` keyed with ``secret``."""
        return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()

    def get_base_url(self) -> str:
        """Base REST URL; subclasses switch on ``self.sandbox``."""
        raise NotImplementedError()

    def map_interval(self, interval: str) -> str:
        return map_interval(interval, self.intervals)

    def sign(self, params: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError(f"{self.name} does not use query-string signing")

    def validate_credentials(self) -> None:
        """Raise MissingCredentials if the key (and secret, when required) is empty."""
        if self.requires_secret:
            if not self.api_key or not self.api_secret:
                raise MissingCredentials("Missing apiKey or secretKey")
        elif not self.api_key:
            raise MissingCredentials("Missing apiKey")

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self.session

    async def _get_json(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """GET ``path`` on the exchange and return the decoded JSON body.

        Raises:
            UpstreamUnavailable: On network errors, timeouts or non-2xx status
            MalformedResponse: If a 2xx body is not JSON
        """
        session = await self._ensure_session()
        url = f"{self.get_base_url()}{path}"

        try:
            async with session.get(url, params=params, headers=headers) as resp:
                data = await self._read_json(resp)
                if resp.status != 200:
                    message = self._extract_error(data) or f"{self.name} returned HTTP {resp.status}"
                    raise UpstreamUnavailable(message, status=resp.status, payload=data)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise UpstreamUnavailable(f"{self.name} request failed: {exc or type(exc).__name__}") from exc

        if data is None:
            raise MalformedResponse(f"{self.name} returned a non-JSON body")
        self._check_payload(data)
        return data

    @staticmethod
    async def _read_json(resp: Any) -> Any:
        try:
            return await resp.json(content_type=None)
        except (aiohttp.ContentTypeError, json.JSONDecodeError, ValueError):
            return None

    def _extract_error(self, data: Any) -> str | None:
        """Pull the exchange's error message out of an error body."""
        return None

    def _check_payload(self, data: Any) -> None:
        """Raise UpstreamUnavailable for 200 responses that carry an error code."""

    async def fetch_ticker_payload(self, symbol: str) -> Any:
        symbol = normalize_symbol(symbol)
        if self.gateway is not None:
            return await self.gateway.prices(self.name, symbol)
        return await self._fetch_ticker_payload(symbol)

    async def fetch_klines_payload(self, symbol: str, interval: str, limit: int) -> Any:
        symbol = normalize_symbol(symbol)
        if self.gateway is not None:
            return await self.gateway.klines(self.name, symbol, interval, limit)
        return await self._fetch_klines_payload(symbol, self.map_interval(interval), limit)

    async def fetch_symbols_payload(self) -> Any:
        if self.gateway is not None:
            return await self.gateway.symbols(self.name)
        return await self._fetch_symbols_payload()

    async def _fetch_ticker_payload(self, symbol: str) -> Any:
        raise UpstreamUnavailable(f"{self.name} has no public market data endpoint")

    async def _fetch_klines_payload(self, symbol: str, interval: str, limit: int) -> Any:
        raise UpstreamUnavailable(f"{self.name} has no public market data endpoint")

    async def _fetch_symbols_payload(self) -> Any:
        raise UpstreamUnavailable(f"{self.name} has no public market data endpoint")

    def parse_ticker(self, payload: Any) -> Ticker:
        raise MalformedResponse(f"{self.name} does not provide tickers")

    def parse_candles(self, payload: Any) -> list[Candle]:
        raise MalformedResponse(f"{self.name} does not provide candles")

    async def get_ticker(self, symbol: str) -> Ticker:
        """Fetch and normalize the ticker for a symbol."""
        payload = await self.fetch_ticker_payload(symbol)
        ticker = self.parse_ticker(payload)
        check_symbol_mismatch(symbol, ticker.symbol)
        return ticker

    async def get_candles(self, symbol: str, interval: str = "1h", limit: int = 100) -> list[Candle]:
        """Fetch and normalize recent candles, oldest first."""
        if limit <= 0:
            return []
        payload = await self.fetch_klines_payload(symbol, interval, limit)
        candles = sorted(self.parse_candles(payload), key=lambda c: c.open_time)
        return candles[-limit:]

    async def test_credentials(self) -> Any:
        raise NotImplementedError(f"{self.name} has no credential test")

    async def close(self) -> None:
        """Close connections."""
        if self.session:
            await self.session.close()
            self.session = None
