"""Stateless relay between browser-style callers and exchange REST APIs."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

from pydantic import BaseModel, ValidationError

from ..errors import TradeDashError
from ..exchanges.base import BaseExchangeAdapter
from ..exchanges.factory import create_exchange_adapter, get_adapter_class
from ..settings import Settings

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Upstream request failed"
UNSUPPORTED_EXCHANGE = "Unsupported exchange"
HEALTH_MESSAGE = "Trading API Proxy Server is running"
DEFAULT_KLINE_LIMIT = 100

AdapterFactory = Callable[..., BaseExchangeAdapter]


class CredentialTestRequest(BaseModel):
    apiKey: str = ""
    secretKey: str = ""
    testnet: bool = False

    model_config = {"extra": "ignore"}


@dataclass(slots=True)
class RelayResult:
    success: bool
    data: Any = None
    error: str | None = None
    status_code: int = 200

    @classmethod
    def ok(cls, data: Any) -> "RelayResult":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str, status_code: int = 400) -> "RelayResult":
        return cls(success=False, error=error, status_code=status_code)

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error}


class ProxyRelay:
    """Forwards credential tests and market-data requests to exchanges.

    Holds no credentials and no cache: every request builds its own adapter
    from the request parameters and closes it afterwards. No operation
    raises; failures come back as ``{success: false, error}`` with HTTP 400.
    """

    def __init__(self, settings: Settings | None = None, adapter_factory: AdapterFactory = create_exchange_adapter):
        self.settings = settings or Settings()
        self._adapter_factory = adapter_factory
        self._routes: list[tuple[str, re.Pattern[str], Callable[..., Awaitable[RelayResult]]]] = [
            ("POST", re.compile(r"^/api/(?P<exchange>[^/]+)/test$"), self._route_test),
            ("GET", re.compile(r"^/api/prices/(?P<exchange>[^/]+)/(?P<symbol>[^/]+)$"), self._route_prices),
            ("GET", re.compile(r"^/api/klines/(?P<exchange>[^/]+)/(?P<symbol>[^/]+)/(?P<interval>[^/]+)$"), self._route_klines),
            ("GET", re.compile(r"^/api/symbols/(?P<exchange>[^/]+)$"), self._route_symbols),
            ("GET", re.compile(r"^/health$"), self._route_health),
        ]

    def _new_adapter(self, exchange: str, api_key: str = "", api_secret: str = "", sandbox: bool = False) -> BaseExchangeAdapter:
        exchange_settings = self.settings.exchanges.get(exchange)
        options = dict(exchange_settings.options) if exchange_settings else {}
        return self._adapter_factory(
            exchange,
            api_key,
            api_secret,
            sandbox=sandbox,
            timeout=self.settings.gateway.timeout,
            **options,
        )

    def _market_adapter(self, exchange: str) -> BaseExchangeAdapter | None:
        try:
            adapter_class = get_adapter_class(exchange)
        except ValueError:
            return None
        if not adapter_class.supports_live_data:
            return None
        return self._new_adapter(exchange.lower())

    async def _run(
        self,
        label: str,
        adapter: BaseExchangeAdapter,
        operation: Callable[..., Awaitable[Any]],
        *args: Any,
    ) -> RelayResult:
        try:
            data = await operation(*args)
        except TradeDashError as exc:
            message = getattr(exc, "message", None) or str(exc) or GENERIC_ERROR
            logger.error("%s error: %s", label, message)
            return RelayResult.failure(message)
        except Exception as exc:
            logger.exception("%s failed unexpectedly", label)
            return RelayResult.failure(str(exc) or GENERIC_ERROR)
        finally:
            try:
                await adapter.close()
            except Exception:
                logger.exception("%s: closing adapter failed", label)
        return RelayResult.ok(data)

    async def test_credentials(self, exchange: str, body: Mapping[str, Any] | None) -> RelayResult:
        """Verify caller-supplied credentials against the exchange's private API."""
        try:
            get_adapter_class(exchange)
        except ValueError:
            return RelayResult.failure(UNSUPPORTED_EXCHANGE)

        try:
            request = CredentialTestRequest.model_validate(body or {})
        except ValidationError as exc:
            return RelayResult.failure(f"Invalid request body: {exc.errors()[0]['msg']}")

        exchange = exchange.lower()
        adapter = self._new_adapter(exchange, request.apiKey, request.secretKey, sandbox=request.testnet)
        return await self._run(f"{exchange} credential test", adapter, adapter.test_credentials)

    async def prices(self, exchange: str, symbol: str) -> RelayResult:
        adapter = self._market_adapter(exchange)
        if adapter is None:
            return RelayResult.failure(UNSUPPORTED_EXCHANGE)
        return await self._run(f"{exchange} price fetch", adapter, adapter.fetch_ticker_payload, symbol)

    async def klines(self, exchange: str, symbol: str, interval: str, limit: Any = DEFAULT_KLINE_LIMIT) -> RelayResult:
        try:
            limit = int(limit) if limit not in (None, "") else DEFAULT_KLINE_LIMIT
        except (TypeError, ValueError):
            return RelayResult.failure(f"Invalid limit: {limit}")

        adapter = self._market_adapter(exchange)
        if adapter is None:
            return RelayResult.failure(UNSUPPORTED_EXCHANGE)
        return await self._run(f"{exchange} klines fetch", adapter, adapter.fetch_klines_payload, symbol, interval, limit)

    async def symbols(self, exchange: str) -> RelayResult:
        adapter = self._market_adapter(exchange)
        if adapter is None:
            return RelayResult.failure(UNSUPPORTED_EXCHANGE)
        return await self._run(f"{exchange} symbols fetch", adapter, adapter.fetch_symbols_payload)

    def health(self) -> dict[str, str]:
        return {"status": "OK", "message": HEALTH_MESSAGE}

    async def relay(
        self,
        method: str,
        target_path: str,
        body: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
    ) -> RelayResult:
        """Dispatch a request by method and path to the matching operation."""
        path = target_path.split("?", 1)[0].rstrip("/") or "/"
        for route_method, pattern, handler in self._routes:
            match = pattern.match(path)
            if match and route_method == method.upper():
                return await handler(body=body, query=query or {}, **match.groupdict())
        return RelayResult.failure(f"No route for {method.upper()} {path}", status_code=404)

    async def _route_test(self, *, exchange: str, body: Any, query: Mapping[str, Any]) -> RelayResult:
        return await self.test_credentials(exchange, body)

    async def _route_prices(self, *, exchange: str, symbol: str, body: Any, query: Mapping[str, Any]) -> RelayResult:
        return await self.prices(exchange, symbol)

    async def _route_klines(
        self, *, exchange: str, symbol: str, interval: str, body: Any, query: Mapping[str, Any]
    ) -> RelayResult:
        return await self.klines(exchange, symbol, interval, query.get("limit", DEFAULT_KLINE_LIMIT))

    async def _route_symbols(self, *, exchange: str, body: Any, query: Mapping[str, Any]) -> RelayResult:
        return await self.symbols(exchange)

    async def _route_health(self, *, body: Any, query: Mapping[str, Any]) -> RelayResult:
        return RelayResult.ok(self.health())
