"""Bybit derivatives exchange adapter (v5 API)."""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import urlencode

from ..errors import MalformedResponse, UpstreamUnavailable
from ..models import Candle, Ticker
from .base import BaseExchangeAdapter
from .normalization import BYBIT_INTERVALS, require_field, to_decimal, to_timestamp

logger = logging.getLogger(__name__)

RECV_WINDOW_MS = 5000


class BybitAdapter(BaseExchangeAdapter):
    """Bybit exchange adapter.

    Market data defaults to the ``linear`` (USDT perpetual) category; pass
    ``category="spot"`` to read the spot book instead.
    """

    name = "bybit"
    intervals = BYBIT_INTERVALS

    def __init__(self, api_key: str = "", api_secret: str = "", *, category: str = "linear", **kwargs: Any):
        super().__init__(api_key, api_secret, **kwargs)
        self.category = category

    def get_base_url(self) -> str:
        if self.sandbox:
            return "https://api-testnet.bybit.com"
        return "https://api.bybit.com"

    def _get_headers(self, timestamp: str, signature: str) -> dict[str, str]:
        return {
            "X-BAPI-API-KEY": self.api_key,
            "X-BAPI-TIMESTAMP": timestamp,
            "X-BAPI-SIGN": signature,
            "X-BAPI-RECV-WINDOW": str(RECV_WINDOW_MS),
            "Content-Type": "application/json",
            "User-Agent": "tradedash/1.0",
        }

    def _sign_request(self, params: dict[str, Any]) -> tuple[str, str]:
        """Generate v5 signature over timestamp + key + recv window + query."""
        timestamp = str(int(time.time() * 1000))
        message = timestamp + self.api_key + str(RECV_WINDOW_MS) + urlencode(params)
        return timestamp, self.generate_signature(self.api_secret, message)

    def _extract_error(self, data: Any) -> str | None:
        if isinstance(data, dict):
            return data.get("retMsg") or data.get("ret_msg")
        return None

    def _check_payload(self, data: Any) -> None:
        if isinstance(data, dict) and data.get("retCode", 0) != 0:
            raise UpstreamUnavailable(
                self._extract_error(data) or f"bybit retCode {data.get('retCode')}",
                payload=data,
            )

    async def test_credentials(self) -> Any:
        """Fetch the signed wallet balance endpoint."""
        self.validate_credentials()
        params = {"accountType": "UNIFIED"}
        timestamp, signature = self._sign_request(params)
        return await self._get_json(
            "/v5/account/wallet-balance",
            params=params,
            headers=self._get_headers(timestamp, signature),
        )

    async def _fetch_ticker_payload(self, symbol: str) -> Any:
        params = {"category": self.category, "symbol": symbol}
        return await self._get_json("/v5/market/tickers", params=params)

    async def _fetch_klines_payload(self, symbol: str, interval: str, limit: int) -> Any:
        params = {"category": self.category, "symbol": symbol, "interval": interval, "limit": limit}
        return await self._get_json("/v5/market/kline", params=params)

    async def _fetch_symbols_payload(self) -> Any:
        return await self._get_json("/v5/market/instruments-info", params={"category": self.category})

    @staticmethod
    def _result_list(payload: Any) -> list[Any]:
        # the gateway relays the full body; older callers may hand over just `result`
        if isinstance(payload, dict) and isinstance(payload.get("result"), dict):
            payload = payload["result"]
        rows = require_field(payload, "list")
        if not isinstance(rows, list):
            raise MalformedResponse("bybit result.list is not a list")
        return rows

    def parse_ticker(self, payload: Any) -> Ticker:
        rows = self._result_list(payload)
        if not rows:
            raise MalformedResponse("bybit returned an empty ticker list")
        item = rows[0]
        return Ticker(
            symbol=str(require_field(item, "symbol")),
            price=to_decimal(require_field(item, "lastPrice"), "lastPrice"),
            # price24hPcnt is a fraction
            change_24h_percent=to_decimal(require_field(item, "price24hPcnt"), "price24hPcnt") * 100,
            volume_24h=to_decimal(require_field(item, "volume24h"), "volume24h"),
            high_24h=to_decimal(require_field(item, "highPrice24h"), "highPrice24h"),
            low_24h=to_decimal(require_field(item, "lowPrice24h"), "lowPrice24h"),
        )

    def parse_candles(self, payload: Any) -> list[Candle]:
        candles = []
        for row in self._result_list(payload):
            if not isinstance(row, (list, tuple)) or len(row) < 6:
                raise MalformedResponse(f"bybit kline row has unexpected shape: {row!r}")
            candles.append(
                Candle(
                    open_time=to_timestamp(row[0]),
                    open=to_decimal(row[1], "open"),
                    high=to_decimal(row[2], "high"),
                    low=to_decimal(row[3], "low"),
                    close=to_decimal(row[4], "close"),
                    volume=to_decimal(row[5], "volume"),
                )
            )
        # newest first upstream
        candles.reverse()
        return candles
