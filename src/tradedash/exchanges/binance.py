"""Binance spot exchange adapter."""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import urlencode

from ..errors import MalformedResponse
from ..models import Candle, Ticker
from .base import BaseExchangeAdapter
from .normalization import BINANCE_INTERVALS, require_field, to_decimal, to_timestamp

logger = logging.getLogger(__name__)


class BinanceAdapter(BaseExchangeAdapter):
    """Binance spot exchange adapter."""

    name = "binance"
    intervals = BINANCE_INTERVALS

    def get_base_url(self) -> str:
        if self.sandbox:
            return "https://testnet.binance.vision"
        return "https://api.binance.com"

    def _get_headers(self) -> dict[str, str]:
        return {
            "X-MBX-APIKEY": self.api_key,
            "Content-Type": "application/json",
            "User-Agent": "tradedash/1.0",
        }

    def sign(self, params: dict[str, Any]) -> dict[str, Any]:
        """Add millisecond timestamp and HMAC-SHA256 signature to params."""
        params = dict(params)
        params["timestamp"] = int(time.time() * 1000)
        query_string = urlencode(params)
        params["signature"] = self.generate_signature(self.api_secret, query_string)
        return params

    def _extract_error(self, data: Any) -> str | None:
        if isinstance(data, dict):
            return data.get("msg")
        return None

    async def test_credentials(self) -> Any:
        """Fetch the signed account endpoint."""
        self.validate_credentials()
        return await self._get_json("/api/v3/account", params=self.sign({}), headers=self._get_headers())

    async def _fetch_ticker_payload(self, symbol: str) -> Any:
        return await self._get_json("/api/v3/ticker/24hr", params={"symbol": symbol})

    async def _fetch_klines_payload(self, symbol: str, interval: str, limit: int) -> Any:
        params = {"symbol": symbol, "interval": interval, "limit": limit}
        return await self._get_json("/api/v3/klines", params=params)

    async def _fetch_symbols_payload(self) -> Any:
        return await self._get_json("/api/v3/exchangeInfo")

    def parse_ticker(self, payload: Any) -> Ticker:
        # priceChangePercent is already a percentage
        return Ticker(
            symbol=str(require_field(payload, "symbol")),
            price=to_decimal(require_field(payload, "lastPrice"), "lastPrice"),
            change_24h_percent=to_decimal(require_field(payload, "priceChangePercent"), "priceChangePercent"),
            volume_24h=to_decimal(require_field(payload, "volume"), "volume"),
            high_24h=to_decimal(require_field(payload, "highPrice"), "highPrice"),
            low_24h=to_decimal(require_field(payload, "lowPrice"), "lowPrice"),
        )

    def parse_candles(self, payload: Any) -> list[Candle]:
        if not isinstance(payload, list):
            raise MalformedResponse("binance klines payload is not a list")

        candles = []
        for row in payload:
            if not isinstance(row, (list, tuple)) or len(row) < 6:
                raise MalformedResponse(f"binance kline row has unexpected shape: {row!r}")
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
        return candles
