"""Protocol definition for exchange adapters."""

from __future__ import annotations

from typing import Any, Protocol

from ..models import Candle, Ticker


class ExchangeAdapter(Protocol):
    """Capability set every exchange adapter provides."""

    name: str
    requires_secret: bool
    supports_live_data: bool

    async def get_ticker(self, symbol: str) -> Ticker:
        """Fetch the current ticker for a symbol.

        Args:
            symbol: Trading symbol (e.g., 'BTCUSDT')

        Returns:
            Normalized Ticker

        Raises:
            UpstreamUnavailable: On network failure, non-2xx response or malformed body
        """
        ...

    async def get_candles(self, symbol: str, interval: str = "1h", limit: int = 100) -> list[Candle]:
        """Fetch recent candles, ascending by open time.

        Args:
            symbol: Trading symbol
            interval: Canonical interval (1m ... 1M)
            limit: Maximum number of candles; 0 returns an empty list

        Returns:
            List of Candle objects, oldest first
        """
        ...

    def map_interval(self, interval: str) -> str:
        """Translate a canonical interval into the exchange token."""
        ...

    def sign(self, params: dict[str, Any]) -> dict[str, Any]:
        """Add timestamp and signature to request parameters.

        Only exchanges with HMAC query signing implement this.
        """
        ...

    async def test_credentials(self) -> Any:
        """Call a private endpoint to verify the configured credentials.

        Returns:
            Raw upstream payload

        Raises:
            MissingCredentials: If required credentials are empty
            UpstreamUnavailable: If the exchange rejects the call
        """
        ...

    async def fetch_ticker_payload(self, symbol: str) -> Any:
        """Fetch the raw upstream ticker payload."""
        ...

    async def fetch_klines_payload(self, symbol: str, interval: str, limit: int) -> Any:
        """Fetch the raw upstream klines payload."""
        ...

    async def fetch_symbols_payload(self) -> Any:
        """Fetch the raw upstream instrument list."""
        ...

    async def close(self) -> None:
        """Close the HTTP session."""
        ...
