"""Factory for creating exchange adapter instances."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Type

from .base import BaseExchangeAdapter
from .binance import BinanceAdapter
from .bybit import BybitAdapter
from .dhan import DhanAdapter

if TYPE_CHECKING:
    from ..gateway.client import GatewayClient


EXCHANGE_ADAPTERS: dict[str, Type[BaseExchangeAdapter]] = {
    "binance": BinanceAdapter,
    "bybit": BybitAdapter,
    "dhan": DhanAdapter,
}


def get_adapter_class(exchange: str) -> Type[BaseExchangeAdapter]:
    """Look up the adapter class for an exchange name.

    Raises:
        ValueError: If exchange is not supported
    """
    exchange_lower = (exchange or "").lower()
    if exchange_lower not in EXCHANGE_ADAPTERS:
        supported = ", ".join(EXCHANGE_ADAPTERS.keys())
        raise ValueError(f"Unsupported exchange: {exchange}. Supported exchanges: {supported}")
    return EXCHANGE_ADAPTERS[exchange_lower]


def create_exchange_adapter(
    exchange: str,
    api_key: str = "",
    api_secret: str = "",
    *,
    sandbox: bool = False,
    gateway: "GatewayClient | None" = None,
    **options: Any,
) -> BaseExchangeAdapter:
    """Create an exchange adapter instance.

    Args:
        exchange: Exchange name (binance, bybit, dhan)
        api_key: API key or access token
        api_secret: API secret (ignored by exchanges that need none)
        sandbox: Use sandbox/testnet environment
        gateway: Proxy gateway client for public market data
        **options: Additional exchange-specific options (e.g. bybit ``category``)

    Returns:
        Configured exchange adapter

    Raises:
        ValueError: If exchange is not supported
    """
    adapter_class = get_adapter_class(exchange)
    return adapter_class(api_key, api_secret, sandbox=sandbox, gateway=gateway, **options)
