"""Exchange adapters and market-data normalization."""

from .protocol import ExchangeAdapter
from .base import BaseExchangeAdapter
from .binance import BinanceAdapter
from .bybit import BybitAdapter
from .dhan import DhanAdapter
from .factory import EXCHANGE_ADAPTERS, create_exchange_adapter, get_adapter_class
from .normalization import CANONICAL_INTERVALS, map_interval, normalize_symbol

__all__ = [
    "ExchangeAdapter",
    "BaseExchangeAdapter",
    "BinanceAdapter",
    "BybitAdapter",
    "DhanAdapter",
    "EXCHANGE_ADAPTERS",
    "create_exchange_adapter",
    "get_adapter_class",
    "CANONICAL_INTERVALS",
    "map_interval",
    "normalize_symbol",
]
