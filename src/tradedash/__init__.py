"""tradedash: exchange proxy gateway and market-data poller for a trading dashboard."""

__version__ = "0.1.0"

from .settings import Settings
from .models import Candle, CandleSeries, Ticker
from .errors import (
    MalformedResponse,
    MissingCredentials,
    ProxyUnreachable,
    TradeDashError,
    TradingLocked,
    UpstreamUnavailable,
)

__all__ = [
    "__version__",
    "Settings",
    "Candle",
    "CandleSeries",
    "Ticker",
    "TradeDashError",
    "MissingCredentials",
    "UpstreamUnavailable",
    "MalformedResponse",
    "ProxyUnreachable",
    "TradingLocked",
]
