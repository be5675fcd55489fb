"""Synthetic OHLCV data used when live market data is off or unavailable."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from .exchanges.normalization import interval_duration_ms
from .models import Candle, Ticker

SAMPLE_CANDLE_COUNT = 101
EQUITY_EXCHANGES = frozenset({"dhan"})
DAY_MS = 24 * 60 * 60 * 1000


@dataclass(frozen=True, slots=True)
class SampleProfile:
    base_price: float
    volatility: float
    volume_min: float
    volume_span: float


CRYPTO_PROFILE = SampleProfile(base_price=43000.0, volatility=0.02, volume_min=500_000.0, volume_span=1_000_000.0)
EQUITY_PROFILE = SampleProfile(base_price=2500.0, volatility=0.015, volume_min=25_000.0, volume_span=50_000.0)


def profile_for(exchange: str) -> SampleProfile:
    return EQUITY_PROFILE if exchange.lower() in EQUITY_EXCHANGES else CRYPTO_PROFILE


def _dec(value: float) -> Decimal:
    # str() keeps the float ordering, so high/low bounds survive the conversion
    return Decimal(str(value))


def generate_sample_candles(
    exchange: str,
    interval: str = "1h",
    count: int = SAMPLE_CANDLE_COUNT,
    *,
    base_price: float | None = None,
    rng: random.Random | None = None,
    now_ms: int | None = None,
) -> list[Candle]:
    """Random-walk candles ending at ``now_ms``, one per interval.

    Each candle opens at the previous close; wicks extend up to 1% past the
    body so ``high >= max(open, close)`` and ``low <= min(open, close)``.
    """
    if count < 0:
        raise ValueError("count must be >= 0")

    profile = profile_for(exchange)
    rng = rng or random.Random()
    step = interval_duration_ms(interval)
    if now_ms is None:
        now_ms = int(time.time() * 1000)

    price = base_price if base_price is not None else profile.base_price
    candles: list[Candle] = []

    for i in range(count - 1, -1, -1):
        change = (rng.random() - 0.5) * 2 * profile.volatility
        open_ = price
        close = open_ * (1 + change)
        high = max(open_, close) * (1 + rng.random() * 0.01)
        low = min(open_, close) * (1 - rng.random() * 0.01)
        volume = rng.random() * profile.volume_span + profile.volume_min

        candles.append(
            Candle(
                open_time=now_ms - i * step,
                open=_dec(open_),
                high=_dec(high),
                low=_dec(low),
                close=_dec(close),
                volume=_dec(volume),
            )
        )
        price = close

    return candles


def sample_ticker(symbol: str, candles: Sequence[Candle]) -> Ticker:
    """Summarize a sample series as a ticker."""
    if not candles:
        raise ValueError("cannot derive a ticker from an empty series")

    last = candles[-1]
    # only buckets opened within the last 24h of the series count as "24h"
    cutoff = last.open_time - DAY_MS
    window = [c for c in candles if c.open_time > cutoff]
    first = window[0]
    change = (last.close - first.open) / first.open * 100 if first.open else Decimal(0)
    return Ticker(
        symbol=symbol,
        price=last.close,
        change_24h_percent=change,
        volume_24h=sum((c.volume for c in window), Decimal(0)),
        high_24h=max(c.high for c in window),
        low_24h=min(c.low for c in window),
    )
