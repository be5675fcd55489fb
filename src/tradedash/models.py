"""Normalized market data shared by every exchange adapter."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Ticker:
    """Current price and 24h statistics for one symbol.

    Percentages are already multiplied by 100, volumes are in base units.
    """

    symbol: str
    price: Decimal
    change_24h_percent: Decimal
    volume_24h: Decimal
    high_24h: Decimal
    low_24h: Decimal
    observed_at: datetime = field(default_factory=utc_now)

    def observed_after(self, previous: "Ticker | None") -> "Ticker":
        """Return this ticker with ``observed_at`` strictly later than ``previous``."""
        if previous is None or self.observed_at > previous.observed_at:
            return self
        return replace(self, observed_at=previous.observed_at + timedelta(milliseconds=1))


@dataclass(frozen=True, slots=True)
class Candle:
    """One OHLCV bucket; ``open_time`` is epoch milliseconds."""

    open_time: int
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal


class CandleSeries:
    """Fixed-length window of candles, ascending by ``open_time``.

    New buckets are appended at the tail, a candle for the newest bucket
    replaces it in place (the exchange keeps updating the open bucket), and
    anything older than the tail is ignored. Once the window is exceeded the
    oldest candles are evicted from the head.
    """

    def __init__(self, window: int = 100, candles: Iterable[Candle] = ()):
        if window < 0:
            raise ValueError("window must be >= 0")
        self.window = window
        self._candles: list[Candle] = []
        self.merge(candles)

    def merge(self, candles: Iterable[Candle]) -> None:
        for candle in sorted(candles, key=lambda c: c.open_time):
            if not self._candles or candle.open_time > self._candles[-1].open_time:
                self._candles.append(candle)
            elif candle.open_time == self._candles[-1].open_time:
                self._candles[-1] = candle
        overflow = len(self._candles) - self.window
        if overflow > 0:
            del self._candles[:overflow]

    def clear(self) -> None:
        self._candles.clear()

    def to_tuple(self) -> tuple[Candle, ...]:
        return tuple(self._candles)

    @property
    def last(self) -> Candle | None:
        return self._candles[-1] if self._candles else None

    def __len__(self) -> int:
        return len(self._candles)

    def __iter__(self):
        return iter(self._candles)
