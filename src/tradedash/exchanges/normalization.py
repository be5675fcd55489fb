"""Interval, symbol and number normalization across exchanges."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from ..errors import MalformedResponse

logger = logging.getLogger(__name__)

CANONICAL_INTERVALS: tuple[str, ...] = (
    "1m", "3m", "5m", "15m", "30m",
    "1h", "2h", "4h", "6h", "12h",
    "1d", "1w", "1M",
)

_MINUTE_MS = 60 * 1000

INTERVAL_DURATIONS_MS: dict[str, int] = {
    "1m": _MINUTE_MS,
    "3m": 3 * _MINUTE_MS,
    "5m": 5 * _MINUTE_MS,
    "15m": 15 * _MINUTE_MS,
    "30m": 30 * _MINUTE_MS,
    "1h": 60 * _MINUTE_MS,
    "2h": 120 * _MINUTE_MS,
    "4h": 240 * _MINUTE_MS,
    "6h": 360 * _MINUTE_MS,
    "12h": 720 * _MINUTE_MS,
    "1d": 1440 * _MINUTE_MS,
    "1w": 7 * 1440 * _MINUTE_MS,
    "1M": 30 * 1440 * _MINUTE_MS,
}

# Binance uses the canonical tokens as-is.
BINANCE_INTERVALS: dict[str, str] = {interval: interval for interval in CANONICAL_INTERVALS}

BYBIT_INTERVALS: dict[str, str] = {
    "1m": "1",
    "3m": "3",
    "5m": "5",
    "15m": "15",
    "30m": "30",
    "1h": "60",
    "2h": "120",
    "4h": "240",
    "6h": "360",
    "12h": "720",
    "1d": "D",
    "1w": "W",
    "1M": "M",
}


def map_interval(interval: str, table: Mapping[str, str]) -> str:
    """Translate a canonical interval into an exchange token.

    Unknown intervals are passed through unchanged so that callers can use
    exchange-native tokens directly.

    Args:
        interval: Canonical interval (e.g. '1h')
        table: Exchange-specific token table

    Returns:
        Exchange token, or ``interval`` itself when the table has no entry
    """
    return table.get(interval, interval)


def interval_duration_ms(interval: str, default: int = INTERVAL_DURATIONS_MS["1h"]) -> int:
    return INTERVAL_DURATIONS_MS.get(interval, default)


def normalize_symbol(symbol: str) -> str:
    """Normalize a symbol to the unified exchange format.

    - BTCUSDT -> BTCUSDT
    - btc-usdt -> BTCUSDT
    - BTC/USDT -> BTCUSDT

    Raises:
        ValueError: If the symbol is empty
    """
    unified = (symbol or "").strip().replace("-", "").replace("/", "").replace(" ", "").upper()
    if not unified:
        raise ValueError("symbol must be a non-empty identifier")
    return unified


def to_decimal(value: Any, field_name: str) -> Decimal:
    """Coerce an upstream numeric field (usually a string) into a Decimal.

    Raises:
        MalformedResponse: If the field is missing or not numeric
    """
    if value is None or isinstance(value, bool):
        raise MalformedResponse(f"Missing numeric field: {field_name}")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise MalformedResponse(f"Invalid numeric field {field_name}: {value!r}") from exc
    if not result.is_finite():
        raise MalformedResponse(f"Invalid numeric field {field_name}: {value!r}")
    return result


def to_timestamp(value: Any, field_name: str = "open_time") -> int:
    """Coerce an upstream epoch-millisecond field into an int.

    Raises:
        MalformedResponse: If the field is missing or not an integer
    """
    if value is None or isinstance(value, bool):
        raise MalformedResponse(f"Missing timestamp field: {field_name}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise MalformedResponse(f"Invalid timestamp field {field_name}: {value!r}") from exc


def require_field(data: Mapping[str, Any], key: str) -> Any:
    if not isinstance(data, Mapping) or key not in data:
        raise MalformedResponse(f"Missing field in upstream response: {key}")
    return data[key]


def check_symbol_mismatch(expected: str, actual: str) -> bool:
    """Check whether the symbol an exchange reported matches the one requested.

    Logs a warning on mismatch.
    """
    try:
        if normalize_symbol(expected) == normalize_symbol(actual):
            return True
    except ValueError:
        pass
    logger.warning("Symbol mismatch: expected %s, got %s", expected, actual)
    return False
