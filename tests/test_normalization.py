"""Tests for interval, symbol and number normalization."""

from decimal import Decimal

import pytest

from tradedash.errors import MalformedResponse
from tradedash.exchanges.normalization import (
    BINANCE_INTERVALS,
    BYBIT_INTERVALS,
    CANONICAL_INTERVALS,
    INTERVAL_DURATIONS_MS,
    check_symbol_mismatch,
    interval_duration_ms,
    map_interval,
    normalize_symbol,
    require_field,
    to_decimal,
    to_timestamp,
)


class TestMapInterval:
    """Tests for map_interval function."""

    @pytest.mark.parametrize("table", [BINANCE_INTERVALS, BYBIT_INTERVALS])
    def test_every_canonical_interval_is_mapped(self, table):
        """Every canonical interval has a token in each exchange table."""
        for interval in CANONICAL_INTERVALS:
            assert interval in table
            assert map_interval(interval, table)

    def test_binance_is_identity(self):
        assert map_interval("4h", BINANCE_INTERVALS) == "4h"
        assert map_interval("1M", BINANCE_INTERVALS) == "1M"

    def test_bybit_tokens(self):
        assert map_interval("1m", BYBIT_INTERVALS) == "1"
        assert map_interval("1h", BYBIT_INTERVALS) == "60"
        assert map_interval("12h", BYBIT_INTERVALS) == "720"
        assert map_interval("1d", BYBIT_INTERVALS) == "D"
        assert map_interval("1w", BYBIT_INTERVALS) == "W"
        assert map_interval("1M", BYBIT_INTERVALS) == "M"

    def test_unknown_interval_passes_through(self):
        """Exchange-native tokens are sent as-is."""
        assert map_interval("8h", BINANCE_INTERVALS) == "8h"
        assert map_interval("240", BYBIT_INTERVALS) == "240"

    def test_durations(self):
        assert set(INTERVAL_DURATIONS_MS) == set(CANONICAL_INTERVALS)
        assert interval_duration_ms("1h") == 3_600_000
        assert interval_duration_ms("1d") == 86_400_000
        # unknown falls back to an hour
        assert interval_duration_ms("8h") == 3_600_000


class TestNormalizeSymbol:
    """Tests for normalize_symbol function."""

    def test_unified_format(self):
        """Test conversion to unified format (BTCUSDT)."""
        assert normalize_symbol("BTCUSDT") == "BTCUSDT"
        assert normalize_symbol("BTC-USDT") == "BTCUSDT"
        assert normalize_symbol("BTC/USDT") == "BTCUSDT"

    def test_case_insensitive(self):
        """Test that normalization is case-insensitive."""
        assert normalize_symbol("btcusdt") == "BTCUSDT"
        assert normalize_symbol("reliance") == "RELIANCE"

    def test_whitespace_stripped(self):
        """Test that whitespace is stripped."""
        assert normalize_symbol("  BTC - USDT  ") == "BTCUSDT"

    @pytest.mark.parametrize("symbol", ["", "   ", "-/", None])
    def test_empty_symbol_rejected(self, symbol):
        with pytest.raises(ValueError):
            normalize_symbol(symbol)


class TestToDecimal:
    """Tests for to_decimal function."""

    def test_string_and_number(self):
        assert to_decimal("43250.5", "price") == Decimal("43250.5")
        assert to_decimal(12, "volume") == Decimal("12")

    def test_float_keeps_short_repr(self):
        assert to_decimal(0.1, "x") == Decimal("0.1")

    @pytest.mark.parametrize("value", [None, "abc", "", True, "NaN", "Infinity"])
    def test_invalid_values(self, value):
        with pytest.raises(MalformedResponse):
            to_decimal(value, "price")


def test_require_field():
    assert require_field({"a": 1}, "a") == 1
    with pytest.raises(MalformedResponse):
        require_field({"a": 1}, "b")
    with pytest.raises(MalformedResponse):
        require_field(["a"], "a")


def test_check_symbol_mismatch(caplog):
    """Mismatches are logged, not raised."""
    assert check_symbol_mismatch("BTCUSDT", "btc-usdt") is True
    assert check_symbol_mismatch("BTCUSDT", "ETHUSDT") is False
    assert "Symbol mismatch" in caplog.text


class TestToTimestamp:
    """Tests for to_timestamp function."""

    def test_valid(self):
        assert to_timestamp("1700000000000") == 1700000000000
        assert to_timestamp(1700000000000) == 1700000000000

    @pytest.mark.parametrize("value", [None, "abc", "", True, [1]])
    def test_invalid_values(self, value):
        with pytest.raises(MalformedResponse):
            to_timestamp(value)
