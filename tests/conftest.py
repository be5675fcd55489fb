"""Pytest configuration and fixtures."""

import pytest


@pytest.fixture
def api_key():
    """Test API key."""
    return "test_api_key_123456"


@pytest.fixture
def api_secret():
    """Test API secret."""
    return "test_api_secret_789012"


@pytest.fixture
def bybit_ticker_response():
    """Bybit v5 linear ticker body."""
    return {
        "retCode": 0,
        "retMsg": "OK",
        "result": {
            "category": "linear",
            "list": [
                {
                    "symbol": "BTCUSDT",
                    "lastPrice": "43250.5",
                    "price24hPcnt": "0.021",
                    "volume24h": "1200000",
                    "highPrice24h": "43900",
                    "lowPrice24h": "42800",
                }
            ],
        },
    }


@pytest.fixture
def bybit_kline_response():
    """Bybit v5 kline body, newest first."""
    return {
        "retCode": 0,
        "retMsg": "OK",
        "result": {
            "symbol": "BTCUSDT",
            "category": "linear",
            "list": [
                ["1700007200000", "43200", "43300", "43100", "43250", "12.5", "540000"],
                ["1700003600000", "43000", "43250", "42950", "43200", "10.0", "431000"],
                ["1700000000000", "42900", "43050", "42850", "43000", "8.0", "344000"],
            ],
        },
    }


@pytest.fixture
def binance_ticker_response():
    """Binance 24hr ticker body."""
    return {
        "symbol": "ETHUSDT",
        "priceChange": "-45.20",
        "priceChangePercent": "-1.95",
        "lastPrice": "2270.80",
        "highPrice": "2330.00",
        "lowPrice": "2250.10",
        "volume": "315000.5",
        "quoteVolume": "720000000",
    }


@pytest.fixture
def binance_kline_response():
    """Binance klines body, oldest first."""
    return [
        [1700000000000, "2300.0", "2310.0", "2290.0", "2305.0", "1000.0", 1700003599999, "2300000", 100, "500", "1150000", "0"],
        [1700003600000, "2305.0", "2320.0", "2300.0", "2315.0", "1200.0", 1700007199999, "2770000", 120, "600", "1380000", "0"],
    ]
