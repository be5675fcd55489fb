from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, SecretStr


class GatewaySettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = Field(default=3001, gt=0, lt=65536)
    url: str = "http://localhost:3001"
    use_for_market_data: bool = False
    timeout: float = Field(default=10.0, gt=0)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    model_config = {"extra": "forbid"}


class PollerSettings(BaseModel):
    ticker_interval: float = Field(default=2.0, gt=0)
    chart_interval: float = Field(default=30.0, gt=0)
    window: int = Field(default=100, ge=0)
    live: bool = True

    model_config = {"extra": "forbid"}


class ExchangeSettings(BaseModel):
    enabled: bool = True
    sandbox: bool = False
    sample_base_price: float | None = Field(default=None, gt=0)
    options: dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}


class TelegramSettings(BaseModel):
    bot_token: SecretStr | None = None
    chat_id: str | None = None

    model_config = {"extra": "forbid"}


class WatchItem(BaseModel):
    exchange: str
    symbol: str
    interval: str = "1h"

    model_config = {"extra": "forbid"}


def _default_exchanges() -> dict[str, ExchangeSettings]:
    return {
        "binance": ExchangeSettings(),
        "bybit": ExchangeSettings(),
        "dhan": ExchangeSettings(),
    }


class Settings(BaseModel):
    env: str = "dev"
    storage_path: Path = Path("data/storage.json")
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    poller: PollerSettings = Field(default_factory=PollerSettings)
    exchanges: dict[str, ExchangeSettings] = Field(default_factory=_default_exchanges)
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)
    watchlist: list[WatchItem] = Field(default_factory=list)

    model_config = {"extra": "forbid"}

    def redacted(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        telegram = data.get("telegram")
        if isinstance(telegram, dict) and telegram.get("bot_token") is not None:
            telegram["bot_token"] = "***"
        return data

    def sample_base_prices(self) -> dict[str, float]:
        return {
            name: exch.sample_base_price
            for name, exch in self.exchanges.items()
            if exch.sample_base_price is not None
        }
