from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .exchanges.base import BaseExchangeAdapter
from .exchanges.init import create_exchange_adapters_from_settings
from .gateway.client import GatewayClient
from .notifications import TelegramNotifier
from .poller import MarketDataPoller
from .store import ConfigStore, JsonFileStorage

if TYPE_CHECKING:
    from .settings import Settings


@dataclass(slots=True)
class AppContainer:
    settings: "Settings"
    store: ConfigStore
    gateway: GatewayClient
    poller: MarketDataPoller
    notifier: TelegramNotifier
    adapters: dict[str, BaseExchangeAdapter] = field(default_factory=dict)
    shutdown: asyncio.Event = field(default_factory=asyncio.Event)

    async def aclose(self) -> None:
        await self.poller.close()
        for adapter in self.adapters.values():
            await adapter.close()
        await self.gateway.close()
        await self.notifier.close()


def build_container(
    settings: "Settings",
    adapters: dict[str, BaseExchangeAdapter] | None = None,
) -> AppContainer:
    """Wire store, gateway client, adapters and poller from settings."""
    gateway = GatewayClient(settings.gateway.url, timeout=settings.gateway.timeout)
    if adapters is None:
        adapters = create_exchange_adapters_from_settings(
            settings,
            gateway=gateway if settings.gateway.use_for_market_data else None,
        )

    poller = MarketDataPoller(
        adapters,
        window=settings.poller.window,
        live=settings.poller.live,
        sample_base_prices=settings.sample_base_prices(),
    )
    token = settings.telegram.bot_token.get_secret_value() if settings.telegram.bot_token else None
    notifier = TelegramNotifier(token, settings.telegram.chat_id, timeout=settings.gateway.timeout)

    return AppContainer(
        settings=settings,
        store=ConfigStore(JsonFileStorage(settings.storage_path)),
        gateway=gateway,
        poller=poller,
        notifier=notifier,
        adapters=adapters,
    )
