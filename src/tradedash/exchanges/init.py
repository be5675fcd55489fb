"""Exchange adapter initialization from settings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .base import BaseExchangeAdapter
from .factory import create_exchange_adapter
from ..settings import Settings

if TYPE_CHECKING:
    from ..gateway.client import GatewayClient

logger = logging.getLogger(__name__)


def create_exchange_adapters_from_settings(
    settings: Settings,
    gateway: "GatewayClient | None" = None,
) -> dict[str, BaseExchangeAdapter]:
    """Create market-data adapters for every enabled exchange in settings.

    Market data is public, so no credentials are attached here; credentials
    only travel through connectivity tests.
    """
    adapters: dict[str, BaseExchangeAdapter] = {}

    for exchange_name, exchange_config in settings.exchanges.items():
        if not exchange_config.enabled:
            logger.debug("Exchange %s is disabled, skipping", exchange_name)
            continue

        try:
            adapter = create_exchange_adapter(
                exchange_name,
                sandbox=exchange_config.sandbox,
                gateway=gateway,
                timeout=settings.gateway.timeout,
                **exchange_config.options,
            )
        except (ValueError, TypeError) as e:
            logger.error("Failed to initialize exchange adapter for %s: %s", exchange_name, e)
            continue

        adapters[exchange_name] = adapter
        logger.info("Initialized exchange adapter for %s", exchange_name)

    return adapters
