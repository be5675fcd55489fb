"""Dhan equities broker adapter."""

from __future__ import annotations

import logging
from typing import Any

from .base import BaseExchangeAdapter

logger = logging.getLogger(__name__)


class DhanAdapter(BaseExchangeAdapter):
    """Dhan broker adapter.

    Dhan authenticates with a single access token and exposes no public
    market-data endpoint, so only the credential test talks to the network.
    Consumers fall back to sample data for charts.
    """

    name = "dhan"
    requires_secret = False
    supports_live_data = False

    def get_base_url(self) -> str:
        if self.sandbox:
            return "https://sandbox.dhan.co"
        return "https://api.dhan.co"

    def _get_headers(self) -> dict[str, str]:
        return {
            "access-token": self.api_key,
            "Content-Type": "application/json",
            "User-Agent": "tradedash/1.0",
        }

    def _extract_error(self, data: Any) -> str | None:
        if isinstance(data, dict):
            return data.get("errorMessage") or data.get("message")
        return None

    async def test_credentials(self) -> Any:
        """List orders with the access token."""
        self.validate_credentials()
        return await self._get_json("/orders", headers=self._get_headers())
