"""Telegram alert sender."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from .errors import MissingCredentials, UpstreamUnavailable

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


class TelegramNotifier:
    """Sends messages to one chat through the Telegram Bot API."""

    def __init__(self, bot_token: str | None, chat_id: str | None, *, timeout: float = 10.0):
        self.bot_token = bot_token or ""
        self.chat_id = chat_id or ""
        self.timeout = timeout
        self.session: aiohttp.ClientSession | None = None
        self._pending: set[asyncio.Task[Any]] = set()

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        return self.session

    async def send(self, text: str) -> dict[str, Any]:
        """Send ``text`` and return Telegram's ``result`` object.

        Raises:
            MissingCredentials: If bot token or chat id is not set
            ValueError: If the message is blank
            UpstreamUnavailable: If Telegram rejects or cannot be reached
        """
        if not self.configured:
            raise MissingCredentials("Please enter both Bot Token and Chat ID")
        if not text or not text.strip():
            raise ValueError("Please enter a message")

        session = await self._ensure_session()
        url = f"{TELEGRAM_API_URL}/bot{self.bot_token}/sendMessage"
        payload = {"chat_id": self.chat_id, "text": text}

        try:
            async with session.post(url, json=payload) as resp:
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise UpstreamUnavailable(f"Telegram request failed: {exc or type(exc).__name__}") from exc

        if not isinstance(data, dict) or not data.get("ok"):
            description = data.get("description") if isinstance(data, dict) else None
            raise UpstreamUnavailable(description or f"Telegram returned HTTP {resp.status}", status=resp.status, payload=data)
        return data.get("result") or {}

    def notify(self, text: str) -> asyncio.Task[Any] | None:
        """Fire-and-forget send; failures are logged and never raised."""
        if not self.configured:
            logger.debug("Telegram not configured, dropping alert")
            return None
        task = asyncio.create_task(self._send_logged(text))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _send_logged(self, text: str) -> None:
        try:
            await self.send(text)
        except (UpstreamUnavailable, MissingCredentials, ValueError) as exc:
            logger.warning("Telegram alert not delivered: %s", exc)

    async def close(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        if self.session:
            await self.session.close()
            self.session = None
