"""Persistent exchange credential config and connection testing."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Protocol

from pydantic import BaseModel, Field, ValidationError

from .errors import MissingCredentials, TradingLocked, UpstreamUnavailable
from .exchanges.factory import get_adapter_class

logger = logging.getLogger(__name__)

STORAGE_KEY = "tradedash.apiConfigs"
DEFAULT_EXCHANGES = ("binance", "bybit", "dhan")


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    TESTING = "testing"
    CONNECTED = "connected"
    ERROR = "error"


class CredentialConfig(BaseModel):
    api_key: str = Field(default="", alias="apiKey")
    secret_key: str = Field(default="", alias="secretKey")
    testnet: bool = False
    enabled: bool = False
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED

    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
    }

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


@dataclass(frozen=True, slots=True)
class ConnectivityTestResult:
    success: bool
    error_message: str | None = None


def default_configs() -> dict[str, CredentialConfig]:
    return {exchange: CredentialConfig() for exchange in DEFAULT_EXCHANGES}


class JsonFileStorage:
    """Flat string key/value storage kept in one JSON file.

    Every write rewrites the whole file synchronously.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Storage file %s is unreadable, treating as empty: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Storage file %s does not hold an object, treating as empty", self.path)
            return {}
        return data

    def get_item(self, key: str) -> str | None:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(self.path)


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...


class ConfigStore:
    """Credential config per exchange, persisted under a single storage key.

    The stored value is the JSON blob
    ``{exchangeId: {apiKey, secretKey, testnet, enabled, status}}``.
    Anything unparsable counts as "nothing saved" and yields the defaults.
    """

    def __init__(self, storage: KeyValueStorage, key: str = STORAGE_KEY):
        self.storage = storage
        self.key = key

    def load(self) -> dict[str, CredentialConfig]:
        raw = self.storage.get_item(self.key)
        if raw is None:
            return default_configs()

        try:
            blob = json.loads(raw)
            if not isinstance(blob, dict):
                raise ValueError(f"expected an object, got {type(blob).__name__}")
            return {exchange: CredentialConfig.model_validate(value) for exchange, value in blob.items()}
        except (ValueError, ValidationError) as exc:
            logger.warning("Saved exchange config is corrupt, using defaults: %s", exc)
            return default_configs()

    def save(self, configs: Mapping[str, CredentialConfig]) -> None:
        blob = {exchange: config.to_storage() for exchange, config in configs.items()}
        self.storage.set_item(self.key, json.dumps(blob))

    def get(self, exchange: str) -> CredentialConfig:
        return self.load().get(exchange, CredentialConfig())

    def update(self, exchange: str, **fields: Any) -> CredentialConfig:
        """Change fields of one exchange's config and persist immediately."""
        configs = self.load()
        current = configs.get(exchange, CredentialConfig())
        data = current.model_dump()
        data.update(fields)
        updated = CredentialConfig.model_validate(data)
        configs[exchange] = updated
        self.save(configs)
        return updated

    def set_trading_enabled(self, exchange: str, enabled: bool) -> CredentialConfig:
        """Toggle trading; only a connected exchange can be enabled.

        Raises:
            TradingLocked: If enabling an exchange that is not connected
        """
        config = self.get(exchange)
        if enabled and config.status is not ConnectionStatus.CONNECTED:
            raise TradingLocked(f"{exchange} must pass a connection test before trading can be enabled")
        return self.update(exchange, enabled=enabled)


class CredentialTester(Protocol):
    async def test_credentials(self, exchange: str, api_key: str, secret_key: str = "", testnet: bool = False) -> Any: ...


class ConnectivityTester:
    """Drives ``disconnected -> testing -> connected | error`` for an exchange.

    The test can be re-run at any time; each run starts from ``testing``.
    """

    def __init__(self, store: ConfigStore, tester: CredentialTester):
        self.store = store
        self.tester = tester

    async def test(self, exchange: str) -> ConnectivityTestResult:
        """Test the stored credentials through the gateway.

        Raises:
            MissingCredentials: If the key (or secret, where required) is empty;
                nothing is sent and the status is left unchanged
            ValueError: If the exchange is unknown
        """
        config = self.store.get(exchange)
        requires_secret = get_adapter_class(exchange).requires_secret

        if not config.api_key or (requires_secret and not config.secret_key):
            if not requires_secret:
                raise MissingCredentials("Please enter your Access Token")
            raise MissingCredentials("Please enter both API Key and Secret Key")

        self.store.update(exchange, status=ConnectionStatus.TESTING)
        logger.info("Testing %s connection (testnet=%s)", exchange, config.testnet)

        try:
            await self.tester.test_credentials(
                exchange,
                config.api_key,
                config.secret_key if requires_secret else "",
                config.testnet,
            )
        except UpstreamUnavailable as exc:
            self.store.update(exchange, status=ConnectionStatus.ERROR, enabled=False)
            logger.warning("%s connection test failed: %s", exchange, exc.message)
            return ConnectivityTestResult(success=False, error_message=exc.message)
        except BaseException:
            # never leave "testing" persisted, including on cancellation
            self.store.update(exchange, status=ConnectionStatus.ERROR, enabled=False)
            logger.warning("%s connection test aborted", exchange)
            raise

        self.store.update(exchange, status=ConnectionStatus.CONNECTED, enabled=True)
        logger.info("%s connection test succeeded", exchange)
        return ConnectivityTestResult(success=True)
