"""Proxy gateway: HTTP relay to exchange APIs and its client."""

from .client import GatewayClient
from .relay import ProxyRelay, RelayResult

__all__ = ["GatewayClient", "ProxyRelay", "RelayResult"]
