"""Error taxonomy shared by adapters, the gateway and the poller."""

from __future__ import annotations

from typing import Any


class TradeDashError(Exception):
    """Base class for all tradedash errors."""


class MissingCredentials(TradeDashError):
    """Credentials required for a call were not supplied.

    Raised before any network call is attempted.
    """


class UpstreamUnavailable(TradeDashError):
    """An exchange call failed: network error, non-2xx response or error body."""

    def __init__(self, message: str, *, status: int | None = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload


class MalformedResponse(UpstreamUnavailable):
    """Upstream answered, but not in the expected shape."""


class ProxyUnreachable(UpstreamUnavailable):
    """The proxy gateway itself could not be reached."""


class TradingLocked(TradeDashError):
    """Trading was enabled for an exchange that has not passed a connection test."""
