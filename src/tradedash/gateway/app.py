"""FastAPI application exposing the proxy gateway endpoints."""

from __future__ import annotations

import json
import logging
from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..settings import Settings
from .relay import DEFAULT_KLINE_LIMIT, ProxyRelay, RelayResult

logger = logging.getLogger(__name__)


def _respond(result: RelayResult) -> JSONResponse:
    return JSONResponse(result.to_dict(), status_code=result.status_code)


async def _read_body(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Ignoring unparsable request body on %s", request.url.path)
        return {}


def create_app(settings: Settings | None = None, relay: ProxyRelay | None = None) -> FastAPI:
    settings = settings or Settings()
    relay = relay or ProxyRelay(settings)

    app = FastAPI(
        title="tradedash proxy gateway",
        description="Relays credential tests and market data to exchange REST APIs",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.gateway.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.relay = relay

    @app.get("/health")
    async def health() -> dict[str, str]:
        return relay.health()

    @app.post("/api/{exchange}/test")
    async def test_connection(exchange: str, request: Request) -> JSONResponse:
        body = await _read_body(request)
        return _respond(await relay.test_credentials(exchange, body))

    @app.get("/api/prices/{exchange}/{symbol}")
    async def prices(exchange: str, symbol: str) -> JSONResponse:
        return _respond(await relay.prices(exchange, symbol))

    @app.get("/api/klines/{exchange}/{symbol}/{interval}")
    async def klines(exchange: str, symbol: str, interval: str, limit: str = str(DEFAULT_KLINE_LIMIT)) -> JSONResponse:
        return _respond(await relay.klines(exchange, symbol, interval, limit))

    @app.get("/api/symbols/{exchange}")
    async def symbols(exchange: str) -> JSONResponse:
        return _respond(await relay.symbols(exchange))

    return app


def run_gateway(settings: Settings) -> None:
    """Serve the gateway with uvicorn until interrupted."""
    app = create_app(settings)
    logger.info(
        "Trading API proxy gateway listening on http://%s:%s",
        settings.gateway.host,
        settings.gateway.port,
    )
    uvicorn.run(app, host=settings.gateway.host, port=settings.gateway.port, log_config=None)
