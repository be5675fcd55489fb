from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import load_settings
from .logging import configure_logging

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main entry point supporting both gateway server and CLI modes.

    - `tradedash` or `tradedash gateway`: run the proxy gateway
    - `tradedash <typer-subcommand>`: run CLI mode (e.g. `tradedash ticker bybit BTCUSDT`)
    """
    if argv is None:
        argv = sys.argv[1:]

    if not argv:
        return _run_gateway_mode([])

    if argv[0] == "gateway":
        return _run_gateway_mode(argv[1:])

    return _run_cli_mode(argv)


def _run_gateway_mode(argv: list[str]) -> int:
    parser = argparse.ArgumentParser(
        prog="tradedash gateway", description="Run the exchange proxy gateway"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file (default: TRADEDASH_CONFIG or ./config.yml)",
    )
    parser.add_argument("--host", default=None, help="Bind address (overrides config)")
    parser.add_argument("--port", type=int, default=None, help="Listen port (overrides config)")

    args = parser.parse_args(argv)
    configure_logging(Path("logs"))

    settings = load_settings(args.config)
    if args.host:
        settings.gateway.host = args.host
    if args.port:
        settings.gateway.port = args.port

    from .gateway.app import run_gateway

    logger.info("tradedash gateway booting")
    run_gateway(settings)
    logger.info("tradedash gateway exit")
    return 0


def _run_cli_mode(argv: list[str]) -> int:
    try:
        configure_logging(Path("logs"))

        from .cli import run_cli
        run_cli(argv)
        return 0
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 0
    except Exception as e:
        logger.error("CLI error: %s", e, exc_info=True)
        return 1
