"""Typer-based CLI for market data, exchange config and alerts."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .errors import MissingCredentials, TradeDashError, TradingLocked, UpstreamUnavailable
from .exchanges.normalization import CANONICAL_INTERVALS

if TYPE_CHECKING:
    from .di import AppContainer
    from .poller import MarketSnapshot, Subscription


# Local imports keep `tradedash --help` fast and make these easy to patch in tests
def _load_settings(config_path: Optional[Path] = None):
    from .config import load_settings
    return load_settings(config_path)


def _build_container(settings):
    from .di import build_container
    return build_container(settings)


app = typer.Typer(help="Trading dashboard market data and exchange tools")
console = Console()
logger = logging.getLogger(__name__)


def run_cli(argv: list[str] | None = None) -> None:
    """Run CLI with optional argv parameter."""
    app(argv)


def init_components(config_path: Optional[Path] = None) -> "AppContainer":
    settings = _load_settings(config_path)
    return _build_container(settings)


def _mask(value: str) -> str:
    if not value:
        return "-"
    if len(value) <= 6:
        return "***"
    return f"{value[:3]}***{value[-3:]}"


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]Error:[/red] {message}")
    return typer.Exit(1)


def _adapter_or_exit(container: "AppContainer", exchange: str):
    adapter = container.adapters.get(exchange.lower())
    if adapter is None:
        raise _fail(f"Exchange '{exchange}' not configured")
    return adapter


def _run_and_close(container: "AppContainer", make_coro):
    async def _runner():
        try:
            return await make_coro()
        finally:
            await container.aclose()

    return asyncio.run(_runner())


def _check_interval(interval: str) -> str:
    if interval not in CANONICAL_INTERVALS:
        console.print(f"[yellow]Warning:[/yellow] '{interval}' is not a canonical interval, passing it through")
    return interval


@app.command()
def ticker(
    exchange: str = typer.Argument(..., help="Exchange (binance, bybit, dhan)"),
    symbol: str = typer.Argument(..., help="Trading symbol"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show the current ticker for a symbol."""
    container = init_components(config)

    adapter = _adapter_or_exit(container, exchange)

    try:
        result = _run_and_close(container, lambda: adapter.get_ticker(symbol))
    except UpstreamUnavailable as e:
        raise _fail(e.message)
    except ValueError as e:
        raise _fail(str(e))

    table = Table(title=f"{exchange} {result.symbol}")
    table.add_column("Price", style="cyan")
    table.add_column("24h %", style="magenta")
    table.add_column("24h High", style="green")
    table.add_column("24h Low", style="red")
    table.add_column("24h Volume", style="blue")
    change_style = "green" if result.change_24h_percent >= 0 else "red"
    table.add_row(
        f"{result.price}",
        f"[{change_style}]{result.change_24h_percent:.2f}%[/{change_style}]",
        f"{result.high_24h}",
        f"{result.low_24h}",
        f"{result.volume_24h}",
    )
    console.print(table)


@app.command()
def candles(
    exchange: str = typer.Argument(..., help="Exchange (binance, bybit)"),
    symbol: str = typer.Argument(..., help="Trading symbol"),
    interval: str = typer.Option("1h", help="Candle interval"),
    limit: int = typer.Option(20, min=0, help="Number of candles"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show recent candles for a symbol."""
    container = init_components(config)
    _check_interval(interval)

    adapter = _adapter_or_exit(container, exchange)

    try:
        rows = _run_and_close(container, lambda: adapter.get_candles(symbol, interval, limit))
    except UpstreamUnavailable as e:
        raise _fail(e.message)
    except ValueError as e:
        raise _fail(str(e))

    if not rows:
        console.print("[yellow]No candles returned[/yellow]")
        return

    console.print(_candle_table(f"{exchange} {symbol.upper()} {interval}", rows))


def _candle_table(title: str, rows) -> Table:
    table = Table(title=title)
    table.add_column("Open time", style="dim")
    table.add_column("Open")
    table.add_column("High", style="green")
    table.add_column("Low", style="red")
    table.add_column("Close", style="cyan")
    table.add_column("Volume", style="blue")
    for candle in rows:
        opened = datetime.fromtimestamp(candle.open_time / 1000, tz=timezone.utc)
        table.add_row(
            opened.strftime("%Y-%m-%d %H:%M"),
            f"{candle.open}",
            f"{candle.high}",
            f"{candle.low}",
            f"{candle.close}",
            f"{candle.volume}",
        )
    return table


@app.command()
def symbols(
    exchange: str = typer.Argument(..., help="Exchange (binance, bybit)"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Dump the raw instrument list of an exchange."""
    container = init_components(config)

    adapter = _adapter_or_exit(container, exchange)

    try:
        payload = _run_and_close(container, lambda: adapter.fetch_symbols_payload())
    except UpstreamUnavailable as e:
        raise _fail(e.message)

    console.print_json(data=payload)


@app.command()
def watch(
    exchange: Optional[str] = typer.Option(None, help="Exchange to watch (default: configured watchlist)"),
    symbol: Optional[str] = typer.Option(None, help="Symbol to watch"),
    interval: str = typer.Option("1h", help="Candle interval"),
    sample: bool = typer.Option(False, "--sample", help="Use synthetic sample data instead of live data"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Poll market data and print every update until Ctrl+C."""
    from .runtime import run
    from .settings import WatchItem

    container = init_components(config)
    settings = container.settings

    if exchange and symbol:
        settings.watchlist = [WatchItem(exchange=exchange, symbol=symbol, interval=_check_interval(interval))]
    elif exchange or symbol:
        raise _fail("--exchange and --symbol must be given together")

    if sample:
        container.poller.live = False

    def _print_update(sub: "Subscription", snapshot: "MarketSnapshot") -> None:
        ticker = snapshot.ticker
        price = f"{ticker.price:.2f}" if ticker else "-"
        change = f"{ticker.change_24h_percent:+.2f}%" if ticker else "-"
        kind = "chart" if sub.include_candles else "ticker"
        flag = " [yellow](sample data)[/yellow]" if snapshot.is_sample else ""
        if snapshot.error:
            flag += f" [red](stale: {snapshot.error})[/red]"
        console.print(f"[cyan]{sub.exchange}[/cyan] {sub.symbol} {kind}: {price} {change}{flag}")

    try:
        asyncio.run(run(container, listener=_print_update))
    except KeyboardInterrupt:
        console.print("[dim]stopped[/dim]")


@app.command()
def config_show(
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show stored exchange credentials and connection status."""
    container = init_components(config)
    configs = container.store.load()

    table = Table(title="Exchange API Config")
    table.add_column("Exchange", style="cyan")
    table.add_column("API Key")
    table.add_column("Secret Key")
    table.add_column("Testnet")
    table.add_column("Trading", style="magenta")
    table.add_column("Status")

    status_styles = {
        "connected": "green",
        "testing": "yellow",
        "error": "red",
        "disconnected": "dim",
    }
    for name, cfg in sorted(configs.items()):
        style = status_styles.get(cfg.status.value, "white")
        table.add_row(
            name,
            _mask(cfg.api_key),
            _mask(cfg.secret_key),
            "yes" if cfg.testnet else "no",
            "enabled" if cfg.enabled else "disabled",
            f"[{style}]{cfg.status.value.upper()}[/{style}]",
        )
    console.print(table)


@app.command()
def config_set(
    exchange: str = typer.Argument(..., help="Exchange id"),
    api_key: Optional[str] = typer.Option(None, help="API key / access token"),
    secret_key: Optional[str] = typer.Option(None, help="API secret"),
    testnet: Optional[bool] = typer.Option(None, "--testnet/--mainnet", help="Use the sandbox environment"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Update stored credentials for an exchange."""
    container = init_components(config)

    fields = {}
    if api_key is not None:
        fields["api_key"] = api_key
    if secret_key is not None:
        fields["secret_key"] = secret_key
    if testnet is not None:
        fields["testnet"] = testnet

    if not fields:
        raise _fail("Nothing to update; pass --api-key, --secret-key or --testnet/--mainnet")

    # changed credentials invalidate the previous test result
    fields["status"] = "disconnected"
    fields["enabled"] = False

    updated = container.store.update(exchange, **fields)
    console.print(f"[green]✓[/green] Saved {exchange} config (status: {updated.status.value})")


@app.command()
def test_connection(
    exchange: str = typer.Argument(..., help="Exchange id"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Test stored credentials through the proxy gateway."""
    from .store import ConnectivityTester

    container = init_components(config)
    tester = ConnectivityTester(container.store, container.gateway)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            progress.add_task(f"Testing {exchange} connection...", total=None)
            result = _run_and_close(container, lambda: tester.test(exchange))
    except MissingCredentials as e:
        raise _fail(f"Missing Credentials: {e}")
    except ValueError as e:
        raise _fail(str(e))

    name = exchange.capitalize()
    if result.success:
        console.print(Panel.fit(f"[green]✓ Successfully connected to {name}[/green]", title="Connection Successful"))
    else:
        console.print(Panel.fit(
            f"[red]✗ Failed to connect to {name}. Check your credentials.[/red]\n{result.error_message or ''}",
            title="Connection Failed",
        ))
        raise typer.Exit(1)


@app.command()
def enable_trading(
    exchange: str = typer.Argument(..., help="Exchange id"),
    off: bool = typer.Option(False, "--off", help="Disable trading instead"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Enable or disable trading for a connected exchange."""
    container = init_components(config)
    try:
        updated = container.store.set_trading_enabled(exchange, not off)
    except TradingLocked as e:
        raise _fail(str(e))
    state = "enabled" if updated.enabled else "disabled"
    console.print(f"Trading {state} for {exchange}")


@app.command()
def alert(
    message: str = typer.Argument(..., help="Message text"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Send a Telegram alert."""
    container = init_components(config)

    try:
        _run_and_close(container, lambda: container.notifier.send(message))
    except (TradeDashError, ValueError) as e:
        raise _fail(str(e))
    console.print("[green]✓[/green] Alert sent")
