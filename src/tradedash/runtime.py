from __future__ import annotations

import logging

from .di import AppContainer
from .poller import MarketSnapshot, SnapshotListener, Subscription

logger = logging.getLogger(__name__)


def log_snapshot(sub: Subscription, snapshot: MarketSnapshot) -> None:
    ticker = snapshot.ticker
    price = ticker.price if ticker else None
    if snapshot.error:
        logger.warning("%s %s stale (%s), last price=%s", sub.exchange, sub.symbol, snapshot.error, price)
    else:
        logger.info(
            "%s %s price=%s candles=%d%s",
            sub.exchange,
            sub.symbol,
            price,
            len(snapshot.candles),
            " [sample]" if snapshot.is_sample else "",
        )


async def run(container: AppContainer, listener: SnapshotListener | None = None) -> None:
    """Poll the configured watchlist until ``container.shutdown`` is set.

    Every watch item gets a ticker widget (fast cadence) and a chart
    (slow cadence), each with its own timer.
    """
    logger.info("runtime starting")
    logger.debug("settings=%s", container.settings.redacted())

    settings = container.settings
    poller = container.poller

    if not settings.watchlist:
        logger.error("watchlist is empty, nothing to poll")
        await container.aclose()
        logger.info("runtime stopped")
        return

    poller.add_listener(listener or log_snapshot)

    for item in settings.watchlist:
        try:
            poller.subscribe(
                item.exchange,
                item.symbol,
                item.interval,
                poll_interval=settings.poller.ticker_interval,
                include_candles=False,
            )
            poller.subscribe(
                item.exchange,
                item.symbol,
                item.interval,
                poll_interval=settings.poller.chart_interval,
            )
        except ValueError as e:
            logger.error("cannot watch %s %s: %s", item.exchange, item.symbol, e)

    try:
        await container.shutdown.wait()
    finally:
        await container.aclose()
        logger.info("runtime stopped")
