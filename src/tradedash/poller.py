"""Timer-driven market data polling with sample-data fallback."""

from __future__ import annotations

import itertools
import logging
import random
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Iterator, Mapping

from .errors import ProxyUnreachable, UpstreamUnavailable
from .exchanges.normalization import normalize_symbol
from .exchanges.protocol import ExchangeAdapter
from .models import Candle, CandleSeries, Ticker, utc_now
from .sample import SAMPLE_CANDLE_COUNT, generate_sample_candles, sample_ticker
from .scheduling import RecurringTask

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MarketSnapshot:
    """What consumers read for one subscription.

    ``error`` is set when the latest poll failed; ticker and candles then
    still hold the last good data. ``is_sample`` marks synthetic data.
    """

    ticker: Ticker | None = None
    candles: tuple[Candle, ...] = ()
    is_sample: bool = False
    error: str | None = None
    sequence: int = 0
    updated_at: datetime | None = None


@dataclass(eq=False)
class Subscription:
    exchange: str
    symbol: str
    interval: str = "1h"
    poll_interval: float = 30.0
    live: bool = True
    limit: int = 100
    include_ticker: bool = True
    include_candles: bool = True
    active: bool = False
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    _sequence: Iterator[int] = field(default_factory=lambda: itertools.count(1), repr=False)

    def next_sequence(self) -> int:
        return next(self._sequence)

    @property
    def key(self) -> tuple[str, str, str]:
        return self.exchange, self.symbol, self.interval


@dataclass(slots=True)
class _TickResult:
    ticker: Ticker | None = None
    candles: list[Candle] | None = None
    is_sample: bool = False
    error: str | None = None


@dataclass(slots=True)
class _SubscriptionState:
    series: CandleSeries
    snapshot: MarketSnapshot = field(default_factory=MarketSnapshot)
    task: RecurringTask | None = None
    applied_sequence: int = 0
    has_live_candles: bool = False


SnapshotListener = Callable[[Subscription, MarketSnapshot], None]


class MarketDataPoller:
    """Keeps one timer per active subscription and caches its latest snapshot.

    Identical subscriptions are not merged: every subscriber gets its own
    timer and its own snapshot. Each tick draws a sequence number and results
    that are not newer than the last applied one are dropped, so a slow
    response can never overwrite fresher data. Results arriving after
    ``unsubscribe`` are discarded.
    """

    def __init__(
        self,
        adapters: Mapping[str, ExchangeAdapter],
        *,
        window: int = 100,
        live: bool = True,
        sample_base_prices: Mapping[str, float] | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._adapters = dict(adapters)
        self.window = window
        self.live = live
        self._base_prices = dict(sample_base_prices or {})
        self._rng = rng or random.Random()
        self._clock = clock
        self._states: dict[str, _SubscriptionState] = {}
        self._subscriptions: dict[str, Subscription] = {}
        self._listeners: list[SnapshotListener] = []
        self._last_observed: dict[tuple[str, str], Ticker] = {}

    def add_listener(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SnapshotListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def subscribe(
        self,
        exchange: str,
        symbol: str,
        interval: str = "1h",
        *,
        poll_interval: float = 30.0,
        live: bool | None = None,
        limit: int | None = None,
        include_ticker: bool = True,
        include_candles: bool = True,
        start: bool = True,
    ) -> Subscription:
        """Start polling ``symbol`` on ``exchange``.

        Args:
            exchange: Exchange name; must have an adapter
            symbol: Trading symbol
            interval: Canonical candle interval
            poll_interval: Seconds between ticks
            live: Fetch live data (defaults to the poller setting); False uses sample data
            limit: Candles per fetch (defaults to the window size)
            include_ticker: Poll the ticker
            include_candles: Poll candles
            start: Start the timer; False leaves ticking to explicit ``tick()`` calls

        Returns:
            The active Subscription

        Raises:
            ValueError: If the exchange has no adapter or the symbol is empty
        """
        exchange = exchange.lower()
        if exchange not in self._adapters:
            raise ValueError(f"No adapter configured for exchange: {exchange}")

        sub = Subscription(
            exchange=exchange,
            symbol=normalize_symbol(symbol),
            interval=interval,
            poll_interval=poll_interval,
            live=self.live if live is None else live,
            limit=self.window if limit is None else limit,
            include_ticker=include_ticker,
            include_candles=include_candles,
            active=True,
        )
        state = _SubscriptionState(series=CandleSeries(window=self.window))
        self._states[sub.id] = state
        self._subscriptions[sub.id] = sub

        if start:
            state.task = RecurringTask(
                lambda: self.tick(sub),
                poll_interval,
                name=f"poll-{sub.exchange}-{sub.symbol}-{sub.id}",
            ).start()

        logger.info(
            "Subscribed %s %s %s every %.1fs (live=%s, id=%s)",
            sub.exchange, sub.symbol, sub.interval, poll_interval, sub.live, sub.id,
        )
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        if not sub.active:
            return
        sub.active = False
        self._subscriptions.pop(sub.id, None)
        state = self._states.pop(sub.id, None)
        if state is not None and state.task is not None:
            state.task.cancel()
        key = (sub.exchange, sub.symbol)
        if not any((other.exchange, other.symbol) == key for other in self._subscriptions.values()):
            self._last_observed.pop(key, None)
        logger.info("Unsubscribed %s %s (id=%s)", sub.exchange, sub.symbol, sub.id)

    def subscriptions(self) -> list[Subscription]:
        return list(self._subscriptions.values())

    def snapshot(self, sub: Subscription) -> MarketSnapshot | None:
        state = self._states.get(sub.id)
        return state.snapshot if state is not None else None

    async def tick(self, sub: Subscription) -> MarketSnapshot | None:
        """Poll once and apply the result.

        Returns:
            The new snapshot, or None if the result was discarded
        """
        if not sub.active:
            return None

        sequence = sub.next_sequence()
        adapter = self._adapters[sub.exchange]

        if sub.live and adapter.supports_live_data:
            result = await self._fetch_live(sub, adapter)
        else:
            result = self._sample_result(sub)

        return self._apply(sub, sequence, result)

    async def _fetch_live(self, sub: Subscription, adapter: ExchangeAdapter) -> _TickResult:
        try:
            ticker = await adapter.get_ticker(sub.symbol) if sub.include_ticker else None
            candles = (
                await adapter.get_candles(sub.symbol, sub.interval, sub.limit)
                if sub.include_candles
                else None
            )
        except ProxyUnreachable as exc:
            logger.warning("Proxy unreachable for %s %s, using sample data: %s", sub.exchange, sub.symbol, exc.message)
            return self._sample_result(sub)
        except UpstreamUnavailable as exc:
            logger.warning("Poll failed for %s %s: %s", sub.exchange, sub.symbol, exc.message)
            return _TickResult(error=exc.message)
        return _TickResult(ticker=ticker, candles=candles)

    def _sample_result(self, sub: Subscription) -> _TickResult:
        candles = generate_sample_candles(
            sub.exchange,
            sub.interval,
            SAMPLE_CANDLE_COUNT,
            base_price=self._base_prices.get(sub.exchange),
            rng=self._rng,
            now_ms=int(self._clock().timestamp() * 1000),
        )
        ticker = sample_ticker(sub.symbol, candles) if sub.include_ticker else None
        return _TickResult(ticker=ticker, candles=candles if sub.include_candles else None, is_sample=True)

    def _apply(self, sub: Subscription, sequence: int, result: _TickResult) -> MarketSnapshot | None:
        state = self._states.get(sub.id)
        if not sub.active or state is None:
            logger.debug("Discarding tick %d for inactive subscription %s", sequence, sub.id)
            return None
        if sequence <= state.applied_sequence:
            logger.debug(
                "Discarding stale tick %d for %s (already applied %d)",
                sequence, sub.id, state.applied_sequence,
            )
            return None
        state.applied_sequence = sequence

        previous = state.snapshot
        now = self._clock()

        if result.error is not None:
            if state.has_live_candles or not sub.include_candles:
                snapshot = replace(previous, error=result.error, sequence=sequence, updated_at=now)
            else:
                sample = self._sample_result(sub)
                snapshot = replace(
                    previous,
                    candles=tuple(sample.candles or ()),
                    is_sample=True,
                    error=result.error,
                    sequence=sequence,
                    updated_at=now,
                )
        elif result.is_sample:
            state.series.clear()
            state.has_live_candles = False
            snapshot = MarketSnapshot(
                ticker=self._stamp(sub, result.ticker),
                candles=tuple(result.candles or ()),
                is_sample=True,
                sequence=sequence,
                updated_at=now,
            )
        else:
            if result.candles is not None:
                state.series.merge(result.candles)
                state.has_live_candles = True
            snapshot = MarketSnapshot(
                ticker=self._stamp(sub, result.ticker),
                candles=state.series.to_tuple(),
                is_sample=False,
                sequence=sequence,
                updated_at=now,
            )

        state.snapshot = snapshot
        self._notify(sub, snapshot)
        return snapshot

    def _stamp(self, sub: Subscription, ticker: Ticker | None) -> Ticker | None:
        if ticker is None:
            return None
        key = (sub.exchange, sub.symbol)
        ticker = ticker.observed_after(self._last_observed.get(key))
        self._last_observed[key] = ticker
        return ticker

    def _notify(self, sub: Subscription, snapshot: MarketSnapshot) -> None:
        for listener in list(self._listeners):
            try:
                listener(sub, snapshot)
            except Exception:
                logger.exception("Snapshot listener failed for %s %s", sub.exchange, sub.symbol)

    async def close(self) -> None:
        """Stop every subscription and cancel in-flight ticks."""
        for sub in list(self._subscriptions.values()):
            state = self._states.get(sub.id)
            self.unsubscribe(sub)
            if state is not None and state.task is not None:
                await state.task.close()
