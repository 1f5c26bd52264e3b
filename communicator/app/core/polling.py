"""Polling strategy for the subscribe loops.

Owns every timing decision of a consume loop (empty-poll delay, error delay,
per-iteration interval) plus the stop signal, so brokers only speak protocol.

Lifecycle:
  RUNNING -> stop() -> STOPPED. The loops check `stopped` at the top of each
  iteration; stop() also wakes a pending default sleep so shutdown is prompt.
  stop() must be called from the event loop thread (e.g. a signal handler
  registered with loop.add_signal_handler).
"""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from communicator.app.constants import (
    EMPTY_QUEUE_DELAY_SECONDS,
    RETRY_DELAY_SECONDS,
    STREAM_POLL_INTERVAL_SECONDS,
)

Sleeper = Callable[[float], Awaitable[None]]


class PollingStrategy:
    """Timing policy and cancellation signal injected into a broker.

    By default the empty-poll delay is fixed at `interval_seconds`. Setting
    `max_empty_backoff_seconds` together with a multiplier above 1 lets the
    delay grow across consecutive empty polls, capped at that maximum.
    A custom `sleeper` replaces the real wait (tests use it to record delays).
    """

    def __init__(
        self,
        interval_seconds: float,
        *,
        error_delay_seconds: float = RETRY_DELAY_SECONDS,
        max_empty_backoff_seconds: float | None = None,
        empty_backoff_multiplier: float = 1.0,
        sleeper: Sleeper | None = None,
    ) -> None:
        if interval_seconds < 0 or error_delay_seconds < 0:
            raise ValueError("polling delays must not be negative")
        if empty_backoff_multiplier < 1.0:
            raise ValueError("empty_backoff_multiplier must be >= 1.0")
        self._interval_seconds = float(interval_seconds)
        self._error_delay_seconds = float(error_delay_seconds)
        self._max_empty_backoff_seconds = max_empty_backoff_seconds
        self._empty_backoff_multiplier = float(empty_backoff_multiplier)
        self._sleeper = sleeper
        self._stop_event = asyncio.Event()

    @classmethod
    def for_queue(cls, **kwargs: Any) -> "PollingStrategy":
        """Queue backend defaults: 1s after an empty poll, 5s after an error."""
        return cls(EMPTY_QUEUE_DELAY_SECONDS, **kwargs)

    @classmethod
    def for_stream(cls, **kwargs: Any) -> "PollingStrategy":
        """Stream backend default: 0.1s after every iteration."""
        return cls(STREAM_POLL_INTERVAL_SECONDS, **kwargs)

    @property
    def interval_seconds(self) -> float:
        return self._interval_seconds

    @property
    def error_delay_seconds(self) -> float:
        return self._error_delay_seconds

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        self._stop_event.set()

    def empty_delay(self, consecutive_empty: int) -> float:
        if self._max_empty_backoff_seconds is None or consecutive_empty <= 1:
            return self._interval_seconds
        delay = self._interval_seconds * self._empty_backoff_multiplier ** (consecutive_empty - 1)
        return min(delay, max(self._max_empty_backoff_seconds, self._interval_seconds))

    async def sleep(self, seconds: float) -> None:
        if self._sleeper is not None:
            await self._sleeper(seconds)
            return
        if self.stopped:
            return
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
