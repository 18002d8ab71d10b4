"""Protocol definitions for Lineage.

Defines the pluggable time seams (Clock, Ticker, TimerHandle) that the
claim registry is constructed with, plus the default implementations.

Everything here is cooperative: a Ticker schedules callbacks on the host's
event loop and never starts threads of its own.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Clock(Protocol):
    """Source of wall-clock time in epoch seconds."""

    def now(self) -> float:
        ...


@runtime_checkable
class TimerHandle(Protocol):
    """Handle for a scheduled periodic callback."""

    def cancel(self) -> None:
        ...


@runtime_checkable
class Ticker(Protocol):
    """Schedules a callback to run repeatedly at a fixed interval."""

    def call_every(self, interval: float, callback: Callable[[], object]) -> TimerHandle:
        ...


class SystemClock:
    """Clock backed by ``time.time``."""

    def now(self) -> float:
        return time.time()


class _InertHandle:
    """Handle for a callback that was never scheduled."""

    def cancel(self) -> None:
        return None


class NullTicker:
    """Ticker that never fires.

    For hosts that drive housekeeping themselves (e.g. calling
    ``ClaimRegistry.cleanup_expired()`` from their own loop).
    """

    def call_every(self, interval: float, callback: Callable[[], object]) -> TimerHandle:
        return _InertHandle()


class _RepeatingCall:
    """Re-arms ``loop.call_later`` after every firing until cancelled."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        interval: float,
        callback: Callable[[], object],
    ) -> None:
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._cancelled = False
        self._handle: asyncio.TimerHandle | None = loop.call_later(interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        # Re-arm first so a failing callback does not stop the schedule.
        self._handle = self._loop.call_later(self._interval, self._fire)
        self._callback()

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AsyncioTicker:
    """Ticker backed by an asyncio event loop.

    Uses the loop given at construction, or the running loop at the time
    ``call_every`` is invoked. Without a running loop nothing is scheduled
    and an inert handle is returned.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_every(self, interval: float, callback: Callable[[], object]) -> TimerHandle:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug(
                    "No running event loop; periodic callback not scheduled (interval=%ss)",
                    interval,
                )
                return _InertHandle()
        return _RepeatingCall(loop, interval, callback)
