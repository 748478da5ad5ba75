# ABOUTME: One-shot cancellable timers built on the asyncio event loop
# ABOUTME: A heartbeat owns a TimerPair (interval + grace) and re-arms them explicitly

import asyncio
import logging
from collections.abc import Callable
from datetime import timedelta

logger = logging.getLogger(__name__)


class Timer:
    """
    A one-shot delayed callback.

    Wraps loop.call_later so that arming and cancelling never fail:
    - arm() replaces any previous schedule
    - cancel() is idempotent and safe on an unarmed or already-fired timer

    There are no repeating semantics; every firing has to be re-armed.
    """

    def __init__(self, name: str, loop: asyncio.AbstractEventLoop | None = None):
        self.name = name
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None

    @property
    def armed(self) -> bool:
        """True while a callback is scheduled and has not run or been cancelled."""
        return self._handle is not None and not self._handle.cancelled()

    def arm(self, delay: timedelta, callback: Callable[[], None]) -> None:
        """Schedule callback to run after delay, cancelling any previous schedule."""
        self.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(
            max(delay.total_seconds(), 0.0), self._fire, callback
        )

    def cancel(self) -> None:
        """Cancel the pending callback, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        try:
            callback()
        except Exception:
            # The timer subsystem never propagates callback failures
            logger.exception(f"Timer {self.name} callback failed")


class TimerPair:
    """The interval and grace timers owned by a single heartbeat."""

    def __init__(self, owner: str, loop: asyncio.AbstractEventLoop | None = None):
        self.interval = Timer(f"{owner}/interval", loop)
        self.grace = Timer(f"{owner}/grace", loop)

    def cancel(self) -> None:
        """Disarm both timers."""
        self.interval.cancel()
        self.grace.cancel()
