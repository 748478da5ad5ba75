# ABOUTME: Heartbeat entity - the per-heartbeat timing state machine
# ABOUTME: Pings arm the interval timer, expiry moves ok -> grace -> missing and triggers notification

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from heartbeats.interval import format_duration
from heartbeats.timers import TimerPair

logger = logging.getLogger(__name__)


class HeartbeatStatus(str, Enum):
    """Lifecycle states of a heartbeat."""

    UNKNOWN = "unknown"
    OK = "ok"
    GRACE = "grace"
    MISSING = "missing"


class HeartbeatSnapshot(BaseModel):
    """Immutable, serializable view of a heartbeat at one instant."""

    name: str = ""
    description: str = ""
    status: HeartbeatStatus = HeartbeatStatus.UNKNOWN
    interval: timedelta = timedelta(0)
    grace: timedelta = timedelta(0)
    last_ping: datetime | None = None
    notifications: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @field_serializer("interval", "grace")
    def _serialize_duration(self, value: timedelta) -> str:
        return format_duration(value)


# Called with the heartbeat that just went missing
MissingCallback = Callable[["Heartbeat"], None]


def time_ago(moment: datetime | None, now: datetime | None = None) -> str:
    """
    Describe how long ago a moment was, e.g. "5 minutes ago".

    Returns "never" when no moment is given.
    """
    if moment is None:
        return "never"

    now = now or datetime.now(timezone.utc)
    seconds = max(int((now - moment).total_seconds()), 0)

    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            amount = seconds // size
            return f"{amount} {unit}{'s' if amount != 1 else ''} ago"
    return f"{seconds} second{'s' if seconds != 1 else ''} ago"


class Heartbeat:
    """
    A named liveness check with its own interval and grace timers.

    Valid transitions:
        unknown -> ok -> grace -> missing
        grace | missing -> ok  (on a fresh ping)
        ok -> missing          (only when grace is zero)

    All mutation happens on the event loop: pings come from request handlers,
    expiries from loop.call_later callbacks, so they never interleave. A timer
    remembers the last_ping it was armed for and does nothing if a newer ping
    has arrived since, which keeps a stale firing from overriding a revival.
    """

    def __init__(
        self,
        name: str,
        interval: timedelta,
        grace: timedelta = timedelta(0),
        notifications: list[str] | None = None,
        description: str = "",
        on_missing: MissingCallback | None = None,
    ):
        self.name = name
        self.description = description
        self.interval = interval
        self.grace = grace
        self.notifications = list(notifications or [])
        self.on_missing = on_missing
        self.last_ping: datetime | None = None
        self.status = HeartbeatStatus.UNKNOWN
        self.timers = TimerPair(name)

    def __repr__(self) -> str:
        return f"Heartbeat(name={self.name!r}, status={self.status.value!r})"

    def record_ping(self, now: datetime | None = None) -> None:
        """
        Register a ping: disarm both timers, mark ok and re-arm the interval timer.

        The interval timer fires at now + interval; a `now` in the past shortens
        the remaining wait accordingly (down to firing on the next loop turn).
        """
        self.timers.cancel()
        current = datetime.now(timezone.utc)
        self.last_ping = now or current
        previous = self.status
        self.status = HeartbeatStatus.OK

        armed_for = self.last_ping
        remaining = self.interval - (current - self.last_ping)
        self.timers.interval.arm(remaining, lambda: self._on_interval_fired(armed_for))

        if previous != HeartbeatStatus.OK:
            logger.info(f"Heartbeat '{self.name}' is ok (was {previous.value})")
        else:
            logger.debug(f"Heartbeat '{self.name}' pinged")

    def current_status(self) -> HeartbeatStatus:
        return self.status

    def last_ping_at(self) -> datetime | None:
        return self.last_ping

    def snapshot(self) -> HeartbeatSnapshot:
        return HeartbeatSnapshot(
            name=self.name,
            description=self.description,
            status=self.status,
            interval=self.interval,
            grace=self.grace,
            last_ping=self.last_ping,
            notifications=self.notifications,
        )

    def stop(self) -> None:
        """Cancel both timers; used when this heartbeat's generation is retired."""
        self.timers.cancel()

    def _is_stale(self, armed_for: datetime | None) -> bool:
        if self.last_ping != armed_for:
            logger.debug(f"Ignoring stale timer for heartbeat '{self.name}'")
            return True
        return False

    def _on_interval_fired(self, armed_for: datetime | None) -> None:
        if self._is_stale(armed_for) or self.status != HeartbeatStatus.OK:
            return

        if self.grace <= timedelta(0):
            self._mark_missing()
            return

        self.status = HeartbeatStatus.GRACE
        logger.info(f"Heartbeat '{self.name}' is in grace period ({format_duration(self.grace)})")
        self.timers.grace.arm(self.grace, lambda: self._on_grace_fired(armed_for))

    def _on_grace_fired(self, armed_for: datetime | None) -> None:
        if self._is_stale(armed_for) or self.status != HeartbeatStatus.GRACE:
            return
        self._mark_missing()

    def _mark_missing(self) -> None:
        self.status = HeartbeatStatus.MISSING
        logger.warning(f"Heartbeat '{self.name}' is missing (last ping: {time_ago(self.last_ping)})")

        if self.on_missing is not None:
            self.on_missing(self)
