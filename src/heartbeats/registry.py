# ABOUTME: HeartbeatRegistry - all heartbeats of one config generation, looked up by name
# ABOUTME: Records pings and serves status snapshots for the HTTP layer

import logging
from collections.abc import Iterable
from datetime import datetime

from heartbeats.errors import ConfigError, NotFoundError
from heartbeats.heartbeat import Heartbeat, HeartbeatSnapshot

logger = logging.getLogger(__name__)


class HeartbeatRegistry:
    """Heartbeats keyed by their unique name, in configuration order."""

    def __init__(self, heartbeats: Iterable[Heartbeat] = ()):
        self._heartbeats: dict[str, Heartbeat] = {}
        for heartbeat in heartbeats:
            if heartbeat.name in self._heartbeats:
                raise ConfigError(f"duplicate heartbeat name: {heartbeat.name}")
            self._heartbeats[heartbeat.name] = heartbeat

    def __contains__(self, name: str) -> bool:
        return name in self._heartbeats

    def __len__(self) -> int:
        return len(self._heartbeats)

    def __iter__(self):
        return iter(self._heartbeats.values())

    def get(self, name: str) -> Heartbeat:
        try:
            return self._heartbeats[name]
        except KeyError:
            raise NotFoundError(f"heartbeat '{name}' not found") from None

    def record_ping(self, name: str, now: datetime | None = None) -> None:
        """Record a ping for a heartbeat. Raises NotFoundError for unknown names."""
        self.get(name).record_ping(now)

    def get_status(self, name: str) -> HeartbeatSnapshot:
        return self.get(name).snapshot()

    def list_statuses(self) -> list[HeartbeatSnapshot]:
        return [heartbeat.snapshot() for heartbeat in self._heartbeats.values()]

    def stop(self) -> None:
        """Cancel every heartbeat's timers."""
        for heartbeat in self._heartbeats.values():
            heartbeat.stop()
        logger.debug(f"Stopped timers of {len(self._heartbeats)} heartbeat(s)")
