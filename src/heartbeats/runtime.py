# ABOUTME: Runtime owns the live configuration generation and swaps it atomically on reload
# ABOUTME: The HTTP layer talks to heartbeats only through this object

import asyncio
import logging
from datetime import datetime
from pathlib import Path

from heartbeats.errors import ConfigError
from heartbeats.heartbeat import HeartbeatSnapshot
from heartbeats.loader import Generation, load_config
from heartbeats.secrets import DEFAULT_PREFIX

logger = logging.getLogger(__name__)


class Runtime:
    """
    Holds the current Generation.

    Readers fetch self.generation once per operation, so they always see a
    complete generation, either the old one or the new one. A reload builds
    the new generation off to the side and only swaps it in after it fully
    validated; the old generation's timers are cancelled in the same loop
    step as the swap, so none of its callbacks can run afterwards.
    """

    def __init__(self, secret_prefix: str = DEFAULT_PREFIX, send_timeout: float = 10.0):
        self.secret_prefix = secret_prefix
        self.send_timeout = send_timeout
        self._generation: Generation | None = None
        self._generations_loaded = 0
        self._retiring: set[asyncio.Task[None]] = set()

    @property
    def generation(self) -> Generation:
        if self._generation is None:
            raise RuntimeError("No configuration loaded")
        return self._generation

    @property
    def loaded(self) -> bool:
        return self._generation is not None

    def record_ping(self, name: str, now: datetime | None = None) -> None:
        """Record a ping. Raises NotFoundError for unknown heartbeats."""
        self.generation.heartbeats.record_ping(name, now)

    def get_status(self, name: str) -> HeartbeatSnapshot:
        return self.generation.heartbeats.get_status(name)

    def list_statuses(self) -> list[HeartbeatSnapshot]:
        return self.generation.heartbeats.list_statuses()

    def load_config(self, path: Path) -> Generation:
        """
        Load a configuration file and make it the live generation.

        Raises:
            ConfigError: If the file is invalid; the current generation stays active
        """
        generation = load_config(path, secret_prefix=self.secret_prefix, send_timeout=self.send_timeout)
        self.swap(generation)
        return generation

    def reload(self, path: Path) -> bool:
        """Like load_config, but log failures instead of raising. Returns success."""
        try:
            self.load_config(path)
        except ConfigError as e:
            logger.error(f"Config reload from {path} rejected, keeping current configuration: {e}")
            return False
        return True

    def swap(self, generation: Generation) -> None:
        """Install a new generation and retire the previous one."""
        self._generations_loaded += 1
        generation.number = self._generations_loaded

        previous, self._generation = self._generation, generation
        if previous is None:
            return

        # Synchronous: no old timer callback can run after this point
        previous.heartbeats.stop()
        logger.info(f"Configuration generation {generation.number} is live")

        task = asyncio.get_running_loop().create_task(previous.retire())
        self._retiring.add(task)
        task.add_done_callback(self._retiring.discard)

    async def shutdown(self) -> None:
        """Stop all timers and release provider resources."""
        if self._generation is not None:
            await self._generation.retire()
        if self._retiring:
            await asyncio.gather(*self._retiring, return_exceptions=True)
