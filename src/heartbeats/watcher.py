# ABOUTME: ConfigWatcher follows the configuration file with a watchdog Observer and reloads on change
# ABOUTME: Filesystem events are handed to the event loop and debounced before the Runtime reloads

import asyncio
import logging
import os
from datetime import timedelta
from pathlib import Path

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from heartbeats.runtime import Runtime
from heartbeats.timers import Timer

logger = logging.getLogger(__name__)

# Opened/closed events are ignored, otherwise every reload
# would trigger the next one by reading the file
CHANGE_EVENTS = frozenset({EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED})


class ConfigFileHandler(FileSystemEventHandler):
    """
    Forwards change events for one file to the event loop.

    Runs on the observer thread; the only thing it does there is
    loop.call_soon_threadsafe().
    """

    def __init__(self, path: Path, loop: asyncio.AbstractEventLoop, on_change):
        super().__init__()
        self.path = path
        self.loop = loop
        self.on_change = on_change

    def matches(self, event: FileSystemEvent) -> bool:
        if event.is_directory or event.event_type not in CHANGE_EVENTS:
            return False
        candidates = [event.src_path, getattr(event, "dest_path", "")]
        return any(c and Path(os.fsdecode(c)).resolve() == self.path for c in candidates)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if not self.matches(event):
            return
        try:
            self.loop.call_soon_threadsafe(self.on_change)
        except RuntimeError:
            # Loop already closed during shutdown
            logger.debug(f"Dropping config event for {self.path}: event loop is closed")


class ConfigWatcher:
    """
    Watches a configuration file for changes.

    This watcher:
    1. Schedules a watchdog Observer on the file's directory
    2. Debounces bursts of events (editors often write a file several times)
    3. Asks the Runtime to reload once the file has been quiet for `debounce` seconds
    4. Keeps the current configuration when the file vanishes or is invalid
    """

    def __init__(self, runtime: Runtime, path: Path, debounce: float = 0.5):
        """
        Initialize the ConfigWatcher.

        Args:
            runtime: Runtime whose generation is replaced on change
            path: Configuration file to watch
            debounce: Seconds to wait after the last event before reloading
        """
        self.runtime = runtime
        self.path = path.resolve()
        self.debounce = debounce
        self._observer: Observer | None = None
        self._timer = Timer("config-watcher")
        self._running = False

    @property
    def reload_pending(self) -> bool:
        return self._timer.armed

    def start(self) -> None:
        """Start the observer. Does nothing if already running."""
        if self._running:
            logger.warning("Config watcher already running")
            return

        handler = ConfigFileHandler(self.path, asyncio.get_running_loop(), self.on_change)
        observer = Observer()
        observer.schedule(handler, str(self.path.parent), recursive=False)
        observer.daemon = True
        observer.start()

        self._observer = observer
        self._running = True
        logger.info(f"Watching {self.path} for changes")

    async def stop(self) -> None:
        """Stop the observer and drop any pending reload."""
        if not self._running:
            return

        self._running = False
        self._timer.cancel()
        if self._observer is not None:
            self._observer.stop()
            await asyncio.to_thread(self._observer.join)
            self._observer = None

        logger.info("Config watcher stopped")

    def on_change(self) -> None:
        """(Re)start the debounce timer; called on the loop for every matching event."""
        if not self._running:
            return
        self._timer.arm(timedelta(seconds=self.debounce), self._reload)

    def _reload(self) -> None:
        # One bad reload must never stop the watcher
        try:
            self.check()
        except Exception:
            logger.exception(f"Unexpected error reloading {self.path}")

    def check(self) -> bool:
        """
        Reload the file into the Runtime.

        Returns:
            True if the file was loaded successfully
        """
        if not self.path.is_file():
            logger.warning(f"Config file {self.path} disappeared, keeping current configuration")
            return False

        logger.info(f"Config file changed: {self.path}")
        return self.runtime.reload(self.path)
