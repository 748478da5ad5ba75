# ABOUTME: Dispatcher renders alerts and fans them out to a heartbeat's notification services
# ABOUTME: Runs off the timer path as background tasks; every failure is logged and skipped

import asyncio
import logging

from heartbeats.errors import NotFoundError, TemplateError, TransportError
from heartbeats.heartbeat import Heartbeat, HeartbeatSnapshot
from heartbeats.notifications.registry import ServiceRegistry
from heartbeats.templates import render

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Delivers missing-heartbeat alerts.

    on_missing() is the hook a Heartbeat calls from its timer callback. It
    only schedules work; the actual sends happen in a background task so a
    slow provider never delays any timer.
    """

    def __init__(
        self,
        services: ServiceRegistry,
        default_subject: str,
        default_message: str,
    ):
        self.services = services
        self.default_subject = default_subject
        self.default_message = default_message
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of fan-outs still running."""
        return len(self._tasks)

    def on_missing(self, heartbeat: Heartbeat) -> None:
        """Hand the fan-out for a heartbeat that just went missing to a background task."""
        task = asyncio.get_running_loop().create_task(self.dispatch_all(heartbeat.snapshot()))
        # Hold a reference until the task finishes
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def dispatch_all(self, heartbeat: HeartbeatSnapshot) -> int:
        """
        Dispatch to every notification of a heartbeat, in order.

        Individual failures never stop the remaining dispatches.

        Returns:
            Number of services the alert was delivered to
        """
        delivered = 0
        for service_name in heartbeat.notifications:
            if await self.dispatch(heartbeat, service_name):
                delivered += 1

        logger.info(
            f"Heartbeat '{heartbeat.name}' alert delivered to "
            f"{delivered}/{len(heartbeat.notifications)} service(s)"
        )
        return delivered

    async def dispatch(self, heartbeat: HeartbeatSnapshot, service_name: str) -> bool:
        """
        Render and send one alert through one service.

        Returns:
            True if the provider accepted the message
        """
        try:
            service = self.services.get(service_name)
        except NotFoundError as e:
            logger.error(f"Heartbeat '{heartbeat.name}': {e}")
            return False

        if not service.enabled or service.provider is None:
            logger.debug(f"Notification service '{service_name}' is disabled, skipping")
            return False

        try:
            subject = render(service_name, service.config.subject or self.default_subject, heartbeat)
            message = render(service_name, service.config.message or self.default_message, heartbeat)
        except TemplateError as e:
            logger.error(f"Heartbeat '{heartbeat.name}': cannot render alert: {e}")
            return False

        try:
            await service.provider.send(subject, message)
        except TransportError as e:
            logger.error(
                f"Failed to send alert for heartbeat '{heartbeat.name}' via '{service_name}': {e}"
            )
            return False
        except Exception:
            logger.exception(
                f"Unexpected error sending alert for heartbeat '{heartbeat.name}' via '{service_name}'"
            )
            return False

        logger.info(f"Sent alert for heartbeat '{heartbeat.name}' via '{service_name}'")
        return True

    async def drain(self) -> None:
        """Wait for in-flight fan-outs to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
