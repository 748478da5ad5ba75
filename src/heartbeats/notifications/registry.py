# ABOUTME: ServiceRegistry holds the validated notification services of one config generation
# ABOUTME: Enabled entries get a ready provider, disabled entries are kept but never dispatched

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from heartbeats.errors import ConfigError, NotFoundError
from heartbeats.notifications.base import NotificationProvider, ServiceConfig

logger = logging.getLogger(__name__)


@dataclass
class RegisteredService:
    """A service entry and, when enabled, its provider."""

    config: ServiceConfig
    provider: NotificationProvider | None = None

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def enabled(self) -> bool:
        return self.config.enabled


class ServiceRegistry:
    """Services looked up by name."""

    def __init__(self, services: Iterable[RegisteredService] = ()):
        self._services: dict[str, RegisteredService] = {}
        for service in services:
            if service.name in self._services:
                raise ConfigError(f"duplicate notification service name: {service.name}")
            self._services[service.name] = service

    def __contains__(self, name: str) -> bool:
        return name in self._services

    def __len__(self) -> int:
        return len(self._services)

    def names(self) -> list[str]:
        return list(self._services)

    def get(self, name: str) -> RegisteredService:
        try:
            return self._services[name]
        except KeyError:
            raise NotFoundError(f"notification service '{name}' not found") from None

    async def close(self) -> None:
        """Close every provider's transport resources."""
        for service in self._services.values():
            if service.provider is None:
                continue
            try:
                await service.provider.close()
            except Exception as e:
                logger.warning(f"Failed to close provider {service.name}: {e}")


def build_service_registry(
    configs: Iterable[ServiceConfig],
    secret_prefix: str,
    timeout: float,
) -> ServiceRegistry:
    """
    Resolve secrets, build and validate a provider for every enabled service.

    Raises:
        ConfigError: If a provider fails validation or names collide
    """
    services: list[RegisteredService] = []
    for config in configs:
        resolved = config.resolve_secrets(secret_prefix)
        provider: NotificationProvider | None = None

        if resolved.enabled:
            provider = resolved.build_provider(secret_prefix=secret_prefix, timeout=timeout)
            try:
                provider.validate()
            except ConfigError as e:
                raise ConfigError(f"notification service '{resolved.name}': {e}") from e

        logger.debug(f"{resolved.type} service '{resolved.name}' is enabled: {resolved.enabled}")
        services.append(RegisteredService(config=resolved, provider=provider))

    return ServiceRegistry(services)
