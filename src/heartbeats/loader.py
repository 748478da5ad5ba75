# ABOUTME: Loads and validates a configuration file into a new Generation of registries
# ABOUTME: All-or-nothing: any invalid heartbeat, service or template aborts the whole load

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from heartbeats.errors import ConfigError, TemplateError
from heartbeats.heartbeat import Heartbeat, HeartbeatSnapshot
from heartbeats.notifications import Dispatcher, ServiceRegistry, build_service_registry
from heartbeats.registry import HeartbeatRegistry
from heartbeats.schema import ConfigDocument, NotificationDefaults
from heartbeats.secrets import DEFAULT_PREFIX
from heartbeats.templates import render

logger = logging.getLogger(__name__)

SERVICE_TYPES = ("slack", "mail")


@dataclass
class Generation:
    """
    One fully validated configuration: services, heartbeats and their dispatcher.

    A generation is never mutated after construction; a reload builds a new
    one and the old one is retired.
    """

    services: ServiceRegistry
    heartbeats: HeartbeatRegistry
    dispatcher: Dispatcher
    source: Path | None = None
    number: int = field(default=0)

    async def retire(self) -> None:
        """Cancel timers, let in-flight alerts finish, then close providers."""
        self.heartbeats.stop()
        await self.dispatcher.drain()
        await self.services.close()


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML configuration file into a plain dict."""
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"config file {path} must contain a mapping at the top level")
    return raw


def check_service_types(raw: dict[str, Any]) -> None:
    """Reject services with a missing or unknown type before decoding them."""
    notifications = raw.get("notifications") or {}
    if not isinstance(notifications, dict):
        return
    for entry in notifications.get("services") or []:
        if not isinstance(entry, dict):
            raise ConfigError("notification service entries must be mappings")
        service_type = entry.get("type")
        if not service_type:
            raise ConfigError(f"type of notification service '{entry.get('name', '?')}' is not set")
        if service_type not in SERVICE_TYPES:
            raise ConfigError(
                f"unknown notification service type '{service_type}' "
                f"for service '{entry.get('name', '?')}'"
            )


def parse_config(raw: dict[str, Any]) -> ConfigDocument:
    check_service_types(raw)
    try:
        return ConfigDocument.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e


def validate_templates(document: ConfigDocument) -> None:
    """Dry-run every template against an empty heartbeat."""
    empty = HeartbeatSnapshot()
    defaults: NotificationDefaults = document.notifications.defaults

    if not defaults.subject:
        raise ConfigError("default subject is not set")
    if not defaults.message:
        raise ConfigError("default message is not set")

    try:
        render("defaults", defaults.subject, empty)
        render("defaults", defaults.message, empty)
        for service in document.notifications.services:
            if service.subject:
                render(service.name, service.subject, empty)
            if service.message:
                render(service.name, service.message, empty)
    except TemplateError as e:
        raise ConfigError(f"error in notification settings: {e}") from e


def build_generation(
    document: ConfigDocument,
    secret_prefix: str = DEFAULT_PREFIX,
    send_timeout: float = 10.0,
    source: Path | None = None,
) -> Generation:
    """
    Turn a parsed document into live registries.

    Heartbeats are created with unarmed timers; nothing is scheduled until the
    first ping.
    """
    validate_templates(document)

    services = build_service_registry(
        document.notifications.services,
        secret_prefix=secret_prefix,
        timeout=send_timeout,
    )
    dispatcher = Dispatcher(
        services,
        default_subject=document.notifications.defaults.subject,
        default_message=document.notifications.defaults.message,
    )

    heartbeats: list[Heartbeat] = []
    for definition in document.heartbeats:
        for service_name in definition.notifications:
            if service_name not in services:
                logger.warning(
                    f"Heartbeat '{definition.name}' references unknown "
                    f"notification service '{service_name}'"
                )
        heartbeats.append(
            Heartbeat(
                name=definition.name,
                description=definition.description,
                interval=definition.interval,
                grace=definition.grace,
                notifications=definition.notifications,
                on_missing=dispatcher.on_missing,
            )
        )

    return Generation(
        services=services,
        heartbeats=HeartbeatRegistry(heartbeats),
        dispatcher=dispatcher,
        source=source,
    )


def load_config(
    path: Path,
    secret_prefix: str = DEFAULT_PREFIX,
    send_timeout: float = 10.0,
) -> Generation:
    """
    Load, validate and build a configuration file.

    Raises:
        ConfigError: On any problem; nothing partially built escapes
    """
    document = parse_config(read_config_file(path))
    generation = build_generation(
        document,
        secret_prefix=secret_prefix,
        send_timeout=send_timeout,
        source=path,
    )
    logger.info(
        f"Loaded {len(generation.heartbeats)} heartbeat(s) and "
        f"{len(generation.services)} notification service(s) from {path}"
    )
    return generation
