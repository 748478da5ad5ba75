# ABOUTME: Notification services for heartbeats - Slack and mail providers plus dispatch
# ABOUTME: Exposes the service config variants, the registry and the dispatcher

from heartbeats.notifications.base import NotificationProvider, ServiceConfig
from heartbeats.notifications.dispatch import Dispatcher
from heartbeats.notifications.mail import MailProvider, MailServiceConfig
from heartbeats.notifications.registry import (
    RegisteredService,
    ServiceRegistry,
    build_service_registry,
)
from heartbeats.notifications.slack import SlackProvider, SlackServiceConfig

__all__ = [
    "NotificationProvider",
    "ServiceConfig",
    "Dispatcher",
    "MailProvider",
    "MailServiceConfig",
    "RegisteredService",
    "ServiceRegistry",
    "build_service_registry",
    "SlackProvider",
    "SlackServiceConfig",
]
