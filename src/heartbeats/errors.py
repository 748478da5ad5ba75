# ABOUTME: Exception taxonomy shared by config loading, rendering and dispatch
# ABOUTME: ConfigError aborts a load, the others are isolated per heartbeat/service


class HeartbeatsError(Exception):
    """Base class for all heartbeats errors."""


class ConfigError(HeartbeatsError):
    """Configuration is malformed or incomplete."""


class TemplateError(HeartbeatsError):
    """A subject or message template failed to render."""


class NotFoundError(HeartbeatsError):
    """Unknown heartbeat or notification service name."""


class TransportError(HeartbeatsError):
    """A notification provider failed to deliver a message."""


class CredentialError(TransportError):
    """A provider credential is empty or still an unresolved secret reference."""
