# ABOUTME: Base classes for notification services: the config entry and the provider it builds
# ABOUTME: Each service variant lists which of its fields may hold an "env:" secret reference

from abc import ABC, abstractmethod
from typing import ClassVar, Self

from pydantic import BaseModel, ConfigDict

from heartbeats.errors import CredentialError
from heartbeats.secrets import DEFAULT_PREFIX, is_unresolved, resolve_secret


class NotificationProvider(ABC):
    """
    Sends a rendered subject/message pair through one transport.

    Providers are built once per configuration generation and are owned by
    the ServiceRegistry.
    """

    kind: ClassVar[str] = ""

    def __init__(self, name: str, secret_prefix: str = DEFAULT_PREFIX, timeout: float = 10.0):
        self.name = name
        self.secret_prefix = secret_prefix
        self.timeout = timeout

    @abstractmethod
    def validate(self) -> None:
        """Raise ConfigError if required credentials or addresses are missing."""

    @abstractmethod
    async def send(self, subject: str, message: str) -> None:
        """Deliver a message. Raises TransportError on failure."""

    async def close(self) -> None:
        """Release transport resources. Default: nothing to release."""

    def check_credentials(self, **credentials: str | list[str]) -> None:
        """
        Raise CredentialError for credentials that are empty or still secret references.

        List values (channels, receivers) are checked entry by entry.
        """
        for field, value in credentials.items():
            values = value if isinstance(value, list) else [value]
            if not values:
                raise CredentialError(f"{self.kind}: credential {field} is empty")
            for item in values:
                if not item:
                    raise CredentialError(f"{self.kind}: credential {field} is empty")
                if is_unresolved(self.secret_prefix, item):
                    raise CredentialError(
                        f"{self.kind}: credential {field} references unset variable "
                        f"{item[len(self.secret_prefix):]}"
                    )


class ServiceConfig(BaseModel):
    """
    Common fields of a configured notification service.

    Subclasses pin `type` to a literal so the services list can be decoded as
    a discriminated union, and list their secret-capable fields in
    `secret_fields` (string fields) and `secret_list_fields` (lists of strings).
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    secret_fields: ClassVar[tuple[str, ...]] = ()
    secret_list_fields: ClassVar[tuple[str, ...]] = ()

    name: str
    type: str
    enabled: bool = True
    subject: str = ""
    message: str = ""

    def resolve_secrets(self, prefix: str = DEFAULT_PREFIX) -> Self:
        """Return a copy with every secret-capable field resolved from the environment."""
        update: dict[str, object] = {}
        for field in self.secret_fields:
            update[field] = resolve_secret(prefix, getattr(self, field))
        for field in self.secret_list_fields:
            update[field] = [resolve_secret(prefix, item) for item in getattr(self, field)]
        return self.model_copy(update=update)

    @abstractmethod
    def build_provider(self, secret_prefix: str, timeout: float) -> NotificationProvider:
        """Create the provider for this service."""
