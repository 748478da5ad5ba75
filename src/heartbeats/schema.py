# ABOUTME: Pydantic models for the heartbeats YAML configuration document
# ABOUTME: Notification services decode as a union discriminated on their "type" field

from datetime import timedelta
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from heartbeats.interval import parse_duration
from heartbeats.notifications.mail import MailServiceConfig
from heartbeats.notifications.slack import SlackServiceConfig

DEFAULT_SUBJECT = "[${status}] heartbeat ${name}"
DEFAULT_MESSAGE = "Heartbeat ${name} is ${status}. Last ping: ${last_ping}"

ServiceEntry = Annotated[
    SlackServiceConfig | MailServiceConfig,
    Field(discriminator="type"),
]


class HeartbeatDefinition(BaseModel):
    """
    One configured heartbeat.

    Attributes:
        name: Unique heartbeat name used in ping/status URLs
        description: Optional free text
        interval: Maximum gap between pings (must be > 0)
        grace: Extra tolerance after the interval before going missing (>= 0)
        notifications: Service names to notify, in order
    """

    model_config = ConfigDict(extra="forbid")

    name: Annotated[str, Field(min_length=1)]
    description: str = ""
    interval: timedelta
    grace: timedelta = timedelta(0)
    notifications: list[str] = Field(default_factory=list)

    @field_validator("interval", mode="before")
    @classmethod
    def validate_interval(cls, v: str | int | float | timedelta) -> timedelta:
        try:
            return parse_duration(v)
        except ValueError as e:
            raise ValueError(f"Invalid interval: {e}") from e

    @field_validator("grace", mode="before")
    @classmethod
    def validate_grace(cls, v: str | int | float | timedelta) -> timedelta:
        try:
            return parse_duration(v, allow_zero=True)
        except ValueError as e:
            raise ValueError(f"Invalid grace: {e}") from e


class NotificationDefaults(BaseModel):
    """Subject and message used by services that do not define their own."""

    model_config = ConfigDict(extra="forbid")

    subject: str = DEFAULT_SUBJECT
    message: str = DEFAULT_MESSAGE


class NotificationsSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    defaults: NotificationDefaults = Field(default_factory=NotificationDefaults)
    services: list[ServiceEntry] = Field(default_factory=list)


class ConfigDocument(BaseModel):
    """The whole configuration file."""

    model_config = ConfigDict(extra="ignore")

    heartbeats: list[HeartbeatDefinition] = Field(default_factory=list)
    notifications: NotificationsSection = Field(default_factory=NotificationsSection)
