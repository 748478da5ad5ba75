# ABOUTME: Slack notification service - posts alerts to channels via chat.postMessage
# ABOUTME: Uses an httpx.AsyncClient with a bearer OAuth token

import logging
from typing import ClassVar, Literal

import httpx
from pydantic import AliasChoices, Field

from heartbeats.errors import ConfigError, TransportError
from heartbeats.notifications.base import NotificationProvider, ServiceConfig

logger = logging.getLogger(__name__)

SLACK_POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"


class SlackServiceConfig(ServiceConfig):
    """Configuration entry for a Slack service."""

    secret_fields: ClassVar[tuple[str, ...]] = ("oauth_token",)
    secret_list_fields: ClassVar[tuple[str, ...]] = ("channels",)

    type: Literal["slack"] = "slack"
    oauth_token: str = Field(default="", validation_alias=AliasChoices("oauth_token", "oauthToken"))
    channels: list[str] = Field(default_factory=list)

    def build_provider(self, secret_prefix: str, timeout: float) -> "SlackProvider":
        return SlackProvider(
            name=self.name,
            token=self.oauth_token,
            channels=self.channels,
            secret_prefix=secret_prefix,
            timeout=timeout,
        )


class SlackProvider(NotificationProvider):
    """Posts "*subject*\\nmessage" to every configured channel."""

    kind = "Slack"

    def __init__(
        self,
        name: str,
        token: str,
        channels: list[str],
        client: httpx.AsyncClient | None = None,
        **kwargs,
    ):
        super().__init__(name, **kwargs)
        self.token = token
        self.channels = list(channels)
        self._http_client = client

    def validate(self) -> None:
        if not self.token:
            raise ConfigError("Slack: missing token")
        if not self.channels:
            raise ConfigError("Slack: missing channels")

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Lazily create the HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def send(self, subject: str, message: str) -> None:
        self.check_credentials(oauth_token=self.token, channels=self.channels)

        text = f"*{subject}*\n{message}" if subject else message
        failures: list[str] = []
        for channel in self.channels:
            try:
                await self._post(channel, text)
            except TransportError as e:
                failures.append(str(e))

        if failures:
            raise TransportError("; ".join(failures))

    async def _post(self, channel: str, text: str) -> None:
        try:
            response = await self.http_client.post(
                SLACK_POST_MESSAGE_URL,
                headers={"Authorization": f"Bearer {self.token}"},
                json={"channel": channel, "text": text},
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Slack: request to {channel} failed: {e}") from e

        if response.status_code != 200:
            raise TransportError(f"Slack: {channel} returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(f"Slack: {channel} returned an invalid response") from e

        if not body.get("ok", False):
            raise TransportError(f"Slack: {channel} rejected message: {body.get('error', 'unknown error')}")

        logger.debug(f"Slack message posted to {channel}")
