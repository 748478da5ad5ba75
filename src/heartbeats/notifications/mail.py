# ABOUTME: Mail notification service - sends alerts over SMTP
# ABOUTME: smtplib runs in a worker thread so a slow mail server never blocks the event loop

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import ClassVar, Literal

from pydantic import AliasChoices, Field

from heartbeats.errors import ConfigError, TransportError
from heartbeats.notifications.base import NotificationProvider, ServiceConfig

logger = logging.getLogger(__name__)


class MailServiceConfig(ServiceConfig):
    """Configuration entry for a mail service."""

    secret_fields: ClassVar[tuple[str, ...]] = (
        "sender_address",
        "smtp_host",
        "smtp_user",
        "smtp_password",
    )
    secret_list_fields: ClassVar[tuple[str, ...]] = ("receiver_addresses",)

    type: Literal["mail"] = "mail"
    sender_address: str = Field(
        default="", validation_alias=AliasChoices("sender_address", "senderAddress")
    )
    smtp_host: str = Field(default="", validation_alias=AliasChoices("smtp_host", "smtpHostAddr"))
    smtp_port: int = Field(default=0, validation_alias=AliasChoices("smtp_port", "smtpHostPort"))
    smtp_user: str = Field(default="", validation_alias=AliasChoices("smtp_user", "smtpAuthUser"))
    smtp_password: str = Field(
        default="", validation_alias=AliasChoices("smtp_password", "smtpAuthPassword")
    )
    receiver_addresses: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("receiver_addresses", "receiverAddresses"),
    )

    def build_provider(self, secret_prefix: str, timeout: float) -> "MailProvider":
        return MailProvider(
            name=self.name,
            sender=self.sender_address,
            host=self.smtp_host,
            port=self.smtp_port,
            user=self.smtp_user,
            password=self.smtp_password,
            receivers=self.receiver_addresses,
            secret_prefix=secret_prefix,
            timeout=timeout,
        )


class MailProvider(NotificationProvider):
    """Sends one email per alert to all receivers."""

    kind = "Mail"

    def __init__(
        self,
        name: str,
        sender: str,
        host: str,
        port: int,
        user: str,
        password: str,
        receivers: list[str],
        **kwargs,
    ):
        super().__init__(name, **kwargs)
        self.sender = sender
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.receivers = list(receivers)

    def validate(self) -> None:
        if not self.sender:
            raise ConfigError("Mail: missing sender address")
        if not self.host:
            raise ConfigError("Mail: missing smtp host")
        if not self.port:
            raise ConfigError("Mail: missing smtp port")
        if not self.user or not self.password:
            raise ConfigError("Mail: missing smtp credentials")
        if not self.receivers:
            raise ConfigError("Mail: missing receivers")

    def build_message(self, subject: str, message: str) -> EmailMessage:
        email = EmailMessage()
        email["From"] = self.sender
        email["To"] = ", ".join(self.receivers)
        email["Subject"] = subject
        email.set_content(message)
        return email

    async def send(self, subject: str, message: str) -> None:
        self.check_credentials(
            sender_address=self.sender,
            smtp_host=self.host,
            smtp_user=self.user,
            smtp_password=self.password,
            receiver_addresses=self.receivers,
        )
        email = self.build_message(subject, message)
        await asyncio.to_thread(self._deliver, email)

    def _deliver(self, email: EmailMessage) -> None:
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls()
                    smtp.ehlo()
                smtp.login(self.user, self.password)
                smtp.send_message(email)
        except (smtplib.SMTPException, OSError) as e:
            raise TransportError(f"Mail: delivery via {self.host}:{self.port} failed: {e}") from e

        logger.debug(f"Mail sent to {len(self.receivers)} receiver(s) via {self.host}")
