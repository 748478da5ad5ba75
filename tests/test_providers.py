# ABOUTME: Tests for the Slack and mail notification providers
# ABOUTME: Slack uses httpx.MockTransport, mail patches smtplib.SMTP

import json
import os
from unittest.mock import MagicMock, patch

import httpx
import pytest

from heartbeats.errors import ConfigError, CredentialError, TransportError
from heartbeats.notifications import MailProvider, MailServiceConfig, SlackProvider, SlackServiceConfig
from heartbeats.notifications.slack import SLACK_POST_MESSAGE_URL


def slack_provider(handler, token="xoxb-token", channels=("#ops",)) -> SlackProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SlackProvider(name="ops-slack", token=token, channels=list(channels), client=client)


def mail_provider(**overrides) -> MailProvider:
    kwargs = {
        "name": "ops-mail",
        "sender": "watchdog@example.com",
        "host": "smtp.example.com",
        "port": 587,
        "user": "watchdog",
        "password": "secret",
        "receivers": ["oncall@example.com", "lead@example.com"],
    }
    kwargs.update(overrides)
    return MailProvider(**kwargs)


class TestSlackValidate:
    """Tests for Slack construction checks."""

    def test_missing_token(self):
        provider = SlackProvider(name="s", token="", channels=["#ops"])
        with pytest.raises(ConfigError, match="Slack: missing token"):
            provider.validate()

    def test_missing_channels(self):
        provider = SlackProvider(name="s", token="xoxb", channels=[])
        with pytest.raises(ConfigError, match="Slack: missing channels"):
            provider.validate()

    def test_valid(self):
        SlackProvider(name="s", token="xoxb", channels=["#ops"]).validate()

    def test_config_accepts_camel_case_token(self):
        config = SlackServiceConfig.model_validate(
            {"name": "s", "type": "slack", "oauthToken": "xoxb", "channels": ["#ops"]}
        )
        provider = config.build_provider(secret_prefix="env:", timeout=5.0)

        assert provider.token == "xoxb"
        assert provider.timeout == 5.0


class TestSlackSend:
    """Tests for posting to Slack."""

    @pytest.mark.asyncio
    async def test_posts_to_every_channel(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"ok": True})

        provider = slack_provider(handler, channels=["#ops", "#alerts"])
        await provider.send("db-sync missing", "no ping for 90s")
        await provider.close()

        assert [json.loads(r.content)["channel"] for r in requests] == ["#ops", "#alerts"]
        assert str(requests[0].url) == SLACK_POST_MESSAGE_URL
        assert requests[0].headers["Authorization"] == "Bearer xoxb-token"
        assert json.loads(requests[0].content)["text"] == "*db-sync missing*\nno ping for 90s"

    @pytest.mark.asyncio
    async def test_slack_error_body_raises(self):
        provider = slack_provider(lambda r: httpx.Response(200, json={"ok": False, "error": "channel_not_found"}))

        with pytest.raises(TransportError, match="channel_not_found"):
            await provider.send("s", "m")

    @pytest.mark.asyncio
    async def test_http_error_status_raises(self):
        provider = slack_provider(lambda r: httpx.Response(500, text="oops"))

        with pytest.raises(TransportError, match="HTTP 500"):
            await provider.send("s", "m")

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        provider = slack_provider(handler)
        with pytest.raises(TransportError, match="request to #ops failed"):
            await provider.send("s", "m")

    @pytest.mark.asyncio
    async def test_one_failed_channel_does_not_skip_others(self):
        seen: list[str] = []

        def handler(request):
            channel = json.loads(request.content)["channel"]
            seen.append(channel)
            if channel == "#broken":
                return httpx.Response(200, json={"ok": False, "error": "not_in_channel"})
            return httpx.Response(200, json={"ok": True})

        provider = slack_provider(handler, channels=["#broken", "#ops"])
        with pytest.raises(TransportError):
            await provider.send("s", "m")
        assert seen == ["#broken", "#ops"]

    @pytest.mark.asyncio
    async def test_unresolved_token_fails_at_send_time(self):
        """An env: token whose variable is unset builds fine but cannot send."""
        config = SlackServiceConfig(name="s", oauth_token="env:HEARTBEATS_TEST_UNSET", channels=["#ops"])

        with patch.dict(os.environ, {}, clear=True):
            resolved = config.resolve_secrets("env:")
        provider = resolved.build_provider(secret_prefix="env:", timeout=1.0)
        provider.validate()

        with pytest.raises(CredentialError, match="HEARTBEATS_TEST_UNSET"):
            await provider.send("s", "m")

    @pytest.mark.asyncio
    async def test_unresolved_channel_fails_before_posting(self):
        requests: list[httpx.Request] = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"ok": True})

        provider = slack_provider(handler, channels=["#ops", "env:ALERT_CHANNEL"])

        with pytest.raises(CredentialError, match="channels references unset variable ALERT_CHANNEL"):
            await provider.send("s", "m")
        assert requests == []


class TestMailValidate:
    """Tests for mail construction checks."""

    @pytest.mark.parametrize(
        "override,message",
        [
            ({"sender": ""}, "missing sender address"),
            ({"host": ""}, "missing smtp host"),
            ({"port": 0}, "missing smtp port"),
            ({"user": ""}, "missing smtp credentials"),
            ({"password": ""}, "missing smtp credentials"),
            ({"receivers": []}, "missing receivers"),
        ],
    )
    def test_missing_fields(self, override, message):
        with pytest.raises(ConfigError, match=f"Mail: {message}"):
            mail_provider(**override).validate()

    def test_config_accepts_original_key_names(self):
        config = MailServiceConfig.model_validate(
            {
                "name": "m",
                "type": "mail",
                "senderAddress": "a@example.com",
                "smtpHostAddr": "smtp.example.com",
                "smtpHostPort": 25,
                "smtpAuthUser": "u",
                "smtpAuthPassword": "p",
                "receiverAddresses": ["b@example.com"],
            }
        )
        provider = config.build_provider(secret_prefix="env:", timeout=1.0)
        provider.validate()

        assert provider.host == "smtp.example.com"
        assert provider.port == 25
        assert provider.receivers == ["b@example.com"]


class TestMailSend:
    """Tests for SMTP delivery."""

    def test_build_message(self):
        email = mail_provider().build_message("subject line", "body text")

        assert email["From"] == "watchdog@example.com"
        assert email["To"] == "oncall@example.com, lead@example.com"
        assert email["Subject"] == "subject line"
        assert email.get_content().strip() == "body text"

    @pytest.mark.asyncio
    async def test_send_uses_smtp(self):
        smtp = MagicMock()
        smtp.__enter__.return_value = smtp
        smtp.has_extn.return_value = True

        with patch("heartbeats.notifications.mail.smtplib.SMTP", return_value=smtp) as smtp_cls:
            await mail_provider().send("subject", "body")

        smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=10.0)
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("watchdog", "secret")
        smtp.send_message.assert_called_once()

    @pytest.mark.asyncio
    async def test_smtp_failure_becomes_transport_error(self):
        with patch(
            "heartbeats.notifications.mail.smtplib.SMTP",
            side_effect=ConnectionRefusedError("refused"),
        ):
            with pytest.raises(TransportError, match="smtp.example.com:587"):
                await mail_provider().send("subject", "body")

    @pytest.mark.asyncio
    async def test_unresolved_password_fails_at_send_time(self):
        with pytest.raises(CredentialError, match="smtp_password"):
            await mail_provider(password="env:SMTP_PASSWORD").send("s", "m")

    @pytest.mark.asyncio
    async def test_unresolved_receiver_fails_before_connecting(self):
        with patch("heartbeats.notifications.mail.smtplib.SMTP") as smtp_cls:
            with pytest.raises(CredentialError, match="receiver_addresses references unset variable ONCALL_ADDRESS"):
                await mail_provider(receivers=["lead@example.com", "env:ONCALL_ADDRESS"]).send("s", "m")

        smtp_cls.assert_not_called()
