# ABOUTME: Shared fixtures for heartbeats tests
# ABOUTME: Provides a writer for YAML config files and a recording fake provider

from pathlib import Path
from textwrap import dedent

import pytest

from heartbeats.errors import TransportError
from heartbeats.notifications import NotificationProvider

VALID_CONFIG = """\
notifications:
  defaults:
    subject: "[${status}] heartbeat ${name}"
    message: "Heartbeat ${name} is ${status}"
  services:
    - name: ops-slack
      type: slack
      enabled: true
      oauthToken: xoxb-test
      channels: ["#ops"]
    - name: ops-mail
      type: mail
      enabled: false
      senderAddress: watchdog@example.com
      smtpHostAddr: smtp.example.com
      smtpHostPort: 587
      smtpAuthUser: watchdog
      smtpAuthPassword: secret
      receiverAddresses: ["oncall@example.com"]
heartbeats:
  - name: db-sync
    description: nightly sync
    interval: 60s
    grace: 30s
    notifications: [ops-slack, ops-mail]
  - name: backup
    interval: 1h
    grace: 0s
    notifications: [ops-slack]
"""


@pytest.fixture
def write_config(tmp_path):
    """Write YAML text to a config file and return its path."""

    def _write(text: str = VALID_CONFIG, name: str = "config.yaml") -> Path:
        path = tmp_path / name
        path.write_text(dedent(text))
        return path

    return _write


class RecordingProvider(NotificationProvider):
    """Provider that records sends and can be told to fail."""

    kind = "Recording"

    def __init__(self, name: str, fail: bool = False):
        super().__init__(name)
        self.fail = fail
        self.sent: list[tuple[str, str]] = []
        self.closed = False

    def validate(self) -> None:
        pass

    async def send(self, subject: str, message: str) -> None:
        self.sent.append((subject, message))
        if self.fail:
            raise TransportError(f"{self.name} is down")

    async def close(self) -> None:
        self.closed = True
