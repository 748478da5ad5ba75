# ABOUTME: Renders notification subject/message templates against a heartbeat snapshot
# ABOUTME: Uses string.Template placeholders ($name, ${status}, ...) and fails loudly on unknown ones

from datetime import datetime, timezone
from string import Template

from heartbeats.errors import TemplateError
from heartbeats.heartbeat import HeartbeatSnapshot, time_ago
from heartbeats.interval import format_duration

PLACEHOLDERS = ("name", "description", "status", "interval", "grace", "last_ping", "last_ping_iso")


def template_context(heartbeat: HeartbeatSnapshot, now: datetime | None = None) -> dict[str, str]:
    """Build the placeholder values available to templates."""
    return {
        "name": heartbeat.name,
        "description": heartbeat.description,
        "status": heartbeat.status.value,
        "interval": format_duration(heartbeat.interval),
        "grace": format_duration(heartbeat.grace),
        "last_ping": time_ago(heartbeat.last_ping, now=now or datetime.now(timezone.utc)),
        "last_ping_iso": heartbeat.last_ping.isoformat() if heartbeat.last_ping else "",
    }


def render(owner: str, template: str, heartbeat: HeartbeatSnapshot) -> str:
    """
    Render a template for a heartbeat.

    Pure and side-effect free, so it can be used during config validation with
    an empty HeartbeatSnapshot to reject broken templates before runtime.

    Args:
        owner: Name of the service (or "defaults") the template belongs to
        template: Template text using $placeholder / ${placeholder} syntax
        heartbeat: The heartbeat data to substitute

    Returns:
        The rendered text

    Raises:
        TemplateError: On unknown placeholders or malformed "$" syntax
    """
    try:
        return Template(template).substitute(template_context(heartbeat))
    except KeyError as e:
        raise TemplateError(
            f"{owner}: unknown placeholder {e.args[0]!r} "
            f"(available: {', '.join(PLACEHOLDERS)})"
        ) from e
    except ValueError as e:
        raise TemplateError(f"{owner}: malformed template: {e}") from e
