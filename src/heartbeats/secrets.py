# ABOUTME: Resolves "env:NAME" secret references in notification service settings
# ABOUTME: Unset variables leave the raw reference in place for providers to reject at send time

import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "env:"


def resolve_secret(prefix: str, raw: str) -> str:
    """
    Resolve a single value that may reference an environment variable.

    Args:
        prefix: Marker that flags an indirection (e.g. "env:")
        raw: The configured value

    Returns:
        The variable's value if raw starts with prefix and the variable is set
        to a non-empty value, otherwise raw unchanged.
    """
    if not raw.startswith(prefix):
        return raw

    variable = raw[len(prefix):]
    value = os.environ.get(variable, "")
    if not value:
        logger.warning(f"Environment variable {variable} is not set, keeping raw value")
        return raw
    return value


def is_unresolved(prefix: str, value: str) -> bool:
    """True if value is still a secret reference (its variable was not set)."""
    return value.startswith(prefix)
