# ABOUTME: Duration parsing utility for heartbeat interval and grace values
# ABOUTME: Converts duration strings (e.g., "30s", "1h", "2h30m", "500ms") to timedelta objects

import re
from datetime import timedelta

_UNITS = {
    "d": "days",
    "h": "hours",
    "m": "minutes",
    "s": "seconds",
    "ms": "milliseconds",
}

# "ms" must be tried before "m"
_TOKEN_PATTERN = re.compile(r"(\d+(?:\.\d+)?)(ms|[dhms])")
_FULL_PATTERN = re.compile(r"(?:\d+(?:\.\d+)?(?:ms|[dhms]))+")


def parse_duration(value: str | int | float | timedelta, allow_zero: bool = False) -> timedelta:
    """
    Parse a duration value into a timedelta object.

    Supports formats like:
    - "30m" (30 minutes)
    - "1h" (1 hour)
    - "2h30m" (2 hours 30 minutes)
    - "1d12h30m45s" (1 day, 12 hours, 30 minutes, 45 seconds)
    - "500ms" (half a second)
    - 90 or 1.5 (plain numbers are seconds)

    Units supported: d (days), h (hours), m (minutes), s (seconds), ms (milliseconds)

    Args:
        value: Duration string, number of seconds, or timedelta
        allow_zero: Accept a zero duration (used for grace periods)

    Returns:
        timedelta object representing the parsed duration

    Raises:
        ValueError: If the duration format is invalid or too large, negative, or zero when not allowed

    Examples:
        >>> parse_duration("30m")
        timedelta(minutes=30)
        >>> parse_duration("0s", allow_zero=True)
        timedelta(0)
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")

    try:
        if isinstance(value, timedelta):
            result = value
        elif isinstance(value, (int, float)):
            result = timedelta(seconds=value)
        else:
            result = _parse_duration_string(value)
    except OverflowError as e:
        raise ValueError(f"Duration {value!r} is too large") from e

    if result < timedelta(0):
        raise ValueError("Duration values must not be negative")
    if result == timedelta(0) and not allow_zero:
        raise ValueError("Duration must be greater than zero")

    return result


def _parse_duration_string(duration: str) -> timedelta:
    duration = (duration or "").strip().lower()
    if not duration:
        raise ValueError("Duration must not be empty")

    # Check for negative values before processing
    if duration.startswith("-"):
        raise ValueError("Duration values must not be negative")

    # A bare number is a count of seconds
    if re.fullmatch(r"\d+(?:\.\d+)?", duration):
        return timedelta(seconds=float(duration))

    # The whole string must be consumed by number+unit tokens
    compact = duration.replace(" ", "")
    if not _FULL_PATTERN.fullmatch(compact):
        raise ValueError(
            f"Invalid duration format: '{duration}'. "
            "Expected format like '30s', '1h', '2h30m', '500ms', etc."
        )

    # Build kwargs for timedelta
    kwargs: dict[str, float] = {}
    for value_str, unit in _TOKEN_PATTERN.findall(compact):
        timedelta_param = _UNITS[unit]
        # Accumulate values (in case same unit appears multiple times)
        kwargs[timedelta_param] = kwargs.get(timedelta_param, 0.0) + float(value_str)

    return timedelta(**kwargs)


def format_duration(value: timedelta) -> str:
    """Render a timedelta in the same compact form parse_duration accepts."""
    total_ms = round(value.total_seconds() * 1000)
    if total_ms == 0:
        return "0s"

    parts: list[str] = []
    for unit, size in (("d", 86_400_000), ("h", 3_600_000), ("m", 60_000), ("s", 1000)):
        amount, total_ms = divmod(total_ms, size)
        if amount:
            parts.append(f"{amount}{unit}")
    if total_ms:
        parts.append(f"{total_ms}ms")
    return "".join(parts)
