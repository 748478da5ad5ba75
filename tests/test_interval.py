# ABOUTME: Tests for duration parsing utility
# ABOUTME: Verifies parsing of duration strings like "30s", "1h", "2h30m", "500ms" into timedelta objects

from datetime import timedelta

import pytest

from heartbeats.interval import format_duration, parse_duration


class TestParseDuration:
    """Test suite for duration parsing functionality."""

    def test_parse_minutes_only(self):
        """Test parsing minutes-only duration strings."""
        assert parse_duration("30m") == timedelta(minutes=30)

    def test_parse_hours_only(self):
        """Test parsing hours-only duration strings."""
        assert parse_duration("1h") == timedelta(hours=1)

    def test_parse_seconds_only(self):
        """Test parsing seconds-only duration strings."""
        assert parse_duration("90s") == timedelta(seconds=90)

    def test_parse_milliseconds(self):
        """Milliseconds must not be confused with minutes."""
        assert parse_duration("500ms") == timedelta(milliseconds=500)
        assert parse_duration("1m500ms") == timedelta(minutes=1, milliseconds=500)

    def test_parse_complex_combination(self):
        """Test parsing complex multi-unit durations."""
        result = parse_duration("1d2h30m45s")
        assert result == timedelta(days=1, hours=2, minutes=30, seconds=45)

    def test_parse_plain_number_is_seconds(self):
        """Numbers, numeric strings and timedeltas are accepted."""
        assert parse_duration(60) == timedelta(seconds=60)
        assert parse_duration(1.5) == timedelta(seconds=1.5)
        assert parse_duration("45") == timedelta(seconds=45)
        assert parse_duration(timedelta(minutes=2)) == timedelta(minutes=2)

    def test_parse_float_values(self):
        """Test that float values are supported."""
        assert parse_duration("1.5h") == timedelta(hours=1.5)

    def test_parse_case_insensitive(self):
        """Test that units are case-insensitive."""
        assert parse_duration("30M") == timedelta(minutes=30)

    def test_parse_with_spaces(self):
        """Test parsing durations with spaces between components."""
        assert parse_duration("2h 30m") == timedelta(hours=2, minutes=30)

    def test_parse_empty_string_raises_error(self):
        """Empty durations are rejected."""
        with pytest.raises(ValueError, match="must not be empty"):
            parse_duration("")

    def test_parse_invalid_format_raises_error(self):
        """Test that invalid formats raise ValueError."""
        with pytest.raises(ValueError, match="Invalid duration format"):
            parse_duration("invalid")

    def test_parse_trailing_garbage_raises_error(self):
        """The whole string has to be a duration."""
        with pytest.raises(ValueError, match="Invalid duration format"):
            parse_duration("30m later")

    def test_parse_unknown_unit_raises_error(self):
        """Test that unknown units raise ValueError."""
        with pytest.raises(ValueError, match="Invalid duration format"):
            parse_duration("30x")

    def test_parse_negative_value_raises_error(self):
        """Test that negative values raise ValueError."""
        with pytest.raises(ValueError, match="must not be negative"):
            parse_duration("-30m")
        with pytest.raises(ValueError, match="must not be negative"):
            parse_duration(-5)

    def test_parse_zero_rejected_by_default(self):
        """Zero is not a valid interval."""
        with pytest.raises(ValueError, match="greater than zero"):
            parse_duration("0s")

    def test_parse_zero_allowed_for_grace(self):
        """Zero is a valid grace period."""
        assert parse_duration("0s", allow_zero=True) == timedelta(0)
        assert parse_duration(0, allow_zero=True) == timedelta(0)

    def test_parse_bool_rejected(self):
        """YAML booleans are not durations."""
        with pytest.raises(ValueError):
            parse_duration(True)

    @pytest.mark.parametrize("value", ["99999999999d", 10**20, float("inf")])
    def test_parse_out_of_range_raises_value_error(self, value):
        """Durations too large for a timedelta are reported as invalid values."""
        with pytest.raises(ValueError, match="too large"):
            parse_duration(value)


class TestFormatDuration:
    """Tests for rendering durations back to strings."""

    def test_format_zero(self):
        assert format_duration(timedelta(0)) == "0s"

    def test_format_compound(self):
        assert format_duration(timedelta(hours=1, minutes=30)) == "1h30m"
        assert format_duration(timedelta(days=1, seconds=5)) == "1d5s"

    def test_format_milliseconds(self):
        assert format_duration(timedelta(milliseconds=1500)) == "1s500ms"
