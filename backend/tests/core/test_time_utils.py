"""
Time Helper Unit Tests
======================

Tests for duration computation and rendering.
"""

from datetime import datetime, timedelta, timezone

import pytest

from incident_bot.utils.time import duration_minutes, ensure_utc, format_duration, format_timestamp


pytestmark = pytest.mark.unit

START = datetime(2024, 11, 15, 14, 0, tzinfo=timezone.utc)


class TestDurationMinutes:
    """Tests for duration_minutes."""

    @pytest.mark.parametrize(
        "elapsed,expected",
        [
            (timedelta(0), 0),
            (timedelta(seconds=29), 0),
            (timedelta(seconds=30), 1),
            (timedelta(minutes=45), 45),
            (timedelta(hours=2, minutes=15, seconds=10), 135),
        ],
    )
    def test_rounds_half_up(self, elapsed, expected):
        """Test rounding to whole minutes."""
        # Act
        minutes = duration_minutes(START, START + elapsed)

        # Assert
        assert minutes == expected

    def test_never_negative(self):
        """Test that clock skew cannot produce a negative duration."""
        # Assert
        assert duration_minutes(START, START - timedelta(minutes=3)) == 0

    def test_naive_values_are_treated_as_utc(self):
        """Test mixing naive and aware datetimes."""
        # Act
        minutes = duration_minutes(START.replace(tzinfo=None), START + timedelta(minutes=10))

        # Assert
        assert minutes == 10


class TestFormatting:
    """Tests for format_duration and format_timestamp."""

    @pytest.mark.parametrize(
        "minutes,expected",
        [(0, "0min"), (45, "45min"), (60, "1h 0min"), (135, "2h 15min"), (None, "unknown")],
    )
    def test_format_duration(self, minutes, expected):
        """Test duration rendering."""
        # Assert
        assert format_duration(minutes) == expected

    def test_format_timestamp(self):
        """Test timestamp rendering in UTC."""
        # Assert
        assert format_timestamp(START) == "2024-11-15 14:00 UTC"

    def test_ensure_utc_keeps_aware_values(self):
        """Test that aware datetimes are returned unchanged."""
        # Assert
        assert ensure_utc(START) is START
        assert ensure_utc(None) is None
