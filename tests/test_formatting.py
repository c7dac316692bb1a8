"""Tests for minute formatting."""
import pytest

from oncall_sla.sla.domain import format_minutes


class TestFormatMinutes:
    @pytest.mark.parametrize("minutes,expected", [
        (0, "0m"),
        (45, "45m"),
        (60, "1h"),
        (125, "2h 5m"),
        (180, "3h"),
        (1440, "1d"),
        (1680, "1d 4h"),
        (2890, "2d"),
    ])
    def test_positive(self, minutes, expected):
        assert format_minutes(minutes) == expected

    def test_overdue(self):
        assert format_minutes(-20) == "Overdue by 20m"
        assert format_minutes(-125) == "Overdue by 2h 5m"
