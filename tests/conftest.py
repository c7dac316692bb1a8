"""
Pytest Configuration and Fixtures
Provides shared fixtures for the SLA engine tests.
"""
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from oncall_sla.sla.domain import IncidentTimeline, TeamSLAPolicy, validate_policy

UTC = timezone.utc
NEW_YORK = ZoneInfo("America/New_York")

# Monday 2024-01-15 10:00 UTC
T0 = datetime(2024, 1, 15, 10, 0, tzinfo=UTC)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as touching the filesystem")


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def wall_clock_policy() -> TeamSLAPolicy:
    """Default targets, counted around the clock."""
    return validate_policy({"team_id": "platform"})


@pytest.fixture
def business_policy() -> TeamSLAPolicy:
    """09:00-17:00 Monday to Friday in New York."""
    return validate_policy({
        "team_id": "payments",
        "business_hours_only": True,
        "business_window": {"start": "09:00", "end": "17:00"},
        "business_days": [1, 2, 3, 4, 5],
        "timezone": "America/New_York",
    })


@pytest.fixture
def disabled_policy() -> TeamSLAPolicy:
    return validate_policy({"team_id": "legacy", "enabled": False})


@pytest.fixture
def make_incident():
    """Factory for incident timelines with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides) -> IncidentTimeline:
        counter["n"] += 1
        values = {
            "id": f"inc-{counter['n']}",
            "created_at": T0,
            "severity": "critical",
            "status": "new",
            "team_id": "platform",
        }
        values.update(overrides)
        return IncidentTimeline(**values)

    return _make
