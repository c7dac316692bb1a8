"""Tests for deadline resolution and live SLA status."""
from datetime import datetime, timedelta

import pytest

from oncall_sla.config import SLAHealth
from oncall_sla.core import InvalidPolicy
from oncall_sla.sla.domain import (
    DeadlineResolver,
    NotTracked,
    SLAStatus,
    SLAStatusEvaluator,
)
from oncall_sla.sla.domain.services import evaluate, resolve_deadlines

from tests.conftest import NEW_YORK, T0, UTC


def minutes(n: int) -> timedelta:
    return timedelta(minutes=n)


class TestResolveDeadlines:
    def test_wall_clock_deadlines(self, make_incident, wall_clock_policy):
        deadlines = resolve_deadlines(make_incident(severity="critical"), wall_clock_policy)

        assert deadlines.response_deadline == T0 + minutes(15)
        assert deadlines.resolution_deadline == T0 + minutes(240)
        assert deadlines.response_target_minutes == 15
        assert deadlines.resolution_target_minutes == 240

    def test_resolution_does_not_wait_for_response(self, make_incident, wall_clock_policy):
        incident = make_incident(severity="low", first_response_at=T0 + minutes(200))

        deadlines = DeadlineResolver.resolve_deadlines(incident, wall_clock_policy)

        assert deadlines.resolution_deadline == T0 + minutes(2880)

    def test_business_hours_deadline(self, make_incident, business_policy):
        incident = make_incident(
            severity="high",
            team_id="payments",
            created_at=datetime(2024, 3, 8, 16, 40, tzinfo=NEW_YORK),
        )

        deadlines = resolve_deadlines(incident, business_policy)

        assert deadlines.response_deadline == datetime(2024, 3, 11, 9, 10, tzinfo=NEW_YORK)

    def test_wall_clock_deadline_matches_breach_across_dst(self, make_incident, wall_clock_policy):
        created = datetime(2024, 11, 3, 0, 30, tzinfo=NEW_YORK)
        incident = make_incident(created_at=created)

        deadline = resolve_deadlines(incident, wall_clock_policy).resolution_deadline

        assert deadline.astimezone(UTC) - created.astimezone(UTC) == minutes(240)
        assert evaluate(incident, wall_clock_policy, deadline).is_resolution_breached is False
        assert evaluate(incident, wall_clock_policy, deadline + minutes(1)).is_resolution_breached is True

    def test_rejects_unvalidated_policy(self, make_incident):
        with pytest.raises(InvalidPolicy):
            resolve_deadlines(make_incident(), {"business_hours_only": False})


class TestResponseClock:
    def test_late_first_response_is_breached(self, make_incident, wall_clock_policy):
        incident = make_incident(status="in_progress", first_response_at=T0 + minutes(20))

        status = evaluate(incident, wall_clock_policy, T0 + minutes(30))

        assert status.is_response_breached is True
        assert status.response_time_remaining_minutes == -5
        assert status.response_elapsed_minutes == 20
        assert status.response_clock_stopped is True
        assert status.is_response_at_risk is False

    def test_open_incident_at_eighty_percent_is_at_risk(self, make_incident, wall_clock_policy):
        status = evaluate(make_incident(), wall_clock_policy, T0 + minutes(12))

        assert status.is_response_at_risk is True
        assert status.is_response_breached is False
        assert status.response_time_percentage == pytest.approx(80.0)
        assert status.health == SLAHealth.AT_RISK

    def test_below_threshold_is_healthy(self, make_incident, wall_clock_policy):
        status = evaluate(make_incident(), wall_clock_policy, T0 + minutes(11))

        assert status.is_response_at_risk is False
        assert status.health == SLAHealth.HEALTHY

    def test_exactly_on_target_is_not_breached(self, make_incident, wall_clock_policy):
        status = evaluate(make_incident(), wall_clock_policy, T0 + minutes(15))

        assert status.is_response_breached is False
        assert status.is_response_at_risk is True
        assert status.response_time_remaining_minutes == 0

    def test_one_minute_past_target_is_breached(self, make_incident, wall_clock_policy):
        status = evaluate(make_incident(), wall_clock_policy, T0 + minutes(16))

        assert status.is_response_breached is True
        assert status.is_response_at_risk is False
        assert status.health == SLAHealth.BREACHED

    def test_closed_without_response_stops_at_close(self, make_incident, wall_clock_policy):
        incident = make_incident(status="closed", closed_at=T0 + minutes(10))

        status = evaluate(incident, wall_clock_policy, T0 + minutes(1000))

        assert status.response_elapsed_minutes == 10
        assert status.response_clock_stopped is True
        assert status.is_response_breached is False

    def test_response_before_creation_clamps_to_zero(self, make_incident, wall_clock_policy):
        incident = make_incident(status="in_progress", first_response_at=T0 - minutes(5))

        status = evaluate(incident, wall_clock_policy, T0 + minutes(30))

        assert status.response_elapsed_minutes == 0
        assert status.response_time_percentage == 0


class TestResolutionClock:
    def test_running_resolution_clock(self, make_incident, wall_clock_policy):
        incident = make_incident(status="in_progress", first_response_at=T0 + minutes(5))

        status = evaluate(incident, wall_clock_policy, T0 + minutes(200))

        assert status.resolution_elapsed_minutes == 200
        assert status.resolution_clock_stopped is False
        assert status.is_resolution_at_risk is True
        assert status.resolution_time_remaining_minutes == 40

    def test_resolution_breach(self, make_incident, wall_clock_policy):
        incident = make_incident(status="in_progress", first_response_at=T0 + minutes(5))

        status = evaluate(incident, wall_clock_policy, T0 + minutes(241))

        assert status.is_resolution_breached is True
        assert status.is_response_breached is False
        assert status.health == SLAHealth.BREACHED

    def test_business_hours_elapsed(self, make_incident, business_policy):
        created = datetime(2024, 1, 12, 16, 0, tzinfo=NEW_YORK)
        incident = make_incident(team_id="payments", severity="medium", created_at=created)

        status = evaluate(incident, business_policy, datetime(2024, 1, 15, 9, 30, tzinfo=NEW_YORK))

        assert status.response_elapsed_minutes == 90
        assert status.is_response_breached is True
        assert status.resolution_elapsed_minutes == 90


class TestClockProperties:
    def test_closed_incident_is_idempotent(self, make_incident, wall_clock_policy):
        incident = make_incident(
            status="closed",
            first_response_at=T0 + minutes(5),
            closed_at=T0 + minutes(100),
        )

        early = evaluate(incident, wall_clock_policy, T0 + minutes(100))
        later = evaluate(incident, wall_clock_policy, T0 + timedelta(days=30))

        assert early == later

    def test_open_incident_is_monotonic(self, make_incident, wall_clock_policy):
        incident = make_incident()
        previous = None

        for offset in range(0, 400, 7):
            status = evaluate(incident, wall_clock_policy, T0 + minutes(offset))
            if previous is not None:
                assert status.response_elapsed_minutes >= previous.response_elapsed_minutes
                assert status.resolution_elapsed_minutes >= previous.resolution_elapsed_minutes
                if previous.is_response_breached:
                    assert status.is_response_breached
                if previous.is_resolution_breached:
                    assert status.is_resolution_breached
            previous = status

    def test_breached_and_at_risk_are_exclusive(self, make_incident, wall_clock_policy):
        incident = make_incident()

        for offset in range(0, 300, 3):
            status = evaluate(incident, wall_clock_policy, T0 + minutes(offset))
            assert not (status.is_response_breached and status.is_response_at_risk)
            assert not (status.is_resolution_breached and status.is_resolution_at_risk)


class TestNotTracked:
    def test_no_policy(self, make_incident):
        result = SLAStatusEvaluator.evaluate(make_incident(id="inc-x"), None, T0)

        assert isinstance(result, NotTracked)
        assert result.reason == NotTracked.NO_POLICY
        assert result.incident_id == "inc-x"

    def test_disabled_policy(self, make_incident, disabled_policy):
        result = evaluate(make_incident(team_id="legacy"), disabled_policy, T0 + minutes(500))

        assert isinstance(result, NotTracked)
        assert result.reason == NotTracked.DISABLED

    def test_mapping_policy_fails_fast(self, make_incident):
        with pytest.raises(InvalidPolicy):
            evaluate(make_incident(), {"team_id": "platform"}, T0)


class TestIncidentTimeline:
    def test_naive_created_at_rejected(self, make_incident):
        with pytest.raises(ValueError):
            make_incident(created_at=datetime(2024, 1, 15, 10, 0))

    def test_unknown_severity_rejected(self, make_incident):
        with pytest.raises(ValueError):
            make_incident(severity="urgent")


class TestStatusSerialization:
    def test_to_dict_uses_utc(self, make_incident, wall_clock_policy):
        incident = make_incident(created_at=datetime(2024, 1, 15, 5, 0, tzinfo=NEW_YORK))

        status = evaluate(incident, wall_clock_policy, T0 + minutes(1))
        data = status.to_dict()

        assert isinstance(status, SLAStatus)
        assert data["response"]["deadline"] == "2024-01-15T10:15:00+00:00"
        assert data["health"] == "healthy"
