"""Tests for daily trend series."""
from datetime import date, datetime, timedelta

import pytest

from oncall_sla.core import ValidationException
from oncall_sla.sla.application import SLAAggregator

from tests.conftest import T0, UTC

DAY1, DAY2, DAY3 = date(2024, 1, 15), date(2024, 1, 16), date(2024, 1, 17)
NOW = datetime(2024, 1, 18, 0, 0, tzinfo=UTC)


@pytest.fixture
def policies(wall_clock_policy, disabled_policy):
    return {"platform": wall_clock_policy, "legacy": disabled_policy}


@pytest.fixture
def aggregator():
    return SLAAggregator()


class TestBuildTrend:
    def test_days_without_incidents(self, aggregator, policies, make_incident):
        incidents = [make_incident(severity="high"), make_incident(severity="low")]

        points = aggregator.build_trend(incidents, policies, DAY1, DAY3, now=NOW)

        assert [p.date for p in points] == [DAY1, DAY2, DAY3]
        assert points[0].total_incidents == 2
        assert points[0].by_severity == {"critical": 0, "high": 1, "medium": 0, "low": 1}
        for point in points[1:]:
            assert point.total_incidents == 0
            assert point.closed_incidents == 0
            assert point.response_compliance == 100.0
            assert point.resolution_compliance == 100.0
            assert point.avg_response_time_minutes is None

    def test_closure_counts_on_closing_day(self, aggregator, policies, make_incident):
        incident = make_incident(
            status="closed",
            first_response_at=T0 + timedelta(minutes=10),
            closed_at=datetime(2024, 1, 16, 12, 0, tzinfo=UTC),
        )

        day1, day2, _ = aggregator.build_trend([incident], policies, DAY1, DAY3, now=NOW)

        assert (day1.total_incidents, day1.closed_incidents) == (1, 0)
        assert day1.resolution_compliance == 100.0
        assert (day2.total_incidents, day2.closed_incidents) == (0, 1)
        assert day2.response_compliance == 100.0
        assert day2.resolution_compliance == 0.0
        assert day2.avg_response_time_minutes == 10
        assert day2.avg_resolution_time_minutes == 26 * 60

    def test_untracked_closure_counts_without_compliance(self, aggregator, policies, make_incident):
        incident = make_incident(
            team_id="legacy", status="closed", closed_at=T0 + timedelta(days=1),
        )

        points = aggregator.build_trend([incident], policies, DAY1, DAY3, now=NOW)

        assert points[1].closed_incidents == 1
        assert points[1].resolution_compliance == 100.0
        assert points[1].avg_resolution_time_minutes is None

    def test_viewer_timezone_decides_the_day(self, aggregator, policies, make_incident):
        # 03:00 UTC on the 16th is still the 15th in New York
        incident = make_incident(created_at=datetime(2024, 1, 16, 3, 0, tzinfo=UTC))

        utc_points = aggregator.build_trend([incident], policies, DAY1, DAY2, now=NOW)
        ny_points = aggregator.build_trend(
            [incident], policies, DAY1, DAY2, timezone_name="America/New_York", now=NOW,
        )

        assert [p.total_incidents for p in utc_points] == [0, 1]
        assert [p.total_incidents for p in ny_points] == [1, 0]

    def test_incidents_outside_range_ignored(self, aggregator, policies, make_incident):
        incident = make_incident(created_at=T0 - timedelta(days=5))

        points = aggregator.build_trend([incident], policies, DAY1, DAY3, now=NOW)

        assert sum(p.total_incidents for p in points) == 0

    def test_single_day_range(self, aggregator, policies, make_incident):
        points = aggregator.build_trend([make_incident()], policies, DAY1, DAY1, now=NOW)

        assert len(points) == 1

    def test_inverted_range_is_empty(self, aggregator, policies, make_incident):
        assert aggregator.build_trend([make_incident()], policies, DAY3, DAY1, now=NOW) == []

    def test_unknown_viewer_timezone(self, aggregator, policies):
        with pytest.raises(ValidationException):
            aggregator.build_trend([], policies, DAY1, DAY3, timezone_name="Atlantis/Central", now=NOW)

    def test_team_filter(self, aggregator, policies, make_incident):
        incidents = [make_incident(), make_incident(team_id="legacy")]

        points = aggregator.build_trend(incidents, policies, DAY1, DAY1, team_id="legacy", now=NOW)

        assert points[0].total_incidents == 1


class TestTeamTrends:
    def test_one_series_per_team_by_name(self, aggregator, policies, make_incident):
        incidents = [make_incident(), make_incident(team_id="legacy"), make_incident(team_id="search")]
        names = {"platform": "Platform", "legacy": "Legacy", "billing": "Billing"}

        trends = aggregator.build_team_trends(
            incidents, policies, DAY1, DAY2, team_names=names, now=NOW,
        )

        assert [t.team_name for t in trends] == ["Billing", "Legacy", "Platform", "search"]
        assert [len(t.points) for t in trends] == [2, 2, 2, 2]
        assert trends[0].points[0].total_incidents == 0
        assert trends[2].points[0].total_incidents == 1


class TestSummarizeTrend:
    def test_totals_and_mean_compliance(self, aggregator, policies, make_incident):
        incident = make_incident(
            status="closed",
            first_response_at=T0 + timedelta(minutes=10),
            closed_at=datetime(2024, 1, 16, 12, 0, tzinfo=UTC),
        )
        points = aggregator.build_trend([incident, make_incident()], policies, DAY1, DAY3, now=NOW)

        summary = SLAAggregator.summarize_trend(points, DAY1, DAY3)

        assert summary.total_incidents == 2
        assert summary.total_closed == 1
        assert summary.avg_response_compliance == 100.0
        assert summary.avg_resolution_compliance == pytest.approx(66.7)

    def test_empty_series(self):
        summary = SLAAggregator.summarize_trend([], DAY3, DAY1)

        assert summary.total_incidents == 0
        assert summary.avg_response_compliance == 100.0
