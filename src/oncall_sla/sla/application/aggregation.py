"""
SLA Aggregation
===============

Combines per-incident SLA statuses into dashboard summaries and daily
trend series.

Counting happens in :class:`SLACounters`, whose ``merge`` is associative and
commutative, so partial results computed over disjoint incident batches can
be combined in any order.
"""

from dataclasses import dataclass, fields
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from oncall_sla.config import Severity, SLAHealth
from oncall_sla.core import ValidationException
from oncall_sla.shared.infrastructure.logging import get_logger, log_latency
from oncall_sla.sla.domain import (
    IncidentTimeline,
    NotTracked,
    SLAAggregate,
    SLAStatus,
    SLAStatusEvaluator,
    TeamCompliance,
    TeamSLAPolicy,
    TeamTrend,
    TrendPoint,
    TrendSummary,
)

logger = get_logger(__name__)

PolicyMap = Mapping[str, TeamSLAPolicy]


def compliance_percentage(applicable: int, breaches: int) -> float:
    """Share of applicable incidents that did not breach; 100 when none apply."""
    if applicable <= 0:
        return 100.0
    return round((applicable - breaches) / applicable * 100, 1)


def _mean_minutes(total: int, samples: int) -> Optional[int]:
    if samples == 0:
        return None
    return round(total / samples)


@dataclass
class SLACounters:
    """Mergeable tallies behind summaries, team rows and trend points."""

    open_tracked: int = 0
    breached: int = 0
    at_risk: int = 0
    healthy: int = 0
    untracked_open: int = 0

    closed_tracked: int = 0
    response_breaches: int = 0
    resolution_breaches: int = 0

    response_minutes: int = 0
    response_samples: int = 0
    resolution_minutes: int = 0
    resolution_samples: int = 0

    def record_open(self, status: SLAStatus | NotTracked) -> None:
        if isinstance(status, NotTracked):
            self.untracked_open += 1
            return
        self.open_tracked += 1
        health = status.health
        if health == SLAHealth.BREACHED:
            self.breached += 1
        elif health == SLAHealth.AT_RISK:
            self.at_risk += 1
        else:
            self.healthy += 1

    def record_closed(self, status: SLAStatus) -> None:
        self.closed_tracked += 1
        if status.is_response_breached:
            self.response_breaches += 1
        if status.is_resolution_breached:
            self.resolution_breaches += 1

    def record_elapsed(self, incident: IncidentTimeline, status: SLAStatus) -> None:
        """Sample event times for the averages; only events that happened count."""
        if incident.first_response_at is not None:
            self.response_minutes += status.response_elapsed_minutes
            self.response_samples += 1
        if incident.closed_at is not None:
            self.resolution_minutes += status.resolution_elapsed_minutes
            self.resolution_samples += 1

    def merge(self, other: "SLACounters") -> "SLACounters":
        return SLACounters(**{
            f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)
        })

    @property
    def response_compliance(self) -> float:
        return compliance_percentage(self.closed_tracked, self.response_breaches)

    @property
    def resolution_compliance(self) -> float:
        return compliance_percentage(self.closed_tracked, self.resolution_breaches)

    @property
    def avg_response_minutes(self) -> Optional[int]:
        return _mean_minutes(self.response_minutes, self.response_samples)

    @property
    def avg_resolution_minutes(self) -> Optional[int]:
        return _mean_minutes(self.resolution_minutes, self.resolution_samples)


def viewer_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        raise ValidationException(f"Unknown timezone: {name!r}", {"timezone": name})


def _policy_for(incident: IncidentTimeline, policies: PolicyMap) -> Optional[TeamSLAPolicy]:
    if incident.team_id is None:
        return None
    return policies.get(incident.team_id)


def _counts_as_closed(incident: IncidentTimeline) -> bool:
    """A closed status without a close time is left out of closed tallies."""
    return incident.is_closed and incident.closed_at is not None


def _date_range(start_date: date, end_date: date) -> List[date]:
    return [start_date + timedelta(days=offset) for offset in range((end_date - start_date).days + 1)]


class SLAAggregator:
    """
    Dashboard-level SLA aggregation.

    Every method is a pure function of its arguments; incidents and policies
    are snapshots loaded by the caller.
    """

    def summarize(
        self,
        incidents: Iterable[IncidentTimeline],
        policies: PolicyMap,
        now: datetime,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        team_id: Optional[str] = None,
        team_names: Optional[Mapping[str, str]] = None,
        include_details: bool = False,
    ) -> SLAAggregate:
        """
        Summarize incidents created within ``[start, end]``.

        Args:
            incidents: Incident snapshots
            policies: Team policies keyed by team id
            now: Current instant, used for clocks that are still running
            start: Earliest creation time to include (unbounded when None)
            end: Latest creation time to include (defaults to ``now``)
            team_id: Restrict the summary to one team
            team_names: Display names for the team breakdown
            include_details: Attach the at-risk and breached incidents

        Returns:
            SLAAggregate for the window
        """
        end = end or now
        team_names = team_names or {}
        totals = SLACounters()
        per_team: Dict[str, SLACounters] = {}
        at_risk_incidents = []
        breached_incidents = []

        with log_latency(logger, "sla_summary", team_id=team_id):
            for incident in incidents:
                if team_id is not None and incident.team_id != team_id:
                    continue
                if (start is not None and incident.created_at < start) or incident.created_at > end:
                    continue

                status = SLAStatusEvaluator.evaluate(incident, _policy_for(incident, policies), now)
                counters = SLACounters()

                if incident.is_open:
                    counters.record_open(status)
                if isinstance(status, SLAStatus):
                    if _counts_as_closed(incident):
                        counters.record_closed(status)
                    counters.record_elapsed(incident, status)

                    if include_details and incident.is_open:
                        if status.health == SLAHealth.BREACHED:
                            breached_incidents.append((incident, status))
                        elif status.health == SLAHealth.AT_RISK:
                            at_risk_incidents.append((incident, status))

                totals = totals.merge(counters)
                if incident.team_id is not None:
                    per_team[incident.team_id] = per_team.get(incident.team_id, SLACounters()).merge(counters)

        breakdown = [
            TeamCompliance(
                team_id=tid,
                team_name=team_names.get(tid, tid),
                open_incidents=counters.open_tracked + counters.untracked_open,
                closed_incidents=counters.closed_tracked,
                response_breaches=counters.response_breaches,
                resolution_breaches=counters.resolution_breaches,
                response_compliance=counters.response_compliance,
                resolution_compliance=counters.resolution_compliance,
                tracked=tid in policies and policies[tid].enabled,
            )
            for tid, counters in per_team.items()
        ]
        breakdown.sort(key=lambda row: (row.team_name, row.team_id))

        logger.debug(
            "SLA summary computed",
            extra={
                "team_id": team_id,
                "open_incidents": totals.open_tracked,
                "closed_incidents": totals.closed_tracked,
            },
        )

        return SLAAggregate(
            total_open_incidents=totals.open_tracked,
            breached_count=totals.breached,
            at_risk_count=totals.at_risk,
            healthy_count=totals.healthy,
            untracked_open_incidents=totals.untracked_open,
            response_compliance=totals.response_compliance,
            resolution_compliance=totals.resolution_compliance,
            avg_response_time_minutes=totals.avg_response_minutes,
            avg_resolution_time_minutes=totals.avg_resolution_minutes,
            total_closed=totals.closed_tracked,
            response_breaches=totals.response_breaches,
            resolution_breaches=totals.resolution_breaches,
            team_breakdown=breakdown,
            at_risk_incidents=at_risk_incidents,
            breached_incidents=breached_incidents,
        )

    def build_trend(
        self,
        incidents: Iterable[IncidentTimeline],
        policies: PolicyMap,
        start_date: date,
        end_date: date,
        timezone_name: str = "UTC",
        team_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[TrendPoint]:
        """
        One TrendPoint per calendar day of ``[start_date, end_date]``.

        Volume and severity counts go to the day the incident was created;
        closed counts, compliance and average times go to the day it was
        closed. Days are calendar days of ``timezone_name``. Days without
        incidents keep zero volume and 100% compliance.
        """
        if start_date > end_date:
            logger.warning(
                "Trend range is inverted, returning an empty series",
                extra={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
            return []

        zone = viewer_zone(timezone_name)
        now = now or datetime.now(timezone.utc)
        days = _date_range(start_date, end_date)
        created = {day: 0 for day in days}
        by_severity = {day: {severity.value: 0 for severity in Severity} for day in days}
        closed = {day: 0 for day in days}
        counters = {day: SLACounters() for day in days}

        with log_latency(logger, "sla_trend", team_id=team_id, days=len(days)):
            for incident in incidents:
                if team_id is not None and incident.team_id != team_id:
                    continue

                created_day = incident.created_at.astimezone(zone).date()
                if created_day in created:
                    created[created_day] += 1
                    by_severity[created_day][incident.severity.value] += 1

                if not _counts_as_closed(incident):
                    continue
                closed_day = incident.closed_at.astimezone(zone).date()
                if closed_day not in closed:
                    continue
                closed[closed_day] += 1

                status = SLAStatusEvaluator.evaluate(incident, _policy_for(incident, policies), now)
                if isinstance(status, SLAStatus):
                    counters[closed_day].record_closed(status)
                    counters[closed_day].record_elapsed(incident, status)

        return [
            TrendPoint(
                date=day,
                total_incidents=created[day],
                closed_incidents=closed[day],
                response_compliance=counters[day].response_compliance,
                resolution_compliance=counters[day].resolution_compliance,
                avg_response_time_minutes=counters[day].avg_response_minutes,
                avg_resolution_time_minutes=counters[day].avg_resolution_minutes,
                by_severity=by_severity[day],
            )
            for day in days
        ]

    def build_team_trends(
        self,
        incidents: Iterable[IncidentTimeline],
        policies: PolicyMap,
        start_date: date,
        end_date: date,
        timezone_name: str = "UTC",
        team_names: Optional[Mapping[str, str]] = None,
        now: Optional[datetime] = None,
    ) -> List[TeamTrend]:
        """Per-team trend series, ordered by team name."""
        incidents = list(incidents)
        team_names = team_names or {}
        team_ids = set(team_names) | {i.team_id for i in incidents if i.team_id is not None}
        ordered = sorted(team_ids, key=lambda tid: (team_names.get(tid, tid), tid))

        return [
            TeamTrend(
                team_id=tid,
                team_name=team_names.get(tid, tid),
                points=self.build_trend(
                    incidents, policies, start_date, end_date,
                    timezone_name=timezone_name, team_id=tid, now=now,
                ),
            )
            for tid in ordered
        ]

    @staticmethod
    def summarize_trend(points: List[TrendPoint], start_date: date, end_date: date) -> TrendSummary:
        """Range totals plus the mean of the daily compliance values."""
        if points:
            avg_response = round(sum(p.response_compliance for p in points) / len(points), 1)
            avg_resolution = round(sum(p.resolution_compliance for p in points) / len(points), 1)
        else:
            avg_response = avg_resolution = 100.0

        return TrendSummary(
            start_date=start_date,
            end_date=end_date,
            total_incidents=sum(p.total_incidents for p in points),
            total_closed=sum(p.closed_incidents for p in points),
            avg_response_compliance=avg_response,
            avg_resolution_compliance=avg_resolution,
        )
