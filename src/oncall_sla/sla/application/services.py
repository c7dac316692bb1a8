"""
SLA Application Services
=========================

Application services orchestrate domain logic over caller-supplied
snapshots.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Policies come from an injected provider, incidents
  are passed in; no service reaches into ambient storage
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Mapping, Optional

from oncall_sla.config import FindingType, SLAClock, get_settings
from oncall_sla.shared.infrastructure.logging import get_logger
from oncall_sla.sla.application.aggregation import SLAAggregator, viewer_zone
from oncall_sla.sla.domain import (
    DeadlineResolver,
    IncidentTimeline,
    NotTracked,
    SLAAggregate,
    SLADeadlines,
    SLAFinding,
    SLAScanReport,
    SLAStatus,
    SLAStatusEvaluator,
    TeamSLAPolicy,
    TeamTrend,
    TrendPoint,
    TrendSummary,
    format_minutes,
)

logger = get_logger(__name__)


# ========== Provider Interface (Dependency Inversion) ==========

class IPolicyProvider(ABC):
    """Interface for team SLA policy access."""

    @abstractmethod
    def get_policy(self, team_id: str) -> Optional[TeamSLAPolicy]:
        """Get a team's policy, or None when the team has none."""

    @abstractmethod
    def get_policies(self) -> Dict[str, TeamSLAPolicy]:
        """Snapshot of every configured policy keyed by team id."""

    def get_team_names(self) -> Dict[str, str]:
        """Display names keyed by team id (empty when unknown)."""
        return {}


# ========== Breach Scanner ==========

class SLABreachScanner:
    """
    Finds clocks that newly crossed a threshold on open incidents.

    Run periodically by the caller. A running clock that is breached and has
    no breach recorded yields a ``breach`` finding; one that is at risk and
    not yet recorded as breached yields a ``warning``. Persisting the breach
    flag and notifying people is left to the caller.
    """

    def scan(
        self,
        incidents: Iterable[IncidentTimeline],
        policies: Mapping[str, TeamSLAPolicy],
        now: datetime,
    ) -> SLAScanReport:
        checked = 0
        findings: List[SLAFinding] = []

        for incident in incidents:
            if incident.is_closed or incident.team_id is None:
                continue
            status = SLAStatusEvaluator.evaluate(incident, policies.get(incident.team_id), now)
            if isinstance(status, NotTracked):
                continue
            checked += 1

            if incident.first_response_at is None:
                finding = self._check_clock(
                    incident, SLAClock.RESPONSE,
                    breached=status.is_response_breached,
                    at_risk=status.is_response_at_risk,
                    recorded=incident.response_breach_recorded,
                    deadline=status.response_deadline,
                    remaining=status.response_time_remaining_minutes,
                    percentage=status.response_time_percentage,
                )
                if finding:
                    findings.append(finding)

            if incident.closed_at is None:
                finding = self._check_clock(
                    incident, SLAClock.RESOLUTION,
                    breached=status.is_resolution_breached,
                    at_risk=status.is_resolution_at_risk,
                    recorded=incident.resolution_breach_recorded,
                    deadline=status.resolution_deadline,
                    remaining=status.resolution_time_remaining_minutes,
                    percentage=status.resolution_time_percentage,
                )
                if finding:
                    findings.append(finding)

        report = SLAScanReport(
            checked=checked,
            breaches=sum(1 for f in findings if f.finding_type == FindingType.BREACH),
            at_risk=sum(1 for f in findings if f.finding_type == FindingType.WARNING),
            findings=findings,
            timestamp=now,
        )
        logger.info(
            "SLA scan complete",
            extra={"checked": report.checked, "breaches": report.breaches, "at_risk": report.at_risk},
        )
        return report

    @staticmethod
    def _check_clock(
        incident: IncidentTimeline,
        clock: SLAClock,
        breached: bool,
        at_risk: bool,
        recorded: bool,
        deadline: datetime,
        remaining: int,
        percentage: float,
    ) -> Optional[SLAFinding]:
        if recorded:
            return None

        if breached:
            finding_type = FindingType.BREACH
            logger.warning(
                f"{clock.value.capitalize()} SLA breached for incident {incident.id}",
                extra={"incident_id": incident.id, "team_id": incident.team_id, "clock": clock.value,
                       "overdue": format_minutes(remaining)},
            )
        elif at_risk:
            finding_type = FindingType.WARNING
            logger.info(
                f"{clock.value.capitalize()} SLA at risk for incident {incident.id}",
                extra={"incident_id": incident.id, "team_id": incident.team_id, "clock": clock.value,
                       "remaining": format_minutes(remaining)},
            )
        else:
            return None

        return SLAFinding(
            incident_id=incident.id,
            team_id=incident.team_id,
            clock=clock,
            finding_type=finding_type,
            deadline=deadline,
            remaining_minutes=remaining,
            percentage=percentage,
        )


# ========== Application Service ==========

class SLAService:
    """
    Facade the dashboard/API layer calls into.

    Policies come from the injected provider as a fresh snapshot per call;
    incidents are supplied by the caller on every refresh.
    """

    def __init__(
        self,
        policy_provider: IPolicyProvider,
        aggregator: Optional[SLAAggregator] = None,
        scanner: Optional[SLABreachScanner] = None,
    ):
        self._policy_provider = policy_provider
        self._aggregator = aggregator or SLAAggregator()
        self._scanner = scanner or SLABreachScanner()

    @staticmethod
    def _now(now: Optional[datetime]) -> datetime:
        return now or datetime.now(timezone.utc)

    def _policy(self, incident: IncidentTimeline) -> Optional[TeamSLAPolicy]:
        if incident.team_id is None:
            return None
        return self._policy_provider.get_policy(incident.team_id)

    def evaluate(self, incident: IncidentTimeline, now: Optional[datetime] = None) -> SLAStatus | NotTracked:
        """Live SLA status of one incident."""
        return SLAStatusEvaluator.evaluate(incident, self._policy(incident), self._now(now))

    def deadlines(self, incident: IncidentTimeline) -> Optional[SLADeadlines]:
        """Deadlines to stamp on a new incident, None when it is not tracked."""
        policy = self._policy(incident)
        if policy is None or not policy.enabled:
            return None
        return DeadlineResolver.resolve_deadlines(incident, policy)

    def summarize(
        self,
        incidents: Iterable[IncidentTimeline],
        now: Optional[datetime] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        team_id: Optional[str] = None,
        include_details: bool = False,
    ) -> SLAAggregate:
        return self._aggregator.summarize(
            incidents,
            self._policy_provider.get_policies(),
            self._now(now),
            start=start,
            end=end,
            team_id=team_id,
            team_names=self._policy_provider.get_team_names(),
            include_details=include_details,
        )

    def _trend_range(
        self,
        start_date: Optional[date],
        end_date: Optional[date],
        now: datetime,
        timezone_name: str,
    ) -> tuple[date, date]:
        if end_date is None:
            end_date = now.astimezone(viewer_zone(timezone_name)).date()
        if start_date is None:
            start_date = end_date - timedelta(days=get_settings().trend_default_days - 1)
        return start_date, end_date

    def trends(
        self,
        incidents: Iterable[IncidentTimeline],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        timezone_name: Optional[str] = None,
        team_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> tuple[List[TrendPoint], TrendSummary]:
        """Daily trend series plus its summary; defaults to the last N days."""
        now = self._now(now)
        timezone_name = timezone_name or get_settings().default_timezone
        start_date, end_date = self._trend_range(start_date, end_date, now, timezone_name)
        points = self._aggregator.build_trend(
            incidents,
            self._policy_provider.get_policies(),
            start_date,
            end_date,
            timezone_name=timezone_name,
            team_id=team_id,
            now=now,
        )
        return points, SLAAggregator.summarize_trend(points, start_date, end_date)

    def team_trends(
        self,
        incidents: Iterable[IncidentTimeline],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        timezone_name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[TeamTrend]:
        now = self._now(now)
        timezone_name = timezone_name or get_settings().default_timezone
        start_date, end_date = self._trend_range(start_date, end_date, now, timezone_name)
        return self._aggregator.build_team_trends(
            incidents,
            self._policy_provider.get_policies(),
            start_date,
            end_date,
            timezone_name=timezone_name,
            team_names=self._policy_provider.get_team_names(),
            now=now,
        )

    def scan(self, incidents: Iterable[IncidentTimeline], now: Optional[datetime] = None) -> SLAScanReport:
        return self._scanner.scan(incidents, self._policy_provider.get_policies(), self._now(now))
