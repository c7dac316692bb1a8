"""
SLA Domain Entities
====================

Pure Python domain entities for SLA tracking.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Tuple

from oncall_sla.config import (
    Severity, IncidentStatus, SLAClock, SLAHealth, FindingType,
)


def _iso(moment: Optional[datetime]) -> Optional[str]:
    """Serialize an instant as UTC with an explicit offset."""
    if moment is None:
        return None
    return moment.astimezone(timezone.utc).isoformat()


@dataclass(frozen=True)
class IncidentTimeline:
    """
    Incident as seen by the SLA engine.

    Read-only snapshot owned by incident management; the engine never
    mutates it. ``created_at`` starts both SLA clocks.
    """

    id: str
    created_at: datetime
    severity: Severity
    status: IncidentStatus = IncidentStatus.NEW
    team_id: Optional[str] = None
    first_response_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    # Breaches already persisted by an earlier scan
    response_breach_recorded: bool = False
    resolution_breach_recorded: bool = False

    def __post_init__(self):
        """Coerce enum values and reject naive instants."""
        object.__setattr__(self, "severity", Severity(self.severity))
        object.__setattr__(self, "status", IncidentStatus(self.status))
        for name in ("created_at", "first_response_at", "closed_at"):
            value = getattr(self, name)
            if value is not None and (value.tzinfo is None or value.utcoffset() is None):
                raise ValueError(f"{name} must be timezone-aware")

    @property
    def is_closed(self) -> bool:
        return self.status == IncidentStatus.CLOSED

    @property
    def is_open(self) -> bool:
        return not self.is_closed


@dataclass(frozen=True)
class NotTracked:
    """
    Explicit "no SLA applies" result.

    Callers must branch on it; it is never a healthy status.
    """
    reason: str
    incident_id: Optional[str] = None

    NO_POLICY = "no_policy"
    DISABLED = "disabled"


@dataclass(frozen=True)
class SLAStatus:
    """
    Live SLA status of one incident.

    Percentages are the raw elapsed/target ratio and may exceed 100; clamping
    for progress bars is left to the presentation layer.
    """

    incident_id: str

    # Response clock
    response_deadline: datetime
    response_target_minutes: int
    response_elapsed_minutes: int
    response_time_remaining_minutes: int
    response_time_percentage: float
    is_response_breached: bool
    is_response_at_risk: bool
    response_clock_stopped: bool

    # Resolution clock
    resolution_deadline: datetime
    resolution_target_minutes: int
    resolution_elapsed_minutes: int
    resolution_time_remaining_minutes: int
    resolution_time_percentage: float
    is_resolution_breached: bool
    is_resolution_at_risk: bool
    resolution_clock_stopped: bool

    @property
    def is_any_breached(self) -> bool:
        return self.is_response_breached or self.is_resolution_breached

    @property
    def is_any_at_risk(self) -> bool:
        return self.is_response_at_risk or self.is_resolution_at_risk

    @property
    def health(self) -> SLAHealth:
        """Dashboard bucket: breached wins over at-risk, which wins over healthy."""
        if self.is_any_breached:
            return SLAHealth.BREACHED
        if self.is_any_at_risk:
            return SLAHealth.AT_RISK
        return SLAHealth.HEALTHY

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "incident_id": self.incident_id,
            "response": {
                "deadline": _iso(self.response_deadline),
                "target_minutes": self.response_target_minutes,
                "elapsed_minutes": self.response_elapsed_minutes,
                "remaining_minutes": self.response_time_remaining_minutes,
                "percentage": self.response_time_percentage,
                "is_breached": self.is_response_breached,
                "is_at_risk": self.is_response_at_risk,
                "clock_stopped": self.response_clock_stopped,
            },
            "resolution": {
                "deadline": _iso(self.resolution_deadline),
                "target_minutes": self.resolution_target_minutes,
                "elapsed_minutes": self.resolution_elapsed_minutes,
                "remaining_minutes": self.resolution_time_remaining_minutes,
                "percentage": self.resolution_time_percentage,
                "is_breached": self.is_resolution_breached,
                "is_at_risk": self.is_resolution_at_risk,
                "clock_stopped": self.resolution_clock_stopped,
            },
            "health": self.health.value,
        }


@dataclass(frozen=True)
class TeamCompliance:
    """One row of the per-team breakdown."""
    team_id: str
    team_name: str
    open_incidents: int
    closed_incidents: int
    response_breaches: int
    resolution_breaches: int
    response_compliance: float
    resolution_compliance: float
    tracked: bool = True


@dataclass
class SLAAggregate:
    """
    Dashboard summary for one query window.

    ``breached_count + at_risk_count + healthy_count == total_open_incidents``;
    open incidents without an active policy are counted in
    ``untracked_open_incidents`` only.
    """

    total_open_incidents: int
    breached_count: int
    at_risk_count: int
    healthy_count: int
    untracked_open_incidents: int

    response_compliance: float
    resolution_compliance: float
    avg_response_time_minutes: Optional[int]
    avg_resolution_time_minutes: Optional[int]

    total_closed: int
    response_breaches: int
    resolution_breaches: int

    team_breakdown: List[TeamCompliance] = field(default_factory=list)
    at_risk_incidents: List[Tuple[IncidentTimeline, SLAStatus]] = field(default_factory=list)
    breached_incidents: List[Tuple[IncidentTimeline, SLAStatus]] = field(default_factory=list)


@dataclass(frozen=True)
class TrendPoint:
    """One calendar day of SLA metrics."""
    date: date
    total_incidents: int = 0
    closed_incidents: int = 0
    response_compliance: float = 100.0
    resolution_compliance: float = 100.0
    avg_response_time_minutes: Optional[int] = None
    avg_resolution_time_minutes: Optional[int] = None
    by_severity: Dict[str, int] = field(
        default_factory=lambda: {severity.value: 0 for severity in Severity}
    )


@dataclass(frozen=True)
class TrendSummary:
    """Totals over a trend range."""
    start_date: date
    end_date: date
    total_incidents: int
    total_closed: int
    avg_response_compliance: float
    avg_resolution_compliance: float


@dataclass(frozen=True)
class TeamTrend:
    """Trend series of a single team."""
    team_id: str
    team_name: str
    points: List[TrendPoint]


@dataclass(frozen=True)
class SLAFinding:
    """
    A clock that crossed a threshold during a breach scan.

    Delivering the notification is the caller's job.
    """
    incident_id: str
    team_id: Optional[str]
    clock: SLAClock
    finding_type: FindingType
    deadline: datetime
    remaining_minutes: int
    percentage: float

    def to_dict(self) -> dict:
        return {
            "incident_id": self.incident_id,
            "team_id": self.team_id,
            "clock": self.clock.value,
            "type": self.finding_type.value,
            "deadline": _iso(self.deadline),
            "remaining_minutes": self.remaining_minutes,
            "percentage": self.percentage,
        }


@dataclass(frozen=True)
class SLAScanReport:
    """Outcome of one breach scan."""
    checked: int
    breaches: int
    at_risk: int
    findings: List[SLAFinding]
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "checked": self.checked,
            "breaches": self.breaches,
            "at_risk": self.at_risk,
            "findings": [finding.to_dict() for finding in self.findings],
            "timestamp": _iso(self.timestamp),
        }
