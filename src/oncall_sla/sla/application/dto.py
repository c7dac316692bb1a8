"""
SLA Application DTOs
=====================

Data Transfer Objects between the engine and the dashboard/API layer.

These Pydantic models handle parsing of stored settings and incident rows
and serialization of engine results. Every instant is serialized in UTC with
an explicit offset.
"""

from dataclasses import asdict
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from oncall_sla.sla.domain import (
    IncidentTimeline,
    SLAAggregate,
    SLAStatus,
    TeamCompliance,
    TeamSLAPolicy,
    TrendPoint,
    TrendSummary,
    validate_policy,
)


# ========== Type Aliases for Literals ==========
SeverityStr = Literal["critical", "high", "medium", "low"]
IncidentStatusStr = Literal["new", "in_progress", "closed"]
SLAHealthStr = Literal["healthy", "at_risk", "breached"]


def _utc(moment: Optional[datetime]) -> Optional[datetime]:
    if moment is None:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _clamp_percentage(value: float) -> float:
    return max(0.0, min(100.0, value))


# ========== Request DTOs ==========

class TeamSLASettingsDTO(BaseModel):
    """
    Stored settings record of a team, one column per target.

    Business hours travel as ``"HH:MM"`` strings and business days either as
    a list or as the comma separated string the settings table keeps.
    """
    team_id: Optional[str] = None
    response_time_critical: int
    response_time_high: int
    response_time_medium: int
    response_time_low: int
    resolution_time_critical: int
    resolution_time_high: int
    resolution_time_medium: int
    resolution_time_low: int
    business_hours_only: bool = False
    business_hours_start: str = "09:00"
    business_hours_end: str = "17:00"
    business_days: List[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])
    timezone: str = "UTC"
    enabled: bool = True

    @field_validator("business_days", mode="before")
    @classmethod
    def split_business_days(cls, v: Any) -> Any:
        """Accept ``"1,2,3,4,5"`` as stored in the settings table."""
        if isinstance(v, str):
            return [int(day) for day in v.split(",") if day.strip()]
        return v

    def to_domain(self) -> TeamSLAPolicy:
        """
        Convert to a validated policy.

        Raises:
            InvalidPolicy: when any field is out of range
        """
        return validate_policy({
            "team_id": self.team_id,
            "response_targets": {
                "critical": self.response_time_critical,
                "high": self.response_time_high,
                "medium": self.response_time_medium,
                "low": self.response_time_low,
            },
            "resolution_targets": {
                "critical": self.resolution_time_critical,
                "high": self.resolution_time_high,
                "medium": self.resolution_time_medium,
                "low": self.resolution_time_low,
            },
            "business_hours_only": self.business_hours_only,
            "business_window": {"start": self.business_hours_start, "end": self.business_hours_end},
            "business_days": frozenset(self.business_days),
            "timezone": self.timezone,
            "enabled": self.enabled,
        })

    @classmethod
    def from_domain(cls, policy: TeamSLAPolicy) -> "TeamSLASettingsDTO":
        """Create from a domain policy."""
        return cls(
            team_id=policy.team_id,
            response_time_critical=policy.response_targets.critical,
            response_time_high=policy.response_targets.high,
            response_time_medium=policy.response_targets.medium,
            response_time_low=policy.response_targets.low,
            resolution_time_critical=policy.resolution_targets.critical,
            resolution_time_high=policy.resolution_targets.high,
            resolution_time_medium=policy.resolution_targets.medium,
            resolution_time_low=policy.resolution_targets.low,
            business_hours_only=policy.business_hours_only,
            business_hours_start=policy.business_window.start,
            business_hours_end=policy.business_window.end,
            business_days=sorted(policy.business_days),
            timezone=policy.timezone,
            enabled=policy.enabled,
        )


class IncidentDTO(BaseModel):
    """Incident row as loaded by the caller. Naive instants are read as UTC."""
    id: str = Field(..., min_length=1)
    team_id: Optional[str] = None
    severity: SeverityStr
    status: IncidentStatusStr = "new"
    created_at: datetime
    first_response_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    sla_response_breached: bool = False
    sla_resolution_breached: bool = False

    @field_validator("created_at", "first_response_at", "closed_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _utc(v)

    def to_domain(self) -> IncidentTimeline:
        """Convert to domain entity."""
        return IncidentTimeline(
            id=self.id,
            team_id=self.team_id,
            severity=self.severity,
            status=self.status,
            created_at=self.created_at,
            first_response_at=self.first_response_at,
            closed_at=self.closed_at,
            response_breach_recorded=self.sla_response_breached,
            resolution_breach_recorded=self.sla_resolution_breached,
        )


# ========== Response DTOs ==========

class SLAClockResponse(BaseModel):
    """One SLA clock of an incident."""
    deadline: datetime
    target_minutes: int
    elapsed_minutes: int
    remaining_minutes: int = Field(..., description="Negative once breached")
    percentage: float = Field(..., description="Elapsed share of the target, uncapped")
    progress_percent: float = Field(..., description="Percentage clamped to [0, 100] for progress bars")
    is_breached: bool
    is_at_risk: bool
    clock_stopped: bool

    @field_validator("deadline")
    @classmethod
    def deadline_in_utc(cls, v: datetime) -> datetime:
        return _utc(v)


class SLAStatusResponse(BaseModel):
    """SLA status of an incident, or the not-tracked marker."""
    incident_id: str
    tracked: bool = True
    reason: Optional[str] = None
    health: Optional[SLAHealthStr] = None
    response: Optional[SLAClockResponse] = None
    resolution: Optional[SLAClockResponse] = None

    @classmethod
    def from_domain(cls, incident_id: str, status: Union[SLAStatus, Any]) -> "SLAStatusResponse":
        if not isinstance(status, SLAStatus):
            return cls(incident_id=incident_id, tracked=False, reason=getattr(status, "reason", None))
        return cls(
            incident_id=incident_id,
            health=status.health.value,
            response=SLAClockResponse(
                deadline=status.response_deadline,
                target_minutes=status.response_target_minutes,
                elapsed_minutes=status.response_elapsed_minutes,
                remaining_minutes=status.response_time_remaining_minutes,
                percentage=status.response_time_percentage,
                progress_percent=_clamp_percentage(status.response_time_percentage),
                is_breached=status.is_response_breached,
                is_at_risk=status.is_response_at_risk,
                clock_stopped=status.response_clock_stopped,
            ),
            resolution=SLAClockResponse(
                deadline=status.resolution_deadline,
                target_minutes=status.resolution_target_minutes,
                elapsed_minutes=status.resolution_elapsed_minutes,
                remaining_minutes=status.resolution_time_remaining_minutes,
                percentage=status.resolution_time_percentage,
                progress_percent=_clamp_percentage(status.resolution_time_percentage),
                is_breached=status.is_resolution_breached,
                is_at_risk=status.is_resolution_at_risk,
                clock_stopped=status.resolution_clock_stopped,
            ),
        )


class TeamBreakdownResponse(BaseModel):
    """Per-team compliance row."""
    team_id: str
    team_name: str
    open_incidents: int
    closed_incidents: int
    response_breaches: int
    resolution_breaches: int
    response_compliance: float
    resolution_compliance: float
    tracked: bool

    @classmethod
    def from_domain(cls, row: TeamCompliance) -> "TeamBreakdownResponse":
        return cls(**asdict(row))


class SLASummaryResponse(BaseModel):
    """Dashboard summary for one query window."""
    total_open_incidents: int
    at_risk_count: int
    breached_count: int
    healthy_count: int
    untracked_open_incidents: int
    response_compliance: float
    resolution_compliance: float
    avg_response_time_minutes: Optional[int]
    avg_resolution_time_minutes: Optional[int]
    total_closed: int
    response_breaches: int
    resolution_breaches: int
    team_breakdown: List[TeamBreakdownResponse] = Field(default_factory=list)
    at_risk_incidents: List[SLAStatusResponse] = Field(default_factory=list)
    breached_incidents: List[SLAStatusResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, aggregate: SLAAggregate) -> "SLASummaryResponse":
        return cls(
            total_open_incidents=aggregate.total_open_incidents,
            at_risk_count=aggregate.at_risk_count,
            breached_count=aggregate.breached_count,
            healthy_count=aggregate.healthy_count,
            untracked_open_incidents=aggregate.untracked_open_incidents,
            response_compliance=aggregate.response_compliance,
            resolution_compliance=aggregate.resolution_compliance,
            avg_response_time_minutes=aggregate.avg_response_time_minutes,
            avg_resolution_time_minutes=aggregate.avg_resolution_time_minutes,
            total_closed=aggregate.total_closed,
            response_breaches=aggregate.response_breaches,
            resolution_breaches=aggregate.resolution_breaches,
            team_breakdown=[TeamBreakdownResponse.from_domain(r) for r in aggregate.team_breakdown],
            at_risk_incidents=[
                SLAStatusResponse.from_domain(incident.id, status)
                for incident, status in aggregate.at_risk_incidents
            ],
            breached_incidents=[
                SLAStatusResponse.from_domain(incident.id, status)
                for incident, status in aggregate.breached_incidents
            ],
        )


class TrendPointResponse(BaseModel):
    """One day of the trend chart."""
    date: date
    total_incidents: int
    closed_incidents: int
    response_compliance: float
    resolution_compliance: float
    avg_response_time_minutes: Optional[int]
    avg_resolution_time_minutes: Optional[int]
    by_severity: Dict[str, int]

    @classmethod
    def from_domain(cls, point: TrendPoint) -> "TrendPointResponse":
        return cls(**asdict(point))


class TrendSummaryResponse(BaseModel):
    start_date: date
    end_date: date
    total_incidents: int
    total_closed: int
    avg_response_compliance: float
    avg_resolution_compliance: float


class TrendResponse(BaseModel):
    """Trend chart payload."""
    summary: TrendSummaryResponse
    trends: List[TrendPointResponse]

    @classmethod
    def from_domain(cls, points: List[TrendPoint], summary: TrendSummary) -> "TrendResponse":
        return cls(
            summary=TrendSummaryResponse(**asdict(summary)),
            trends=[TrendPointResponse.from_domain(point) for point in points],
        )
