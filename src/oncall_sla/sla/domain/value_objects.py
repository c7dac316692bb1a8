"""
SLA Value Objects
==================

Immutable value objects for the SLA domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared between threads.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, FrozenSet, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from oncall_sla.config import (
    Severity,
    DEFAULT_RESPONSE_TARGETS, DEFAULT_RESOLUTION_TARGETS,
    DEFAULT_BUSINESS_HOURS_START, DEFAULT_BUSINESS_HOURS_END,
    DEFAULT_BUSINESS_DAYS, DEFAULT_POLICY_TIMEZONE, VALID_WEEKDAYS,
)
from oncall_sla.core import InvalidPolicy

MINUTES_PER_DAY = 24 * 60


def parse_clock_time(value: str) -> int:
    """Parse ``"HH:MM"`` into minutes after midnight."""
    try:
        hours_str, minutes_str = value.strip().split(":")
        hours, minutes = int(hours_str), int(minutes_str)
    except (AttributeError, ValueError):
        raise ValueError(f"expected HH:MM, got {value!r}")
    if not (0 <= hours <= 24 and 0 <= minutes < 60) or hours * 60 + minutes > MINUTES_PER_DAY:
        raise ValueError(f"time out of range: {value!r}")
    return hours * 60 + minutes


def format_clock_time(minute_of_day: int) -> str:
    """Inverse of :func:`parse_clock_time`."""
    return f"{minute_of_day // 60:02d}:{minute_of_day % 60:02d}"


class SeverityTargets(BaseModel):
    """Target minutes for one SLA clock, per severity."""

    model_config = ConfigDict(frozen=True)

    critical: int = Field(gt=0, description="Target minutes for critical incidents")
    high: int = Field(gt=0, description="Target minutes for high incidents")
    medium: int = Field(gt=0, description="Target minutes for medium incidents")
    low: int = Field(gt=0, description="Target minutes for low incidents")

    def for_severity(self, severity: Severity | str) -> int:
        return getattr(self, Severity(severity).value)

    @classmethod
    def from_mapping(cls, targets: Mapping[Any, int]) -> "SeverityTargets":
        return cls(**{Severity(key).value: value for key, value in targets.items()})


class BusinessWindow(BaseModel):
    """Daily working window in local wall-clock minutes, ``[start, end)``."""

    model_config = ConfigDict(frozen=True)

    start_minute: int = Field(ge=0, le=MINUTES_PER_DAY)
    end_minute: int = Field(ge=0, le=MINUTES_PER_DAY)

    @model_validator(mode="before")
    @classmethod
    def parse_clock_strings(cls, data: Any) -> Any:
        """Accept ``{"start": "09:00", "end": "17:00"}`` as well."""
        if isinstance(data, Mapping) and ("start" in data or "end" in data):
            data = dict(data)
            data["start_minute"] = parse_clock_time(data.pop("start", DEFAULT_BUSINESS_HOURS_START))
            data["end_minute"] = parse_clock_time(data.pop("end", DEFAULT_BUSINESS_HOURS_END))
        return data

    @model_validator(mode="after")
    def check_order(self) -> "BusinessWindow":
        if self.start_minute >= self.end_minute:
            raise ValueError("business window start must be before its end")
        return self

    @classmethod
    def from_clock(cls, start: str, end: str) -> "BusinessWindow":
        return cls(start_minute=parse_clock_time(start), end_minute=parse_clock_time(end))

    @property
    def length_minutes(self) -> int:
        return self.end_minute - self.start_minute

    @property
    def start(self) -> str:
        return format_clock_time(self.start_minute)

    @property
    def end(self) -> str:
        return format_clock_time(self.end_minute)


def _default_window() -> BusinessWindow:
    return BusinessWindow.from_clock(DEFAULT_BUSINESS_HOURS_START, DEFAULT_BUSINESS_HOURS_END)


class TeamSLAPolicy(BaseModel):
    """
    A team's SLA configuration.

    Instances are validated on construction and frozen afterwards, so any
    ``TeamSLAPolicy`` handed to the evaluator is already known to be sound.
    Build them through :func:`validate_policy` to get :class:`InvalidPolicy`
    instead of a raw pydantic error.
    """

    model_config = ConfigDict(frozen=True)

    team_id: Optional[str] = None
    response_targets: SeverityTargets = Field(
        default_factory=lambda: SeverityTargets.from_mapping(DEFAULT_RESPONSE_TARGETS)
    )
    resolution_targets: SeverityTargets = Field(
        default_factory=lambda: SeverityTargets.from_mapping(DEFAULT_RESOLUTION_TARGETS)
    )
    business_hours_only: bool = False
    business_window: BusinessWindow = Field(default_factory=_default_window)
    business_days: FrozenSet[int] = frozenset(DEFAULT_BUSINESS_DAYS)
    timezone: str = DEFAULT_POLICY_TIMEZONE
    enabled: bool = True

    @field_validator("response_targets", "resolution_targets", mode="before")
    @classmethod
    def parse_targets(cls, v: Any) -> Any:
        if isinstance(v, Mapping):
            return {Severity(key).value if isinstance(key, Severity) else key: value for key, value in v.items()}
        return v

    @field_validator("business_days")
    @classmethod
    def validate_business_days(cls, v: FrozenSet[int]) -> FrozenSet[int]:
        """Weekdays use 0 = Sunday through 6 = Saturday."""
        out_of_range = sorted(day for day in v if day not in VALID_WEEKDAYS)
        if out_of_range:
            raise ValueError(f"weekdays must be within 0..6, got {out_of_range}")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError, TypeError):
            raise ValueError(f"unknown timezone: {v!r}")
        return v

    @model_validator(mode="after")
    def check_business_days_present(self) -> "TeamSLAPolicy":
        if self.business_hours_only and not self.business_days:
            raise ValueError("business_days must not be empty when business_hours_only is set")
        return self

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def response_target(self, severity: Severity | str) -> int:
        return self.response_targets.for_severity(severity)

    def resolution_target(self, severity: Severity | str) -> int:
        return self.resolution_targets.for_severity(severity)

    def is_business_day(self, weekday: int) -> bool:
        return weekday in self.business_days

    @classmethod
    def default(cls, team_id: Optional[str] = None) -> "TeamSLAPolicy":
        """Policy created on a team's first configuration request."""
        return cls(team_id=team_id)


_MODEL_ERROR_FIELDS = {
    "business_window": "business_window",
    "business_days": "business_days",
}


def _error_field(error: dict) -> str:
    loc = [str(part) for part in error.get("loc", ()) if not isinstance(part, int)]
    if loc:
        return ".".join(loc)
    # Model-level validators report no location; name the field from the message.
    message = error.get("msg", "")
    for hint, field_name in _MODEL_ERROR_FIELDS.items():
        if hint in message:
            return field_name
    return "policy"


def validate_policy(policy: TeamSLAPolicy | Mapping[str, Any]) -> TeamSLAPolicy:
    """
    Validate a policy and return it as a :class:`TeamSLAPolicy`.

    Accepts either raw configuration data or an existing instance (which is
    re-checked, covering instances built with ``model_construct``).

    Raises:
        InvalidPolicy: listing every offending field.
    """
    data = policy.model_dump() if isinstance(policy, TeamSLAPolicy) else policy
    if not isinstance(data, Mapping):
        raise InvalidPolicy(["policy"], f"expected a mapping, got {type(policy).__name__}")

    try:
        return TeamSLAPolicy.model_validate(dict(data))
    except ValidationError as exc:
        errors = exc.errors()
        raise InvalidPolicy(
            [_error_field(error) for error in errors],
            details={
                "fields": sorted({_error_field(error) for error in errors}),
                "errors": [{"field": _error_field(e), "message": e["msg"]} for e in errors],
            },
        ) from exc


def require_policy(policy: Any) -> TeamSLAPolicy:
    """Fail fast when evaluation is handed something that is not a validated policy."""
    if not isinstance(policy, TeamSLAPolicy):
        raise InvalidPolicy(
            ["policy"],
            f"evaluation requires a validated TeamSLAPolicy, got {type(policy).__name__}",
        )
    return policy


@dataclass(frozen=True)
class SLADeadlines:
    """Response and resolution deadlines of one incident."""
    response_deadline: datetime
    resolution_deadline: datetime
    response_target_minutes: int
    resolution_target_minutes: int
