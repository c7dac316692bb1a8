"""
SLA Domain Layer
================

Domain layer for SLA tracking.

Contains:
- Entities: IncidentTimeline, SLAStatus, NotTracked and aggregate results
- Value Objects: TeamSLAPolicy, BusinessWindow, SeverityTargets, SLADeadlines
- Domain Services: BusinessTimeCalculator, DeadlineResolver, SLAStatusEvaluator

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from oncall_sla.sla.domain.entities import (
    IncidentTimeline,
    NotTracked,
    SLAStatus,
    SLAAggregate,
    TeamCompliance,
    TrendPoint,
    TrendSummary,
    TeamTrend,
    SLAFinding,
    SLAScanReport,
)
from oncall_sla.sla.domain.value_objects import (
    TeamSLAPolicy,
    BusinessWindow,
    SeverityTargets,
    SLADeadlines,
    validate_policy,
    require_policy,
)
from oncall_sla.sla.domain.business_time import BusinessTimeCalculator
from oncall_sla.sla.domain.services import DeadlineResolver, SLAStatusEvaluator
from oncall_sla.sla.domain.formatting import format_minutes

__all__ = [
    # Entities
    "IncidentTimeline",
    "NotTracked",
    "SLAStatus",
    "SLAAggregate",
    "TeamCompliance",
    "TrendPoint",
    "TrendSummary",
    "TeamTrend",
    "SLAFinding",
    "SLAScanReport",
    # Value Objects
    "TeamSLAPolicy",
    "BusinessWindow",
    "SeverityTargets",
    "SLADeadlines",
    "validate_policy",
    "require_policy",
    # Domain Services
    "BusinessTimeCalculator",
    "DeadlineResolver",
    "SLAStatusEvaluator",
    "format_minutes",
]
