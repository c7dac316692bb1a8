"""
SLA Application Layer
======================

Application layer for the SLA engine.

Contains:
- Aggregation: Dashboard summaries, team breakdowns and daily trends
- Services: Breach scanner and the facade callers use
- DTOs: Data transfer objects for settings records and API serialization

This layer depends on the domain layer and the policy provider interface,
but not on concrete infrastructure implementations.
"""

from oncall_sla.sla.application.aggregation import (
    SLAAggregator,
    SLACounters,
    compliance_percentage,
)
from oncall_sla.sla.application.dto import (
    TeamSLASettingsDTO,
    IncidentDTO,
    SLAClockResponse,
    SLAStatusResponse,
    TeamBreakdownResponse,
    SLASummaryResponse,
    TrendPointResponse,
    TrendSummaryResponse,
    TrendResponse,
)
from oncall_sla.sla.application.services import (
    SLAService,
    SLABreachScanner,
    IPolicyProvider,
)

__all__ = [
    # Aggregation
    "SLAAggregator",
    "SLACounters",
    "compliance_percentage",
    # DTOs
    "TeamSLASettingsDTO",
    "IncidentDTO",
    "SLAClockResponse",
    "SLAStatusResponse",
    "TeamBreakdownResponse",
    "SLASummaryResponse",
    "TrendPointResponse",
    "TrendSummaryResponse",
    "TrendResponse",
    # Services
    "SLAService",
    "SLABreachScanner",
    # Provider Interface
    "IPolicyProvider",
]
