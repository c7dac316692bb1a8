"""
SLA Domain Services
===================

Stateless business logic turning a policy and an incident timeline into
deadlines and live status.
"""

from datetime import datetime
from typing import Optional

from oncall_sla.config import AT_RISK_THRESHOLD_PERCENT
from oncall_sla.sla.domain.business_time import BusinessTimeCalculator
from oncall_sla.sla.domain.entities import IncidentTimeline, NotTracked, SLAStatus
from oncall_sla.sla.domain.value_objects import SLADeadlines, TeamSLAPolicy, require_policy


class DeadlineResolver:
    """Derives an incident's deadlines from its creation time and severity."""

    @staticmethod
    def resolve_deadlines(incident: IncidentTimeline, policy: TeamSLAPolicy) -> SLADeadlines:
        """
        Both clocks start at ``created_at``; resolution does not wait for
        the first response. The incident's current severity is used.
        """
        policy = require_policy(policy)
        response_target = policy.response_target(incident.severity)
        resolution_target = policy.resolution_target(incident.severity)

        return SLADeadlines(
            response_deadline=BusinessTimeCalculator.add_working_minutes(
                incident.created_at, response_target, policy
            ),
            resolution_deadline=BusinessTimeCalculator.add_working_minutes(
                incident.created_at, resolution_target, policy
            ),
            response_target_minutes=response_target,
            resolution_target_minutes=resolution_target,
        )


class _ClockReading:
    """Elapsed/target arithmetic for one SLA clock."""

    __slots__ = ("target", "elapsed", "stopped")

    def __init__(self, target: int, elapsed: int, stopped: bool):
        self.target = target
        self.elapsed = elapsed
        self.stopped = stopped

    @property
    def percentage(self) -> float:
        return self.elapsed / self.target * 100

    @property
    def breached(self) -> bool:
        return self.elapsed > self.target

    @property
    def at_risk(self) -> bool:
        return not self.breached and self.percentage >= AT_RISK_THRESHOLD_PERCENT

    @property
    def remaining(self) -> int:
        return self.target - self.elapsed


class SLAStatusEvaluator:
    """
    Classifies an incident's response and resolution clocks.

    A clock stops at its event: the response clock at ``first_response_at``
    and the resolution clock at ``closed_at``. A closed incident that never
    got a first response stops its response clock at ``closed_at``. Running
    clocks are read against ``now``.
    """

    @staticmethod
    def evaluate(
        incident: IncidentTimeline,
        policy: Optional[TeamSLAPolicy],
        now: datetime
    ) -> SLAStatus | NotTracked:
        """
        Evaluate the incident's SLA status at ``now``.

        Args:
            incident: Incident timeline snapshot
            policy: The owning team's policy, or None when the team has none
            now: Current instant (timezone-aware)

        Returns:
            SLAStatus, or NotTracked when no enabled policy applies
        """
        if policy is None:
            return NotTracked(NotTracked.NO_POLICY, incident.id)
        policy = require_policy(policy)
        if not policy.enabled:
            return NotTracked(NotTracked.DISABLED, incident.id)

        deadlines = DeadlineResolver.resolve_deadlines(incident, policy)

        response_stop = incident.first_response_at or incident.closed_at
        response = _ClockReading(
            target=deadlines.response_target_minutes,
            elapsed=BusinessTimeCalculator.working_minutes_between(
                incident.created_at, response_stop or now, policy
            ),
            stopped=response_stop is not None,
        )
        resolution = _ClockReading(
            target=deadlines.resolution_target_minutes,
            elapsed=BusinessTimeCalculator.working_minutes_between(
                incident.created_at, incident.closed_at or now, policy
            ),
            stopped=incident.closed_at is not None,
        )

        return SLAStatus(
            incident_id=incident.id,
            response_deadline=deadlines.response_deadline,
            response_target_minutes=response.target,
            response_elapsed_minutes=response.elapsed,
            response_time_remaining_minutes=response.remaining,
            response_time_percentage=response.percentage,
            is_response_breached=response.breached,
            is_response_at_risk=response.at_risk,
            response_clock_stopped=response.stopped,
            resolution_deadline=deadlines.resolution_deadline,
            resolution_target_minutes=resolution.target,
            resolution_elapsed_minutes=resolution.elapsed,
            resolution_time_remaining_minutes=resolution.remaining,
            resolution_time_percentage=resolution.percentage,
            is_resolution_breached=resolution.breached,
            is_resolution_at_risk=resolution.at_risk,
            resolution_clock_stopped=resolution.stopped,
        )


resolve_deadlines = DeadlineResolver.resolve_deadlines
evaluate = SLAStatusEvaluator.evaluate
