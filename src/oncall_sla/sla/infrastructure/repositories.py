"""
SLA Policy Repositories
========================

In-process store for team SLA settings.

Implements the provider interface defined in the application layer.
"""

import threading
from typing import Any, Dict, Mapping, Optional

from oncall_sla.core import ResourceNotFoundException
from oncall_sla.shared.infrastructure.logging import get_logger
from oncall_sla.sla.application.services import IPolicyProvider
from oncall_sla.sla.domain import TeamSLAPolicy, validate_policy

logger = get_logger(__name__)


class InMemoryPolicyRepository(IPolicyProvider):
    """
    Team policy store backed by a dict.

    Writes replace the whole policy under a lock, so concurrent readers see
    either the old or the new policy and the last write wins.
    """

    def __init__(
        self,
        policies: Optional[Mapping[str, TeamSLAPolicy | Mapping[str, Any]]] = None,
        team_names: Optional[Mapping[str, str]] = None,
    ):
        self._lock = threading.Lock()
        self._policies: Dict[str, TeamSLAPolicy] = {}
        self._team_names: Dict[str, str] = dict(team_names or {})
        for team_id, policy in (policies or {}).items():
            self._policies[team_id] = self._validated(team_id, policy)

    @staticmethod
    def _validated(team_id: str, policy: TeamSLAPolicy | Mapping[str, Any]) -> TeamSLAPolicy:
        if isinstance(policy, TeamSLAPolicy):
            return validate_policy(policy.model_copy(update={"team_id": team_id}))
        return validate_policy({**policy, "team_id": team_id})

    def get_policy(self, team_id: str) -> Optional[TeamSLAPolicy]:
        with self._lock:
            return self._policies.get(team_id)

    def get_policies(self) -> Dict[str, TeamSLAPolicy]:
        with self._lock:
            return dict(self._policies)

    def get_team_names(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._team_names)

    def get_or_create_default(self, team_id: str, team_name: Optional[str] = None) -> TeamSLAPolicy:
        """Return the team's policy, creating the default one on first access."""
        with self._lock:
            if team_name:
                self._team_names[team_id] = team_name
            policy = self._policies.get(team_id)
            if policy is None:
                policy = TeamSLAPolicy.default(team_id)
                self._policies[team_id] = policy
                logger.info("Created default SLA policy", extra={"team_id": team_id})
            return policy

    def save(
        self,
        team_id: str,
        policy: TeamSLAPolicy | Mapping[str, Any],
        team_name: Optional[str] = None,
    ) -> TeamSLAPolicy:
        """
        Validate and store a team's policy, replacing any previous one.

        Raises:
            InvalidPolicy: when the policy is malformed; nothing is stored
        """
        validated = self._validated(team_id, policy)
        with self._lock:
            self._policies[team_id] = validated
            if team_name:
                self._team_names[team_id] = team_name
        logger.info(
            "Saved SLA policy",
            extra={"team_id": team_id, "enabled": validated.enabled,
                   "business_hours_only": validated.business_hours_only},
        )
        return validated

    def disable(self, team_id: str) -> TeamSLAPolicy:
        """Stop tracking a team while keeping its settings."""
        with self._lock:
            policy = self._policies.get(team_id)
            if policy is None:
                raise ResourceNotFoundException("TeamSLAPolicy", team_id)
            policy = policy.model_copy(update={"enabled": False})
            self._policies[team_id] = policy
        logger.info("Disabled SLA policy", extra={"team_id": team_id})
        return policy
