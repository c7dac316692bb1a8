"""
SLA Infrastructure Layer
=========================

Policy provider implementations:
- Repositories: In-process team settings store
- External: YAML policy file with watchdog hot-reload
"""

from oncall_sla.sla.infrastructure.repositories import InMemoryPolicyRepository
from oncall_sla.sla.infrastructure.external import (
    PolicyConfigManager,
    PolicyFileHandler,
    create_policy_provider,
    parse_policy_document,
)

__all__ = [
    "InMemoryPolicyRepository",
    "PolicyConfigManager",
    "PolicyFileHandler",
    "create_policy_provider",
    "parse_policy_document",
]
