"""
On-call SLA Engine - Bootstrap
===============================

Wires the SLA engine for a host application.

Clean Architecture Layers:
- Application: SLAService facade, aggregation and DTOs
- Domain: Policies, business time, deadlines and status
- Infrastructure: Team policy providers

The host (dashboard API, worker, notebook) loads incidents itself and passes
snapshots into the returned service on every refresh.
"""

from pathlib import Path
from typing import Optional

from oncall_sla.config import settings
from oncall_sla.shared.infrastructure.logging import get_logger, setup_logging
from oncall_sla.sla.application import SLAService
from oncall_sla.sla.application.services import IPolicyProvider
from oncall_sla.sla.infrastructure import PolicyConfigManager, create_policy_provider

logger = get_logger(__name__)


def create_sla_service(
    policy_provider: Optional[IPolicyProvider] = None,
    policy_path: Optional[Path] = None,
    configure_logging: bool = True,
) -> SLAService:
    """
    Build an SLAService.

    STARTUP:
    1. Setup structured logging
    2. Load team policies from YAML (unless a provider is given)
    3. Start watching the policy file when enabled in settings
    """
    if configure_logging:
        setup_logging(settings.log_level, settings.environment, settings.app_name)

    logger.info("Starting SLA engine", extra={
        "version": settings.app_version,
        "environment": settings.environment,
    })

    if policy_provider is None:
        logger.info("Loading SLA policies")
        policy_provider = create_policy_provider(policy_path)

    return SLAService(policy_provider)


def shutdown_sla_service(policy_provider: IPolicyProvider) -> None:
    """Stop background file watching, if any."""
    if isinstance(policy_provider, PolicyConfigManager):
        policy_provider.stop_watching()
    logger.info("SLA engine stopped")
