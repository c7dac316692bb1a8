"""
Configuration Module
====================

Application settings and domain constants for the SLA engine.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="oncall-sla", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== SLA Policies ==========
    policy_config_path: Path = Field(
        default=Path("sla_policies.yaml"),
        description="Path to the team SLA policy YAML file"
    )
    watch_policy_config: bool = Field(
        default=True,
        description="Reload team policies when the YAML file changes"
    )

    # ========== Dashboard Queries ==========
    default_timezone: str = Field(
        default="UTC",
        description="Timezone used for trend day buckets when the viewer sends none"
    )
    trend_default_days: int = Field(
        default=30,
        description="Days covered by a trend query without an explicit range",
        ge=1,
        le=366
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class Severity(str, Enum):
    """Incident severity levels."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class IncidentStatus(str, Enum):
    """Incident lifecycle statuses."""
    NEW = "new"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class SLAClock(str, Enum):
    """The two SLA clocks every incident runs."""
    RESPONSE = "response"
    RESOLUTION = "resolution"


class SLAHealth(str, Enum):
    """Dashboard health bucket of a tracked incident."""
    HEALTHY = "healthy"
    AT_RISK = "at_risk"
    BREACHED = "breached"


class FindingType(str, Enum):
    """Breach scanner finding types."""
    WARNING = "warning"
    BREACH = "breach"


# Share of the target after which a running clock counts as at risk.
# Applies to both clocks and is not configurable per team.
AT_RISK_THRESHOLD_PERCENT = 80


# ========== Default policy values ==========

DEFAULT_RESPONSE_TARGETS = {
    Severity.CRITICAL: 15,
    Severity.HIGH: 30,
    Severity.MEDIUM: 60,
    Severity.LOW: 240,
}
DEFAULT_RESOLUTION_TARGETS = {
    Severity.CRITICAL: 240,
    Severity.HIGH: 480,
    Severity.MEDIUM: 1440,
    Severity.LOW: 2880,
}
DEFAULT_BUSINESS_HOURS_START = "09:00"
DEFAULT_BUSINESS_HOURS_END = "17:00"
DEFAULT_BUSINESS_DAYS = (1, 2, 3, 4, 5)  # Monday to Friday, 0 = Sunday
DEFAULT_POLICY_TIMEZONE = "UTC"


# ========== Lists for validation ==========

VALID_WEEKDAYS = range(7)
