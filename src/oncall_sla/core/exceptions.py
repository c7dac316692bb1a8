"""
Core Exceptions
================

Custom exceptions for the SLA engine following clean architecture principles.

Configuration problems are the only errors the engine raises on purpose.
"No data" situations produce defined results instead.
"""

from typing import Iterable, Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class InvalidPolicy(ValidationException):
    """
    A team SLA policy is malformed or inconsistent.

    Raised at configuration time. ``fields`` names every offending field so
    the admin form can highlight all of them at once.
    """

    def __init__(
        self,
        fields: Iterable[str],
        message: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.fields = sorted(set(fields))
        if message is None:
            message = "Invalid SLA policy: " + ", ".join(self.fields)
        super().__init__(message, details or {"fields": self.fields})
