"""Custom exceptions for policy assessments.

This module provides the exceptions raised by the assessment orchestrator and
its collaborators. Per-policy audit failures are never exceptions: a failing
check produces an unsuccessful AuditResponse.
"""

from __future__ import annotations

from typing import Iterable, Optional


class AssessmentError(Exception):
    """Base exception for assessment errors."""
    pass


class TargetMismatch(AssessmentError):
    """Exception raised when an audit is bound to a different target.

    Raised before any unit of work is submitted, so no partial dispatch occurs.
    """

    def __init__(self, policy_name: str, message: Optional[str] = None):
        self.policy_name = policy_name
        super().__init__(
            message
            or f"Audit for policy '{policy_name}' is not bound to the assessment target"
        )


class DispatcherFault(AssessmentError):
    """Exception raised when the dispatcher fails irrecoverably.

    Responses delivered before the fault remain valid.
    """

    UNIT_CRASHED = 1
    POOL_BROKEN = 2
    TIMEOUT = 3

    def __init__(self, message: str, code: int = UNIT_CRASHED, delivered: int = 0):
        self.code = code
        self.delivered = delivered
        super().__init__(message)


class AuditResponseNotFound(AssessmentError, LookupError):
    """Exception raised when a policy has no recorded AuditResponse."""

    def __init__(self, name: str, available: Iterable[str] = ()):
        self.name = name
        self.available = list(available)
        super().__init__(
            f"Policy '{name}' does not have an AuditResponse. "
            f"Found {', '.join(self.available) or 'none'}"
        )


class AuditNotFound(AssessmentError, LookupError):
    """Exception raised for an audit name missing from the registry."""
    pass


class CatalogError(AssessmentError):
    """Exception raised for invalid or missing policy definitions."""
    pass


class ConfigurationError(AssessmentError):
    """Exception raised for configuration errors."""
    pass


class StorageError(AssessmentError):
    """Exception raised for storage errors."""
    pass


class AssessmentNotStored(StorageError, LookupError):
    """Exception raised when an assessment id is not in the store."""
    pass


class ReportingError(AssessmentError):
    """Exception raised for reporting errors."""
    pass
