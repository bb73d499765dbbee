"""Support utilities for policy assessments.

- exceptions: error taxonomy
- logger: logging setup
"""

from .exceptions import (
    AssessmentError, AssessmentNotStored, AuditNotFound, AuditResponseNotFound,
    CatalogError, ConfigurationError, DispatcherFault, ReportingError,
    StorageError, TargetMismatch
)
from .logger import setup_logger, get_logger, setup_logger_from_settings, create_run_logger

__all__ = [
    "AssessmentError",
    "AssessmentNotStored",
    "AuditNotFound",
    "AuditResponseNotFound",
    "CatalogError",
    "ConfigurationError",
    "DispatcherFault",
    "ReportingError",
    "StorageError",
    "TargetMismatch",
    "setup_logger",
    "get_logger",
    "setup_logger_from_settings",
    "create_run_logger",
]
