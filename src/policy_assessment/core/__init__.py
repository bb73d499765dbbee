"""Core of the policy assessment framework.

- Assessment: runs policies against a target and aggregates the verdict
- Dispatcher: runs units of work concurrently for an assessment
- AssessmentSnapshot: persisted record of a finished assessment
"""

from .assessment import Assessment
from .dispatcher import Dispatcher
from .models import AuditResponse, OutcomeKind, Policy, ReportingPeriod, Severity
from .snapshot import AssessmentSnapshot
from .target import Target

__all__ = [
    "Assessment",
    "AssessmentSnapshot",
    "AuditResponse",
    "Dispatcher",
    "OutcomeKind",
    "Policy",
    "ReportingPeriod",
    "Severity",
    "Target",
]
