"""Policy Assessment.

Runs an ordered set of policies against one target concurrently and
aggregates a single deterministic verdict: success, severity and outcome
statistics, independent of the order in which audits complete.

Features:
- Concurrent dispatch on thread or process pools
- Results exposed in dispatch order
- Snapshots that rebuild an assessment without re-running audits
- SQLite/PostgreSQL assessment store
- Reports in JSON, CSV and HTML
- Typer CLI
"""

__version__ = "0.1.0"

from .core.assessment import Assessment
from .core.models import AuditResponse, OutcomeKind, Policy, ReportingPeriod, Severity
from .core.snapshot import AssessmentSnapshot
from .core.target import Target

__all__ = [
    "Assessment",
    "AssessmentSnapshot",
    "AuditResponse",
    "OutcomeKind",
    "Policy",
    "ReportingPeriod",
    "Severity",
    "Target",
    "__version__",
]
