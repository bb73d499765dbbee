"""Value types shared by audits, the orchestrator and persistence."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum, IntEnum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Severity(IntEnum):
    """Ordinal severity of a policy. Higher is more serious."""

    LOW = 1
    NORMAL = 2
    HIGH = 3
    CRITICAL = 4

    @classmethod
    def parse(cls, value: Union[int, str, "Severity"]) -> int:
        """Convert a severity name or number into its ordinal.

        Numbers above CRITICAL are kept as-is so custom scales still order
        correctly.

        Raises:
            ValueError: If the value is not a known name or is below the floor
        """
        if isinstance(value, str) and not value.strip().isdigit():
            try:
                return int(cls[value.strip().upper()])
            except KeyError:
                raise ValueError(f"Unknown severity: {value}") from None

        number = int(value)
        if number < SEVERITY_FLOOR:
            raise ValueError(f"Severity must be >= {SEVERITY_FLOOR}, got {number}")
        return number

    @classmethod
    def label(cls, value: int) -> str:
        """Human readable name for a severity ordinal."""
        try:
            return cls(value).name.lower()
        except ValueError:
            return str(value)


SEVERITY_FLOOR = int(Severity.LOW)


class OutcomeKind(str, Enum):
    """Outcome of a single audit."""

    SUCCESS = "success"
    FAILURE = "failure"
    WARNING = "warning"
    NOTICE = "notice"
    ERROR = "error"
    NOT_APPLICABLE = "not_applicable"
    IRRELEVANT = "irrelevant"

    @property
    def successful(self) -> bool:
        return self in _SUCCESSFUL_OUTCOMES


_SUCCESSFUL_OUTCOMES = frozenset({
    OutcomeKind.SUCCESS,
    OutcomeKind.WARNING,
    OutcomeKind.NOTICE,
    OutcomeKind.NOT_APPLICABLE,
})


class ReportingPeriod(BaseModel):
    """Time window applied uniformly to every audit of a run."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> "ReportingPeriod":
        if self.end < self.start:
            raise ValueError("Reporting period end must not be before its start")
        return self

    @classmethod
    def last(cls, hours: float = 24.0, end: Optional[datetime] = None) -> "ReportingPeriod":
        """Build the window of the given length ending at ``end`` (default: now)."""
        end = end or datetime.now()
        return cls(start=end - timedelta(hours=hours), end=end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


class Policy(BaseModel):
    """A named, severity-ranked check definition.

    ``audit`` names the executable audit in the audit registry; ``parameters``
    are handed to that audit when it runs.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    title: str = ""
    severity: int = Field(default=int(Severity.NORMAL))
    audit: str = Field(min_length=1)
    parameters: Dict[str, Any] = Field(default_factory=dict)
    description: Optional[str] = None

    @field_validator("severity", mode="before")
    @classmethod
    def _parse_severity(cls, v: Any) -> int:
        return Severity.parse(v)

    @model_validator(mode="before")
    @classmethod
    def _default_title(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("title"):
            data = {**data, "title": data.get("name", "")}
        return data


class AuditResponse(BaseModel):
    """Outcome of executing one policy's audit against a target."""

    policy: Policy
    outcome: OutcomeKind
    severity: int = 0
    message: str = ""
    details: Dict[str, Any] = Field(default_factory=dict)
    remediated: bool = False
    timestamp: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def _default_severity(self) -> "AuditResponse":
        if self.severity < SEVERITY_FLOOR:
            self.severity = self.policy.severity
        return self

    @property
    def policy_name(self) -> str:
        return self.policy.name

    def is_successful(self) -> bool:
        return self.outcome.successful

    def is_irrelevant(self) -> bool:
        return self.outcome is OutcomeKind.IRRELEVANT

    def __str__(self) -> str:
        return f"AuditResponse(policy='{self.policy.name}', outcome={self.outcome.value})"
