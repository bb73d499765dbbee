"""Persisted record of a finished assessment.

A snapshot carries enough to rebuild the assessment's query surface without
re-running any audit, and is readable without the dispatch machinery.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, ValidationError

from ..utils.exceptions import StorageError
from .models import AuditResponse, ReportingPeriod

SNAPSHOT_VERSION = 1


class AssessmentSnapshot(BaseModel):
    """Serialisable state of an Assessment."""

    version: int = Field(default=SNAPSHOT_VERSION)
    uri: str
    id: UUID
    results: List[AuditResponse] = Field(default_factory=list)
    policy_order: List[str] = Field(default_factory=list)
    successful: bool = True
    error_code: Optional[int] = None
    reporting_period: Optional[ReportingPeriod] = None

    def to_json(self, indent: Optional[int] = 2) -> str:
        return self.model_dump_json(indent=indent)

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "AssessmentSnapshot":
        try:
            return cls.model_validate_json(data)
        except ValidationError as e:
            raise StorageError(f"Invalid assessment snapshot: {e}") from e

    def save(self, path: Union[str, Path]) -> Path:
        """Write the snapshot as JSON, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Union[str, Path]) -> "AssessmentSnapshot":
        path = Path(path)
        try:
            data = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Cannot read snapshot {path}: {e}") from e
        return cls.from_json(data)

    def to_dict(self) -> dict:
        """JSON-compatible dictionary of the snapshot."""
        return self.model_dump(mode="json")
