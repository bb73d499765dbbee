"""Storage for assessment snapshots.

This module stores finished assessments keyed by their id, supporting both
SQLite and PostgreSQL backends. Each row keeps the full snapshot JSON plus a
few denormalised columns for listing.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union
from uuid import UUID

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from policy_assessment.core.assessment import Assessment
from policy_assessment.core.snapshot import AssessmentSnapshot
from policy_assessment.utils.exceptions import AssessmentNotStored, StorageError

if TYPE_CHECKING:
    from policy_assessment.config.settings import Settings

logger = logging.getLogger(__name__)

Base = declarative_base()


class StorageType(str, Enum):
    """Type of storage backend."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class DBAssessment(Base):
    """Assessment snapshot database model."""

    __tablename__ = "assessments"

    id = Column(String(36), primary_key=True)
    uri = Column(String, nullable=False, index=True)
    successful = Column(Boolean, nullable=False)
    severity_code = Column(Integer, nullable=False)
    error_code = Column(Integer, nullable=True)
    result_count = Column(Integer, nullable=False)
    snapshot = Column(Text, nullable=False)  # JSON string
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Summary of the stored assessment, without the snapshot body."""
        return {
            "id": self.id,
            "uri": self.uri,
            "successful": self.successful,
            "severity_code": self.severity_code,
            "error_code": self.error_code,
            "result_count": self.result_count,
            "created_at": self.created_at.isoformat(),
        }


class AssessmentStore:
    """Storage for finished assessments."""

    def __init__(
        self,
        storage_type: Optional[Union[StorageType, str]] = None,
        connection_string: Optional[str] = None,
        settings: Optional["Settings"] = None,
    ):
        """Initialize the assessment store.

        Args:
            storage_type: Type of storage backend (default from settings)
            connection_string: Database connection string (default from settings)
            settings: Settings to read defaults from (default: loaded settings)
        """
        if settings is None and (storage_type is None or connection_string is None):
            from policy_assessment.config.settings import settings as loaded_settings
            settings = loaded_settings

        self.settings = settings
        self.storage_type = StorageType(storage_type or settings.storage_type)
        self.connection_string = connection_string or self._get_connection_string()
        self.engine = create_engine(self.connection_string)
        self.Session = sessionmaker(bind=self.engine)

        Base.metadata.create_all(self.engine)
        logger.info(f"Initialized assessment store with {self.storage_type.value} backend")

    def _get_connection_string(self) -> str:
        if self.storage_type == StorageType.SQLITE:
            db_path = self.settings.sqlite_path or os.path.join(
                Path.home(), ".policy_assessment", "assessments.db"
            )
            os.makedirs(os.path.dirname(db_path), exist_ok=True)
            return f"sqlite:///{db_path}"
        elif self.storage_type == StorageType.POSTGRESQL:
            s = self.settings
            return (
                f"postgresql://{s.pg_user}:{s.pg_password}@"
                f"{s.pg_host}:{s.pg_port}/{s.pg_database}"
            )
        else:
            raise StorageError(f"Unsupported storage type: {self.storage_type}")

    def store(self, assessment: Assessment) -> str:
        """Store an assessment, replacing any earlier copy with the same id.

        Args:
            assessment: Assessment to store

        Returns:
            Id of the stored assessment
        """
        snapshot = assessment.to_snapshot()
        assessment_id = str(snapshot.id)

        try:
            with self.Session() as session:
                row = session.get(DBAssessment, assessment_id)
                if row is None:
                    row = DBAssessment(id=assessment_id)
                    session.add(row)

                row.uri = snapshot.uri
                row.successful = assessment.is_successful()
                row.severity_code = assessment.severity_code
                row.error_code = assessment.error_code
                row.result_count = len(snapshot.results)
                row.snapshot = snapshot.to_json(indent=None)
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not store assessment {assessment_id}: {e}") from e

        logger.info(f"Stored assessment for {snapshot.uri} with ID {assessment_id}")
        return assessment_id

    def load_snapshot(self, assessment_id: Union[str, UUID]) -> AssessmentSnapshot:
        """Load the stored snapshot of an assessment.

        Raises:
            AssessmentNotStored: If no assessment has the id
        """
        with self.Session() as session:
            row = session.get(DBAssessment, str(assessment_id))
            if row is None:
                raise AssessmentNotStored(f"Assessment {assessment_id} not found")
            return AssessmentSnapshot.from_json(row.snapshot)

    def load(self, assessment_id: Union[str, UUID], **kwargs: Any) -> Assessment:
        """Rebuild a stored assessment without re-running its audits.

        Args:
            assessment_id: Id of the assessment
            **kwargs: Passed to :meth:`Assessment.from_snapshot`
        """
        return Assessment.from_snapshot(self.load_snapshot(assessment_id), **kwargs)

    def list(self, uri: Optional[str] = None, limit: int = 100) -> List[Dict[str, Any]]:
        """List stored assessments, newest first.

        Args:
            uri: Only assessments of this target uri
            limit: Maximum number of assessments to return
        """
        with self.Session() as session:
            query = session.query(DBAssessment)
            if uri:
                query = query.filter(DBAssessment.uri == uri)

            query = query.order_by(DBAssessment.created_at.desc()).limit(limit)
            return [row.to_dict() for row in query.all()]

    def latest(self, uri: str) -> Optional[Assessment]:
        """Most recently stored assessment of a target, if any."""
        rows = self.list(uri, limit=1)
        return self.load(rows[0]["id"]) if rows else None

    def delete(self, assessment_id: Union[str, UUID]) -> bool:
        """Delete an assessment.

        Returns:
            True if the assessment was deleted, False if it was not stored
        """
        with self.Session() as session:
            row = session.get(DBAssessment, str(assessment_id))
            if row:
                session.delete(row)
                session.commit()
                logger.info(f"Deleted assessment with ID {assessment_id}")
                return True
            logger.warning(f"Assessment with ID {assessment_id} not found")
            return False
