"""
SQLAlchemy Database Models for Learner Progress

Tables:
- learner_progress: One whole progress document per learner

ARCHITECTURE NOTE:
    This file contains SQLALCHEMY models for database persistence.
    There is a corresponding Pydantic file: progress_engine/models/progress.py

    The progress record is read and written as a single document, so it is
    stored as JSON rather than normalized into child tables. Derived stats
    and achievement rules need every collection at once, and whole-document
    writes keep the optimistic version check to a single row.

    Data flows: Service Layer → Pydantic → SQLAlchemy → Database
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from progress_engine.db.base import Base


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class LearnerProgress(Base):
    """
    Persisted progress document for one learner.

    Attributes:
        id: Primary key, auto-incrementing integer identifier.
        learner_id: Identity of the owning learner. Unique, so at most one
            progress document can ever exist per learner.
        document: The serialized ProgressRecord (collections, stats,
            achievements) as produced by `model_dump(mode="json")`.
        version: Optimistic concurrency counter. Every successful save
            increments it; a save carrying a stale version is rejected.
        created_at: When the document was first created.
        updated_at: When the document was last written.
    """

    __tablename__ = "learner_progress"

    id: Mapped[int] = mapped_column(primary_key=True)
    learner_id: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    document: Mapped[dict] = mapped_column(JSON)
    version: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )
