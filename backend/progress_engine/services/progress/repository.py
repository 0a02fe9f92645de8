"""
Progress Repository

The single persistence seam of the progress engine. Records are loaded,
mutated in memory and written back whole; no partial-field updates exist.

Every save carries the version the record was loaded with. The store only
accepts the write if that version is still current and then bumps it, so a
writer working from a stale copy gets ConcurrentUpdateError instead of
silently discarding another request's changes.

Implementations:
- SqlProgressRepository: PostgreSQL via SQLAlchemy async (production).
- InMemoryProgressRepository: dict-backed store for tests and local runs.

Usage:
    from progress_engine.services.progress.repository import SqlProgressRepository

    repo = SqlProgressRepository(db)
    record = await repo.get_or_create("learner-1")
    record.stats.total_study_time_seconds += 60
    record = await repo.save(record)
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from progress_engine.db.models_progress import LearnerProgress
from progress_engine.middleware.error_handling import (
    ConcurrentUpdateError,
    ProgressStoreError,
)
from progress_engine.models.progress import ProgressRecord

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def _conflict(record: ProgressRecord) -> ConcurrentUpdateError:
    logger.warning(
        f"Stale write rejected for {record.learner_id} (version {record.version})"
    )
    return ConcurrentUpdateError(
        "Progress was modified by another request; reload and retry",
        details={"learner_id": record.learner_id, "version": record.version},
    )


class ProgressRepository(ABC):
    """Keyed store of one ProgressRecord per learner."""

    @abstractmethod
    async def load(self, learner_id: str) -> Optional[ProgressRecord]:
        """Return the learner's record, or None if none exists."""

    @abstractmethod
    async def create(self, record: ProgressRecord) -> ProgressRecord:
        """
        Insert a new record.

        If another request created the learner's record first, the stored
        record is returned instead.
        """

    @abstractmethod
    async def save(self, record: ProgressRecord) -> ProgressRecord:
        """
        Persist the whole record if its version is still current.

        Returns:
            The saved record carrying the bumped version.

        Raises:
            ConcurrentUpdateError: If the stored version moved on.
            ProgressStoreError: If the store failed.
        """

    async def get_or_create(
        self, learner_id: str, now: Optional[datetime] = None
    ) -> ProgressRecord:
        """
        Load the learner's record, creating an empty one on first access.

        Args:
            learner_id: Owning learner.
            now: Creation timestamp (also the initial last activity).

        Returns:
            The existing or newly created record.
        """
        record = await self.load(learner_id)
        if record is not None:
            return record

        logger.info(f"Creating progress record for learner {learner_id}")
        return await self.create(ProgressRecord.new(learner_id, now or utc_now()))


class InMemoryProgressRepository(ProgressRepository):
    """
    Dict-backed repository.

    Stores serialized documents and rebuilds models on every load, so
    callers never share object references across calls.
    """

    def __init__(self):
        self._documents: dict[str, dict] = {}

    async def load(self, learner_id: str) -> Optional[ProgressRecord]:
        document = self._documents.get(learner_id)
        if document is None:
            return None
        return ProgressRecord.model_validate(document)

    async def create(self, record: ProgressRecord) -> ProgressRecord:
        existing = await self.load(record.learner_id)
        if existing is not None:
            return existing
        self._documents[record.learner_id] = record.model_dump(mode="json")
        return ProgressRecord.model_validate(self._documents[record.learner_id])

    async def save(self, record: ProgressRecord) -> ProgressRecord:
        stored = self._documents.get(record.learner_id)
        if stored is None or stored["version"] != record.version:
            raise _conflict(record)

        saved = record.model_copy(update={"version": record.version + 1}, deep=True)
        self._documents[record.learner_id] = saved.model_dump(mode="json")
        return saved

    def __len__(self) -> int:
        return len(self._documents)


class SqlProgressRepository(ProgressRepository):
    """
    PostgreSQL-backed repository.

    One `learner_progress` row per learner holds the serialized record and
    its version. Saves are conditional UPDATEs on (learner_id, version).
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the repository.

        Args:
            db: SQLAlchemy async database session.
        """
        self.db = db

    async def load(self, learner_id: str) -> Optional[ProgressRecord]:
        try:
            result = await self.db.execute(
                select(LearnerProgress).where(LearnerProgress.learner_id == learner_id)
            )
            row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load progress for {learner_id}: {e}")
            raise ProgressStoreError("Failed to load progress") from e

        if row is None:
            return None
        return self._to_record(row)

    async def create(self, record: ProgressRecord) -> ProgressRecord:
        row = LearnerProgress(
            learner_id=record.learner_id,
            document=record.model_dump(mode="json"),
            version=record.version,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
        self.db.add(row)

        try:
            await self.db.commit()
        except IntegrityError:
            # Lost the creation race; the other request's record wins
            await self.db.rollback()
            existing = await self.load(record.learner_id)
            if existing is None:
                raise ProgressStoreError("Failed to create progress")
            return existing
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to create progress for {record.learner_id}: {e}")
            raise ProgressStoreError("Failed to create progress") from e

        return record

    async def save(self, record: ProgressRecord) -> ProgressRecord:
        saved = record.model_copy(update={"version": record.version + 1}, deep=True)
        stmt = (
            update(LearnerProgress)
            .where(
                LearnerProgress.learner_id == record.learner_id,
                LearnerProgress.version == record.version,
            )
            .values(
                document=saved.model_dump(mode="json"),
                version=saved.version,
                updated_at=saved.updated_at,
            )
            .execution_options(synchronize_session=False)
        )

        try:
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                await self.db.rollback()
                raise _conflict(record)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to save progress for {record.learner_id}: {e}")
            raise ProgressStoreError("Failed to save progress") from e

        return saved

    @staticmethod
    def _to_record(row: LearnerProgress) -> ProgressRecord:
        """Rebuild the domain record; the version column is authoritative."""
        record = ProgressRecord.model_validate(row.document)
        record.version = row.version
        return record
