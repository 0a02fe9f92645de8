"""
Learner Progress Service

Orchestrates every progress-affecting operation for a learner.

Each mutation runs inside the learner's lock and follows one fixed order,
since each step reads what the previous one wrote:

    1. Load (or lazily create) the learner's record
    2. Mutate the raw collection (completion, view or quiz attempt)
    3. Add the time spent to cumulative study time
    4. Recompute derived stats from the collections
    5. Update the streak from the *previous* last activity timestamp
    6. Set last activity to now (never earlier than before) and persist
    7. Evaluate achievements and persist again if any unlocked

The achievement write is independent from the primary write: if it fails,
the primary mutation still succeeds, the failure is logged distinctly and
the unlock is retried on the learner's next activity.

Usage:
    from progress_engine.services.progress import ProgressService

    service = ProgressService(SqlProgressRepository(db))
    update = await service.complete_topic("learner-1", "topic-42", time_spent_seconds=600)
    update.progress.stats.total_topics_completed
    update.new_achievements
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from progress_engine.enums.progress import ContentKind, QuizMode
from progress_engine.middleware.error_handling import (
    AuthenticationError,
    ServiceError,
    ValidationError,
)
from progress_engine.models.progress import (
    AchievementCatalogResponse,
    ProgressRecord,
    ProgressUpdate,
)
from progress_engine.services.progress.achievements import AchievementEngine
from progress_engine.services.progress.locks import LearnerLockManager, get_lock_manager
from progress_engine.services.progress.recorders import (
    record_completion,
    record_quiz_attempt,
)
from progress_engine.services.progress.repository import ProgressRepository, utc_now
from progress_engine.services.progress.stats import recompute_stats
from progress_engine.services.progress.streak import update_streak

logger = logging.getLogger(__name__)

Mutation = Callable[[ProgressRecord, datetime], None]


class ProgressService:
    """
    Learner progress and achievement engine.

    Records completions, views and quiz attempts, keeps derived stats and
    the daily streak current, and unlocks achievements exactly once.
    """

    def __init__(
        self,
        repository: ProgressRepository,
        locks: Optional[LearnerLockManager] = None,
        achievements: Optional[AchievementEngine] = None,
        clock: Callable[[], datetime] = utc_now,
        pass_threshold: Optional[int] = None,
    ):
        """
        Initialize the progress service.

        Args:
            repository: Store of progress records.
            locks: Per-learner lock manager; defaults to the process-wide one.
            achievements: Achievement rule evaluator.
            clock: Source of "now" (timezone-aware).
            pass_threshold: Minimum passing quiz score; defaults to settings.
        """
        self.repository = repository
        self.locks = locks or get_lock_manager()
        self.achievements = achievements or AchievementEngine()
        self.clock = clock
        self.pass_threshold = pass_threshold

    # ===========================================
    # Queries
    # ===========================================

    async def get_progress(self, learner_id: str) -> ProgressRecord:
        """Return the learner's record, creating it on first access."""
        self._require_learner(learner_id)
        async with self.locks.hold(learner_id):
            return await self.repository.get_or_create(learner_id, self.clock())

    async def get_achievement_catalog(self, learner_id: str) -> AchievementCatalogResponse:
        """Return every achievement with the learner's progress towards it."""
        record = await self.get_progress(learner_id)
        return self.achievements.catalog(record)

    # ===========================================
    # Completion Recorders
    # ===========================================

    async def record_content(
        self,
        learner_id: str,
        kind: ContentKind,
        ref_id: str,
        time_spent_seconds: int = 0,
    ) -> ProgressUpdate:
        """
        Record that the learner completed or viewed a content item.

        The item is added to its collection only the first time; repeat
        calls still count as activity (study time and streak).

        Args:
            learner_id: Authenticated learner.
            kind: Content kind.
            ref_id: Catalog identifier of the item.
            time_spent_seconds: Time spent on this visit.

        Returns:
            ProgressUpdate with the persisted record and new achievements.
        """
        self._require_learner(learner_id)
        if not ref_id:
            raise ValidationError(f"{kind.value} id is required")
        self._require_non_negative(time_spent_seconds)

        def mutate(record: ProgressRecord, now: datetime) -> None:
            record_completion(record, kind, ref_id, time_spent_seconds, now)

        return await self._apply(learner_id, time_spent_seconds, mutate)

    async def complete_topic(
        self, learner_id: str, topic_id: str, time_spent_seconds: int = 0
    ) -> ProgressUpdate:
        return await self.record_content(
            learner_id, ContentKind.TOPIC, topic_id, time_spent_seconds
        )

    async def view_protocol(
        self, learner_id: str, protocol_id: str, time_spent_seconds: int = 0
    ) -> ProgressUpdate:
        return await self.record_content(
            learner_id, ContentKind.PROTOCOL, protocol_id, time_spent_seconds
        )

    async def view_guideline(self, learner_id: str, guideline_id: str) -> ProgressUpdate:
        return await self.record_content(learner_id, ContentKind.GUIDELINE, guideline_id)

    async def view_3d_model(self, learner_id: str, model_id: str) -> ProgressUpdate:
        return await self.record_content(learner_id, ContentKind.MODEL_3D, model_id)

    async def view_trigger_point(
        self, learner_id: str, trigger_point_id: str
    ) -> ProgressUpdate:
        return await self.record_content(
            learner_id, ContentKind.TRIGGER_POINT, trigger_point_id
        )

    # ===========================================
    # Quiz Results
    # ===========================================

    async def record_quiz_result(
        self,
        learner_id: str,
        quiz_id: str,
        score: float,
        total_questions: int,
        correct_answers: int,
        time_spent_seconds: int = 0,
        mode: QuizMode = QuizMode.PRACTICE,
    ) -> ProgressUpdate:
        """
        Record a quiz attempt. Retakes are kept as separate attempts.

        Args:
            learner_id: Authenticated learner.
            quiz_id: Catalog identifier of the quiz.
            score: Percentage score, 0-100.
            total_questions: Number of questions in the attempt.
            correct_answers: Number answered correctly.
            time_spent_seconds: Duration of the attempt.
            mode: Practice or exam.

        Returns:
            ProgressUpdate with the persisted record and new achievements.

        Raises:
            ValidationError: If the score or counts are inconsistent.
        """
        self._require_learner(learner_id)
        if not quiz_id:
            raise ValidationError("quiz id is required")
        if not 0 <= score <= 100:
            raise ValidationError("score must be between 0 and 100", details={"score": score})
        if total_questions < 0 or correct_answers < 0 or correct_answers > total_questions:
            raise ValidationError(
                "correct_answers must be between 0 and total_questions",
                details={
                    "total_questions": total_questions,
                    "correct_answers": correct_answers,
                },
            )
        self._require_non_negative(time_spent_seconds)

        def mutate(record: ProgressRecord, now: datetime) -> None:
            record_quiz_attempt(
                record,
                quiz_id=quiz_id,
                score=score,
                total_questions=total_questions,
                correct_answers=correct_answers,
                time_spent_seconds=time_spent_seconds,
                mode=mode,
                now=now,
            )

        return await self._apply(learner_id, time_spent_seconds, mutate)

    # ===========================================
    # Pipeline
    # ===========================================

    async def _apply(
        self, learner_id: str, time_spent_seconds: int, mutate: Mutation
    ) -> ProgressUpdate:
        async with self.locks.hold(learner_id):
            now = self.clock()
            record = await self.repository.get_or_create(learner_id, now)
            previous_activity = record.stats.last_activity_date

            mutate(record, now)
            record.stats.total_study_time_seconds += time_spent_seconds
            recompute_stats(record, self.pass_threshold)
            update_streak(record.stats, previous_activity, now)
            # Skewed timestamps never move last activity backwards
            record.stats.last_activity_date = max(previous_activity, now)
            record.updated_at = now

            record = await self.repository.save(record)
            return await self._unlock_achievements(record, now)

    async def _unlock_achievements(
        self, record: ProgressRecord, now: datetime
    ) -> ProgressUpdate:
        candidate = record.model_copy(deep=True)
        unlocked = self.achievements.evaluate(candidate, now)
        if not unlocked:
            return ProgressUpdate(progress=record)

        try:
            saved = await self.repository.save(candidate)
        except ServiceError as e:
            ids = ", ".join(a.achievement_id.value for a in unlocked)
            logger.error(
                f"Achievement unlock persistence failed for {record.learner_id} "
                f"[{ids}]: {e.message}; will retry on next activity"
            )
            return ProgressUpdate(progress=record)

        return ProgressUpdate(progress=saved, new_achievements=unlocked)

    @staticmethod
    def _require_learner(learner_id: str) -> None:
        if not learner_id:
            raise AuthenticationError("Learner identity is required")

    @staticmethod
    def _require_non_negative(time_spent_seconds: int) -> None:
        if time_spent_seconds < 0:
            raise ValidationError(
                "time_spent_seconds cannot be negative",
                details={"time_spent_seconds": time_spent_seconds},
            )
