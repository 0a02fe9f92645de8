"""
Learner Progress Models (Pydantic)

Domain and API schemas for the learner progress engine:
- The per-learner progress record (raw events, derived stats, achievements)
- Request bodies for the activity-recording endpoints
- Responses returned after a mutation and by the achievement catalog

ARCHITECTURE NOTE:
    ProgressRecord is the whole document persisted per learner.
    There is a corresponding SQLAlchemy row: progress_engine/db/models_progress.py
    which stores this document as JSON next to an optimistic-lock version.

    Data flows: API Request → Pydantic → ProgressService → Repository → Database

API Contract:
    Request models use StrictRequest (extra="forbid") to reject unknown fields.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from progress_engine.enums.progress import AchievementId, ContentKind, QuizMode
from progress_engine.models.base import StrictRequest, StrictResponse


# ===========================================
# Progress Record Building Blocks
# ===========================================


class LocalizedText(BaseModel):
    """Text shown to learners in every supported UI language."""

    ru: str
    ro: str


class CompletedTopic(BaseModel):
    """A topic the learner finished. Unique per topic_id within a record."""

    topic_id: str
    completed_at: datetime
    time_spent_seconds: int = 0


class ContentView(BaseModel):
    """
    A catalog item (protocol, guideline, 3D model, trigger point) the
    learner opened. Unique per ref_id within its collection.
    """

    ref_id: str
    viewed_at: datetime
    time_spent_seconds: int = 0


class QuizAttempt(BaseModel):
    """
    One quiz attempt.

    Re-attempts of the same quiz are all retained, so quiz_id is not unique.
    """

    quiz_id: str
    score: float = Field(..., ge=0, le=100, description="Percentage score")
    total_questions: int = Field(..., ge=0)
    correct_answers: int = Field(..., ge=0)
    completed_at: datetime
    time_spent_seconds: int = 0
    mode: QuizMode = QuizMode.PRACTICE


class UnlockedAchievement(BaseModel):
    """An achievement the learner unlocked. Write-once, unique per id."""

    achievement_id: AchievementId
    unlocked_at: datetime
    title: LocalizedText
    description: LocalizedText
    icon: str


class ProgressStats(BaseModel):
    """
    Derived statistics snapshot.

    Everything except total_study_time_seconds and the streak fields is
    recomputed from the raw collections on every mutation, so the snapshot
    can always be reproduced from the record's events.
    """

    total_study_time_seconds: int = 0
    streak: int = 0  # Current consecutive-day count
    longest_streak: int = 0
    last_activity_date: datetime
    total_topics_completed: int = 0
    total_quizzes_passed: int = 0
    average_quiz_score: int = 0


# ===========================================
# Progress Record
# ===========================================


class ProgressRecord(BaseModel):
    """
    Per-learner aggregate of raw study events, derived stats and achievements.

    Exactly one record exists per learner. It is loaded, mutated in memory
    and written back whole, so derived stats and achievement rules always
    see a consistent view of every collection.

    Attributes:
        learner_id: Identity of the owning learner (opaque string).
        version: Optimistic concurrency counter, bumped by every save.
        completed_topics: Finished topics, unique per topic_id.
        viewed_protocols: Opened massage protocols, unique per ref_id.
        viewed_guidelines: Opened hygiene guidelines, unique per ref_id.
        viewed_3d_models: Opened anatomy 3D models, unique per ref_id.
        viewed_trigger_points: Opened trigger points, unique per ref_id.
        completed_quizzes: Every quiz attempt, append-only.
        achievements: Unlocked achievements in unlock order.
        stats: Derived statistics snapshot.
    """

    learner_id: str
    version: int = 0
    created_at: datetime
    updated_at: datetime

    completed_topics: list[CompletedTopic] = Field(default_factory=list)
    viewed_protocols: list[ContentView] = Field(default_factory=list)
    viewed_guidelines: list[ContentView] = Field(default_factory=list)
    viewed_3d_models: list[ContentView] = Field(default_factory=list)
    viewed_trigger_points: list[ContentView] = Field(default_factory=list)
    completed_quizzes: list[QuizAttempt] = Field(default_factory=list)
    achievements: list[UnlockedAchievement] = Field(default_factory=list)

    stats: ProgressStats

    @classmethod
    def new(cls, learner_id: str, now: datetime) -> ProgressRecord:
        """Create an empty record whose last activity is `now`."""
        return cls(
            learner_id=learner_id,
            created_at=now,
            updated_at=now,
            stats=ProgressStats(last_activity_date=now),
        )

    def views_for(self, kind: ContentKind) -> list[ContentView]:
        """
        Return the view collection for a non-topic content kind.

        Raises:
            ValueError: If kind is TOPIC (topics use completed_topics).
        """
        collections = {
            ContentKind.PROTOCOL: self.viewed_protocols,
            ContentKind.GUIDELINE: self.viewed_guidelines,
            ContentKind.MODEL_3D: self.viewed_3d_models,
            ContentKind.TRIGGER_POINT: self.viewed_trigger_points,
        }
        if kind not in collections:
            raise ValueError(f"{kind.value} has no view collection")
        return collections[kind]

    def has_completed_topic(self, topic_id: str) -> bool:
        return any(t.topic_id == topic_id for t in self.completed_topics)

    def has_viewed(self, kind: ContentKind, ref_id: str) -> bool:
        """Check whether a content item is already in its collection."""
        if kind == ContentKind.TOPIC:
            return self.has_completed_topic(ref_id)
        return any(v.ref_id == ref_id for v in self.views_for(kind))

    def has_achievement(self, achievement_id: AchievementId) -> bool:
        return any(a.achievement_id == achievement_id for a in self.achievements)


class ProgressUpdate(BaseModel):
    """Result of one recorder call: the persisted record and fresh unlocks."""

    progress: ProgressRecord
    new_achievements: list[UnlockedAchievement] = Field(default_factory=list)


# ===========================================
# Request Models
# ===========================================


class CompleteTopicRequest(StrictRequest):
    """Request to mark a topic as completed."""

    topic_id: str = Field(..., min_length=1)
    time_spent_seconds: int = Field(0, ge=0)


class ViewProtocolRequest(StrictRequest):
    """Request to mark a massage protocol as viewed."""

    protocol_id: str = Field(..., min_length=1)
    time_spent_seconds: int = Field(0, ge=0)


class ViewGuidelineRequest(StrictRequest):
    """Request to mark a hygiene guideline as viewed."""

    guideline_id: str = Field(..., min_length=1)


class View3DModelRequest(StrictRequest):
    """Request to mark an anatomy 3D model as viewed."""

    # model_id clashes with pydantic's reserved "model_" prefix
    model_config = ConfigDict(protected_namespaces=())

    model_id: str = Field(..., min_length=1)


class ViewTriggerPointRequest(StrictRequest):
    """Request to mark a trigger point as viewed."""

    trigger_point_id: str = Field(..., min_length=1)


class QuizResultRequest(StrictRequest):
    """
    Request to record a quiz attempt.

    Note: Uses StrictRequest - unknown fields will be rejected with 422.
    """

    quiz_id: str = Field(..., min_length=1)
    score: float = Field(..., ge=0, le=100, description="Percentage score 0-100")
    total_questions: int = Field(..., ge=0)
    correct_answers: int = Field(..., ge=0)
    time_spent_seconds: int = Field(0, ge=0)
    mode: QuizMode = QuizMode.PRACTICE

    @model_validator(mode="after")
    def check_answer_counts(self) -> QuizResultRequest:
        if self.correct_answers > self.total_questions:
            raise ValueError("correct_answers cannot exceed total_questions")
        return self


# ===========================================
# Response Models
# ===========================================


class ProgressUpdateResponse(StrictResponse):
    """Response for every activity-recording endpoint."""

    message: str
    progress: ProgressRecord
    new_achievements: list[UnlockedAchievement] = Field(default_factory=list)


class AchievementStatus(StrictResponse):
    """
    Catalog entry for one achievement with the learner's progress towards it.

    For compound rules (excellent-student) current/target describe the
    average-score part; the passed-quiz requirement is folded into
    percentage.
    """

    achievement_id: AchievementId
    title: LocalizedText
    description: LocalizedText
    icon: str
    unlocked: bool
    unlocked_at: Optional[datetime] = None
    current_value: float
    target_value: float
    percentage: float = Field(..., ge=0, le=100)


class AchievementCatalogResponse(StrictResponse):
    """Every achievement in display order with unlock status."""

    achievements: list[AchievementStatus]
    unlocked_count: int
    total_count: int
