"""
Learner Progress Enums

Defines enums for trackable content kinds, quiz modes, achievements and
the runtime policies of the progress engine.
"""

from enum import Enum


class ContentKind(str, Enum):
    """
    Kinds of catalog content whose completion or viewing is tracked.

    Each kind maps to exactly one collection on the progress record.
    Only TOPIC counts towards topic-based achievements.
    """

    TOPIC = "topic"
    PROTOCOL = "protocol"  # Massage protocols
    GUIDELINE = "guideline"  # Hygiene guidelines
    MODEL_3D = "model_3d"  # Anatomy 3D models
    TRIGGER_POINT = "trigger_point"


class QuizMode(str, Enum):
    """Mode a quiz attempt was taken in."""

    PRACTICE = "practice"
    EXAM = "exam"


class AchievementId(str, Enum):
    """
    Closed set of unlockable achievements.

    Values are the stable identifiers stored on the progress record and
    returned to clients, so they must never change once released.
    """

    FIRST_TOPIC = "first-topic"
    TEN_TOPICS = "10-topics"
    FIFTY_TOPICS = "50-topics"
    FIRST_QUIZ = "first-quiz"
    TEN_QUIZZES = "10-quizzes"
    SEVEN_DAY_STREAK = "7-day-streak"
    THIRTY_DAY_STREAK = "30-day-streak"
    EXCELLENT_STUDENT = "excellent-student"
    TEN_PROTOCOLS = "10-protocols"


class AchievementUnlockPolicy(str, Enum):
    """
    How counter-based achievement rules compare against their target.

    THRESHOLD unlocks once the metric reaches or passes the target, so a
    counter that jumps over the target (bulk import, migration) still
    unlocks. EXACT only unlocks when the metric equals the target.
    """

    THRESHOLD = "threshold"
    EXACT = "exact"


class LockBackend(str, Enum):
    """Backend used to serialize mutations for a single learner."""

    MEMORY = "memory"  # asyncio locks, single worker process
    REDIS = "redis"  # Distributed locks across workers
