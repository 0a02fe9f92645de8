"""
Achievement Rules and Evaluation

Gamification rules that unlock one-time badges from a learner's progress.

Each achievement is a fixed definition pairing an AchievementId with one or
more typed requirements (metric function over the record + target value).
Definitions are evaluated in table order on every mutation; an achievement
is appended to the record when all its requirements hold and it is not
already unlocked, so every id is unlocked at most once and never removed.

Unlock policy (settings.ACHIEVEMENT_UNLOCK_POLICY):
    THRESHOLD: metric >= target. A counter that jumps past a target in a
        single update (bulk import, data migration) still unlocks it.
    EXACT: metric == target for counter milestones. A counter that skips
        the target value never unlocks it. Requirements flagged
        `always_threshold` (score averages, minimum counts) compare with
        >= under both policies.

Usage:
    from progress_engine.services.progress.achievements import AchievementEngine

    engine = AchievementEngine()
    unlocked = engine.evaluate(record, now)
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from progress_engine.config import settings
from progress_engine.enums.progress import AchievementId, AchievementUnlockPolicy
from progress_engine.models.progress import (
    AchievementCatalogResponse,
    AchievementStatus,
    LocalizedText,
    ProgressRecord,
    UnlockedAchievement,
)

logger = logging.getLogger(__name__)

Metric = Callable[[ProgressRecord], float]


# ===========================================
# Metrics
# ===========================================


def topics_completed(record: ProgressRecord) -> float:
    return record.stats.total_topics_completed


def quizzes_passed(record: ProgressRecord) -> float:
    return record.stats.total_quizzes_passed


def current_streak(record: ProgressRecord) -> float:
    return record.stats.streak


def average_quiz_score(record: ProgressRecord) -> float:
    return record.stats.average_quiz_score


def protocols_viewed(record: ProgressRecord) -> float:
    return len(record.viewed_protocols)


# ===========================================
# Definitions
# ===========================================


@dataclass(frozen=True)
class Requirement:
    """One metric that must reach a target."""

    metric: Metric
    target: float
    always_threshold: bool = False

    def is_met(self, record: ProgressRecord, policy: AchievementUnlockPolicy) -> bool:
        value = self.metric(record)
        if policy == AchievementUnlockPolicy.EXACT and not self.always_threshold:
            return value == self.target
        return value >= self.target

    def ratio(self, record: ProgressRecord) -> float:
        """Fraction of the target reached, capped at 1."""
        if self.target <= 0:
            return 1.0
        return min(self.metric(record) / self.target, 1.0)


@dataclass(frozen=True)
class AchievementDefinition:
    """
    A badge and the requirements that unlock it.

    Attributes:
        achievement_id: Stable identifier stored on the record.
        title: Localized badge title.
        description: Localized badge description.
        icon: Emoji shown next to the badge.
        requirements: All must hold for the badge to unlock. The first
            one is the headline metric reported by the catalog.
    """

    achievement_id: AchievementId
    title: LocalizedText
    description: LocalizedText
    icon: str
    requirements: tuple[Requirement, ...]

    def is_met(self, record: ProgressRecord, policy: AchievementUnlockPolicy) -> bool:
        return all(r.is_met(record, policy) for r in self.requirements)

    def to_unlocked(self, now: datetime) -> UnlockedAchievement:
        return UnlockedAchievement(
            achievement_id=self.achievement_id,
            unlocked_at=now,
            title=self.title,
            description=self.description,
            icon=self.icon,
        )


def _text(ru: str, ro: str) -> LocalizedText:
    return LocalizedText(ru=ru, ro=ro)


ACHIEVEMENTS: tuple[AchievementDefinition, ...] = (
    AchievementDefinition(
        achievement_id=AchievementId.FIRST_TOPIC,
        title=_text("Первые шаги", "Primii pași"),
        description=_text("Изучена первая тема", "Prima temă studiată"),
        icon="🎯",
        requirements=(Requirement(topics_completed, 1),),
    ),
    AchievementDefinition(
        achievement_id=AchievementId.TEN_TOPICS,
        title=_text("Прилежный ученик", "Elev silitor"),
        description=_text("Изучено 10 тем", "10 teme studiate"),
        icon="📚",
        requirements=(Requirement(topics_completed, 10),),
    ),
    AchievementDefinition(
        achievement_id=AchievementId.FIFTY_TOPICS,
        title=_text("Эксперт", "Expert"),
        description=_text("Изучено 50 тем", "50 de teme studiate"),
        icon="🏆",
        requirements=(Requirement(topics_completed, 50),),
    ),
    AchievementDefinition(
        achievement_id=AchievementId.FIRST_QUIZ,
        title=_text("Первое испытание", "Prima probă"),
        description=_text("Пройден первый тест", "Primul test trecut"),
        icon="✅",
        requirements=(Requirement(quizzes_passed, 1),),
    ),
    AchievementDefinition(
        achievement_id=AchievementId.TEN_QUIZZES,
        title=_text("Тестовый гуру", "Guru testelor"),
        description=_text("Пройдено 10 тестов", "10 teste trecute"),
        icon="💯",
        requirements=(Requirement(quizzes_passed, 10),),
    ),
    AchievementDefinition(
        achievement_id=AchievementId.SEVEN_DAY_STREAK,
        title=_text("Неделя обучения", "O săptămână de studiu"),
        description=_text("7 дней активности подряд", "7 zile de activitate consecutivă"),
        icon="🔥",
        requirements=(Requirement(current_streak, 7),),
    ),
    AchievementDefinition(
        achievement_id=AchievementId.THIRTY_DAY_STREAK,
        title=_text("Железная воля", "Voință de fier"),
        description=_text("30 дней активности подряд", "30 de zile de activitate consecutivă"),
        icon="💪",
        requirements=(Requirement(current_streak, 30),),
    ),
    AchievementDefinition(
        achievement_id=AchievementId.EXCELLENT_STUDENT,
        title=_text("Отличник", "Elev excelent"),
        description=_text("Средний балл 90+", "Media 90+"),
        icon="⭐",
        requirements=(
            Requirement(
                average_quiz_score,
                settings.EXCELLENT_STUDENT_MIN_AVERAGE,
                always_threshold=True,
            ),
            Requirement(
                quizzes_passed,
                settings.EXCELLENT_STUDENT_MIN_PASSED,
                always_threshold=True,
            ),
        ),
    ),
    AchievementDefinition(
        achievement_id=AchievementId.TEN_PROTOCOLS,
        title=_text("Мастер протоколов", "Maestru protocoale"),
        description=_text("Изучено 10 протоколов массажа", "10 protocoale de masaj studiate"),
        icon="💆",
        requirements=(Requirement(protocols_viewed, 10),),
    ),
)


# ===========================================
# Engine
# ===========================================


class AchievementEngine:
    """
    Evaluates achievement definitions against a progress record.

    Pure in-memory logic: persisting the unlocked achievements is the
    caller's job.
    """

    def __init__(
        self,
        policy: Optional[AchievementUnlockPolicy] = None,
        definitions: tuple[AchievementDefinition, ...] = ACHIEVEMENTS,
    ):
        """
        Initialize the achievement engine.

        Args:
            policy: Unlock policy; defaults to settings.ACHIEVEMENT_UNLOCK_POLICY.
            definitions: Ordered achievement table.
        """
        self.policy = policy or settings.ACHIEVEMENT_UNLOCK_POLICY
        self.definitions = definitions

    def evaluate(self, record: ProgressRecord, now: datetime) -> list[UnlockedAchievement]:
        """
        Unlock every achievement whose requirements now hold.

        Appends newly unlocked achievements to `record.achievements` in
        definition order. Already unlocked ids are skipped.

        Args:
            record: Progress record with freshly recomputed stats.
            now: Unlock timestamp.

        Returns:
            The achievements unlocked by this call (possibly empty).
        """
        unlocked = []
        for definition in self.definitions:
            if record.has_achievement(definition.achievement_id):
                continue
            if not definition.is_met(record, self.policy):
                continue

            achievement = definition.to_unlocked(now)
            record.achievements.append(achievement)
            unlocked.append(achievement)
            logger.info(
                f"Learner {record.learner_id} unlocked {definition.achievement_id.value}"
            )

        return unlocked

    def catalog(self, record: ProgressRecord) -> AchievementCatalogResponse:
        """
        Describe every achievement with the learner's progress towards it.

        Args:
            record: Progress record to report on.

        Returns:
            AchievementCatalogResponse in definition order.
        """
        unlocked_at = {a.achievement_id: a.unlocked_at for a in record.achievements}
        entries = []

        for definition in self.definitions:
            headline = definition.requirements[0]
            is_unlocked = definition.achievement_id in unlocked_at
            ratio = 1.0 if is_unlocked else min(
                r.ratio(record) for r in definition.requirements
            )
            entries.append(
                AchievementStatus(
                    achievement_id=definition.achievement_id,
                    title=definition.title,
                    description=definition.description,
                    icon=definition.icon,
                    unlocked=is_unlocked,
                    unlocked_at=unlocked_at.get(definition.achievement_id),
                    current_value=headline.metric(record),
                    target_value=headline.target,
                    percentage=round(max(ratio, 0.0) * 100, 1),
                )
            )

        return AchievementCatalogResponse(
            achievements=entries,
            unlocked_count=sum(1 for e in entries if e.unlocked),
            total_count=len(entries),
        )
