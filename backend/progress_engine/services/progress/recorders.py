"""
Completion and Quiz Result Recorders

In-memory mutations of the raw event collections on a progress record.
They do not touch derived stats, streaks or persistence; ProgressService
sequences those around them.

Completion recording is one algorithm shared by every content kind: append
an event only when the item is not already in that kind's collection.
Quiz attempts are always appended, since retakes are part of the history.
"""

import logging
from datetime import datetime

from progress_engine.enums.progress import ContentKind, QuizMode
from progress_engine.models.progress import (
    CompletedTopic,
    ContentView,
    ProgressRecord,
    QuizAttempt,
)

logger = logging.getLogger(__name__)


def record_completion(
    record: ProgressRecord,
    kind: ContentKind,
    ref_id: str,
    time_spent_seconds: int,
    now: datetime,
) -> bool:
    """
    Append a first-time completion/view event for a content item.

    Args:
        record: Progress record to mutate.
        kind: Content kind, selecting the target collection.
        ref_id: Catalog identifier of the item.
        time_spent_seconds: Time spent on this visit.
        now: Event timestamp.

    Returns:
        True if a new event was appended, False if the item was already
        recorded (the collection is left untouched).
    """
    if record.has_viewed(kind, ref_id):
        logger.debug(f"{kind.value} {ref_id} already recorded for {record.learner_id}")
        return False

    if kind == ContentKind.TOPIC:
        record.completed_topics.append(
            CompletedTopic(
                topic_id=ref_id,
                completed_at=now,
                time_spent_seconds=time_spent_seconds,
            )
        )
    else:
        record.views_for(kind).append(
            ContentView(
                ref_id=ref_id,
                viewed_at=now,
                time_spent_seconds=time_spent_seconds,
            )
        )
    return True


def record_quiz_attempt(
    record: ProgressRecord,
    quiz_id: str,
    score: float,
    total_questions: int,
    correct_answers: int,
    time_spent_seconds: int,
    mode: QuizMode,
    now: datetime,
) -> QuizAttempt:
    """
    Append a quiz attempt unconditionally.

    Returns:
        The appended attempt.
    """
    attempt = QuizAttempt(
        quiz_id=quiz_id,
        score=score,
        total_questions=total_questions,
        correct_answers=correct_answers,
        completed_at=now,
        time_spent_seconds=time_spent_seconds,
        mode=mode,
    )
    record.completed_quizzes.append(attempt)
    return attempt
