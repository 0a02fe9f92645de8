"""
Statistics Aggregation

Recomputes the derived counters on a progress record from its raw event
collections. Counters are never incremented in place: every value here is
a pure function of the collections, so the snapshot cannot drift from
the data it summarizes.

Study time and streak fields are not derivable (repeat visits add time
without adding events) and are maintained by the service instead.
"""

import math
from typing import Iterable, Optional

from progress_engine.config import settings
from progress_engine.models.progress import ProgressRecord, QuizAttempt


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return math.floor(value + 0.5)


def count_passed(attempts: Iterable[QuizAttempt], pass_threshold: Optional[int] = None) -> int:
    """Number of attempts scoring at or above the pass threshold."""
    threshold = settings.QUIZ_PASS_THRESHOLD if pass_threshold is None else pass_threshold
    return sum(1 for a in attempts if a.score >= threshold)


def average_score(attempts: list[QuizAttempt]) -> int:
    """Rounded mean score over all attempts, 0 when there are none."""
    if not attempts:
        return 0
    return round_half_up(sum(a.score for a in attempts) / len(attempts))


def recompute_stats(record: ProgressRecord, pass_threshold: Optional[int] = None) -> None:
    """
    Rebuild every derivable stat on the record in place.

    Args:
        record: Progress record to update.
        pass_threshold: Minimum passing score; defaults to QUIZ_PASS_THRESHOLD.
    """
    stats = record.stats
    stats.total_topics_completed = len(record.completed_topics)
    stats.total_quizzes_passed = count_passed(record.completed_quizzes, pass_threshold)
    stats.average_quiz_score = average_score(record.completed_quizzes)
