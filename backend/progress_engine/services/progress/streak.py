"""
Daily Activity Streak

Transitions a learner's consecutive-day streak when new activity arrives.

The previous activity timestamp is passed in explicitly rather than read
from the stats, so callers cannot accidentally overwrite
`last_activity_date` before the transition is computed.

Transitions (days = whole 24h periods between previous activity and now):
    days < 0           → no change (clock skew, out-of-order requests)
    streak == 0        → 1 (first counted activity starts a streak)
    days == 0          → no change (same day does not double-count)
    days == 1          → streak + 1
    days > 1           → 1 (gap breaks the streak, today is day one)

longest_streak is raised to streak afterwards, so streak never exceeds it.

Usage:
    from progress_engine.services.progress.streak import update_streak

    previous = record.stats.last_activity_date
    update_streak(record.stats, previous, now)
    record.stats.last_activity_date = now
"""

import logging
import math
from datetime import datetime, timedelta

from progress_engine.models.progress import ProgressStats

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def days_between(previous: datetime, now: datetime) -> int:
    """Whole days elapsed from `previous` to `now` (floored, may be negative)."""
    return math.floor((now - previous) / ONE_DAY)


def update_streak(stats: ProgressStats, previous_activity: datetime, now: datetime) -> None:
    """
    Apply one activity event to the streak counters in place.

    Args:
        stats: Stats snapshot to update (streak and longest_streak).
        previous_activity: last_activity_date before this event.
        now: Timestamp of this event.
    """
    days = days_between(previous_activity, now)

    if days < 0:
        logger.warning(
            f"Activity at {now.isoformat()} precedes last activity "
            f"{previous_activity.isoformat()}; streak unchanged"
        )
        return

    before = stats.streak
    if stats.streak == 0:
        # First counted activity, even on the day the record was created
        stats.streak = 1
    elif days == 1:
        stats.streak += 1
    elif days > 1:
        stats.streak = 1

    stats.longest_streak = max(stats.longest_streak, stats.streak)

    if stats.streak != before:
        logger.debug(f"Streak {before} -> {stats.streak} after {days} day(s)")
