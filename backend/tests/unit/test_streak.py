"""
Unit tests for the daily activity streak.

Tests streak transitions for same-day, next-day, gap and out-of-order
activity, and the longest-streak high-water mark.
"""

from datetime import timedelta

import pytest

from progress_engine.models.progress import ProgressStats
from progress_engine.services.progress.streak import days_between, update_streak

from tests.conftest import BASE_TIME


def _stats(streak: int = 0, longest: int = 0) -> ProgressStats:
    return ProgressStats(
        streak=streak,
        longest_streak=longest,
        last_activity_date=BASE_TIME,
    )


class TestDaysBetween:
    """Tests for whole-day differences."""

    @pytest.mark.parametrize(
        "delta,expected",
        [
            pytest.param(timedelta(0), 0, id="same_instant"),
            pytest.param(timedelta(hours=23, minutes=59), 0, id="just_under_a_day"),
            pytest.param(timedelta(days=1), 1, id="exactly_one_day"),
            pytest.param(timedelta(days=1, hours=12), 1, id="a_day_and_a_half"),
            pytest.param(timedelta(days=3), 3, id="three_days"),
            pytest.param(timedelta(hours=-1), -1, id="slightly_in_the_past"),
        ],
    )
    def test_floors_elapsed_days(self, delta, expected):
        assert days_between(BASE_TIME, BASE_TIME + delta) == expected


class TestUpdateStreak:
    """Tests for streak transitions."""

    def test_first_activity_starts_streak(self):
        stats = _stats()

        update_streak(stats, BASE_TIME, BASE_TIME)

        assert stats.streak == 1
        assert stats.longest_streak == 1

    def test_first_activity_after_gap_starts_streak(self):
        stats = _stats()

        update_streak(stats, BASE_TIME, BASE_TIME + timedelta(days=5))

        assert stats.streak == 1

    def test_same_day_does_not_double_count(self):
        stats = _stats(streak=4, longest=4)

        update_streak(stats, BASE_TIME, BASE_TIME + timedelta(hours=12))

        assert stats.streak == 4
        assert stats.longest_streak == 4

    def test_next_day_extends_streak(self):
        stats = _stats(streak=4, longest=4)

        update_streak(stats, BASE_TIME, BASE_TIME + timedelta(days=1))

        assert stats.streak == 5
        assert stats.longest_streak == 5

    def test_gap_resets_streak_to_one(self):
        stats = _stats(streak=5, longest=5)

        update_streak(stats, BASE_TIME, BASE_TIME + timedelta(days=3))

        assert stats.streak == 1

    def test_reset_keeps_longest_streak(self):
        stats = _stats(streak=5, longest=8)

        update_streak(stats, BASE_TIME, BASE_TIME + timedelta(days=2))

        assert stats.streak == 1
        assert stats.longest_streak == 8

    def test_extension_below_longest_keeps_longest(self):
        stats = _stats(streak=2, longest=8)

        update_streak(stats, BASE_TIME, BASE_TIME + timedelta(days=1))

        assert stats.streak == 3
        assert stats.longest_streak == 8

    def test_activity_before_previous_leaves_streak_unchanged(self):
        stats = _stats(streak=3, longest=6)

        update_streak(stats, BASE_TIME, BASE_TIME - timedelta(days=2))

        assert stats.streak == 3
        assert stats.longest_streak == 6

    def test_consecutive_days_accumulate(self):
        stats = _stats()
        previous = BASE_TIME

        for day in range(10):
            now = BASE_TIME + timedelta(days=day)
            update_streak(stats, previous, now)
            previous = now

        assert stats.streak == 10
        assert stats.longest_streak == 10
