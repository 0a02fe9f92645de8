"""
Learner Progress Services

The progress and achievement engine: per-learner records of completed and
viewed content and quiz attempts, derived stats, daily streaks and
one-time achievements.

Modules:
- repository: Load/create/persist one record per learner (SQL, in-memory)
- recorders: Completion/view and quiz-attempt collection mutations
- stats: Derived counters recomputed from raw collections
- streak: Consecutive-day streak transitions
- achievements: Achievement table and unlock evaluation
- locks: Per-learner mutation serialization (asyncio, Redis)
- service: ProgressService orchestrating all of the above

Usage:
    from progress_engine.services.progress import (
        ProgressService,
        SqlProgressRepository,
    )
"""

from progress_engine.services.progress.achievements import (
    ACHIEVEMENTS,
    AchievementDefinition,
    AchievementEngine,
)
from progress_engine.services.progress.locks import (
    InProcessLearnerLocks,
    LearnerLockManager,
    RedisLearnerLocks,
    get_lock_manager,
)
from progress_engine.services.progress.repository import (
    InMemoryProgressRepository,
    ProgressRepository,
    SqlProgressRepository,
)
from progress_engine.services.progress.service import ProgressService
from progress_engine.services.progress.stats import recompute_stats
from progress_engine.services.progress.streak import update_streak

__all__ = [
    # Achievements
    "ACHIEVEMENTS",
    "AchievementDefinition",
    "AchievementEngine",
    # Locks
    "InProcessLearnerLocks",
    "LearnerLockManager",
    "RedisLearnerLocks",
    "get_lock_manager",
    # Repositories
    "InMemoryProgressRepository",
    "ProgressRepository",
    "SqlProgressRepository",
    # Service
    "ProgressService",
    "recompute_stats",
    "update_streak",
]
