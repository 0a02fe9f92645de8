"""
Centralized enum definitions for the application.

All enums are organized by domain:
- progress.py: Content kinds, quiz modes, achievements, engine policies
- api.py: Rate limit categories

Usage:
    from progress_engine.enums import ContentKind, AchievementId

    # Or import from specific module
    from progress_engine.enums.progress import QuizMode
"""

from progress_engine.enums.api import RateLimitType
from progress_engine.enums.progress import (
    AchievementId,
    AchievementUnlockPolicy,
    ContentKind,
    LockBackend,
    QuizMode,
)

__all__ = [
    # Progress enums
    "AchievementId",
    "AchievementUnlockPolicy",
    "ContentKind",
    "LockBackend",
    "QuizMode",
    # API enums
    "RateLimitType",
]
