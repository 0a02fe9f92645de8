"""Pydantic models for the application."""

from progress_engine.models.progress import (
    CompletedTopic,
    ContentView,
    LocalizedText,
    ProgressRecord,
    ProgressStats,
    ProgressUpdate,
    QuizAttempt,
    UnlockedAchievement,
)

__all__ = [
    "CompletedTopic",
    "ContentView",
    "LocalizedText",
    "ProgressRecord",
    "ProgressStats",
    "ProgressUpdate",
    "QuizAttempt",
    "UnlockedAchievement",
]
