"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across the unit tests.
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from dotenv import load_dotenv

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load .env file from project root before settings are first imported
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)


# ============================================================================
# Environment Configuration
# ============================================================================

# Settings are read once at import time, so the test environment is forced
# here rather than in a fixture. These override any values from .env files.
os.environ.update(
    {
        "POSTGRES_HOST": os.environ.get("POSTGRES_HOST", "localhost"),
        "POSTGRES_PORT": os.environ.get("POSTGRES_PORT", "5432"),
        "POSTGRES_USER": os.environ.get("POSTGRES_TEST_USER", "testuser"),
        "POSTGRES_PASSWORD": os.environ.get("POSTGRES_TEST_PASSWORD", "testpass"),
        "POSTGRES_DB": os.environ.get("POSTGRES_TEST_DB", "testdb"),
        "REDIS_URL": os.environ.get("REDIS_URL", "redis://localhost:6379/1"),
        "API_KEY": "",
        "QUIZ_PASS_THRESHOLD": "60",
        "ACHIEVEMENT_UNLOCK_POLICY": "threshold",
        "PROGRESS_LOCK_BACKEND": "memory",
        "RATE_LIMIT_ENABLED": "false",
        "DEBUG": "true",
    }
)


# ============================================================================
# Clock Helpers
# ============================================================================

BASE_TIME = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock for deterministic streak and timestamp tests."""

    def __init__(self, start: datetime = BASE_TIME):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at BASE_TIME."""
    return FakeClock()


@pytest.fixture
def make_record() -> Callable:
    """
    Factory for ProgressRecord instances at BASE_TIME.

    Usage:
        record = make_record("learner-1")
    """
    from progress_engine.models.progress import ProgressRecord

    def _make(learner_id: str = "learner-1", now: datetime = BASE_TIME):
        return ProgressRecord.new(learner_id, now)

    return _make


# ============================================================================
# Mock Services
# ============================================================================


@pytest.fixture
def mock_redis() -> MagicMock:
    """
    Create a mock Redis client for unit testing.

    This allows testing Redis-dependent code without a real Redis server.
    `lock()` returns a mock lock whose acquire succeeds.
    """
    mock = MagicMock()
    mock.ping = AsyncMock(return_value=True)

    lock = MagicMock()
    lock.acquire = AsyncMock(return_value=True)
    lock.release = AsyncMock(return_value=None)
    mock.lock = MagicMock(return_value=lock)
    return mock


@pytest.fixture
def mock_db_session() -> MagicMock:
    """
    Create a mock database session for unit testing.
    """
    mock = MagicMock()
    mock.execute = AsyncMock()
    mock.commit = AsyncMock()
    mock.rollback = AsyncMock()
    mock.close = AsyncMock()
    mock.add = MagicMock()
    return mock
