"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated.

Usage:
    from progress_engine.config import settings

    # Access settings
    db_url = settings.POSTGRES_URL
    threshold = settings.QUIZ_PASS_THRESHOLD
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings

from progress_engine.enums.api import RateLimitType
from progress_engine.enums.progress import AchievementUnlockPolicy, LockBackend


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Learner Progress Engine"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # PostgreSQL
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "progress"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "progress"

    @property
    def POSTGRES_URL(self) -> str:
        """Async PostgreSQL connection URL."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def POSTGRES_URL_SYNC(self) -> str:
        """Sync PostgreSQL connection URL for schema management scripts."""
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Redis (distributed per-learner locks)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Service-to-service API key. Empty disables the check (development mode).
    API_KEY: str = ""

    # Quiz statistics
    QUIZ_PASS_THRESHOLD: int = 60

    # Achievement rules
    ACHIEVEMENT_UNLOCK_POLICY: AchievementUnlockPolicy = AchievementUnlockPolicy.THRESHOLD
    EXCELLENT_STUDENT_MIN_AVERAGE: int = 90
    EXCELLENT_STUDENT_MIN_PASSED: int = 5

    # Per-learner serialization
    # memory: asyncio locks, valid for a single worker process
    # redis: distributed locks shared by every worker
    PROGRESS_LOCK_BACKEND: LockBackend = LockBackend.MEMORY
    PROGRESS_LOCK_TIMEOUT_SECONDS: float = 10.0  # Auto-release for crashed holders
    PROGRESS_LOCK_BLOCKING_TIMEOUT_SECONDS: float = 5.0

    # Rate limiting (slowapi format)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100/minute"
    RATE_LIMIT_WRITE: str = "60/minute"

    def get_rate_limit(self, rate_limit_type: RateLimitType) -> str:
        """
        Get the rate limit string for an endpoint category.

        Args:
            rate_limit_type: Endpoint category.

        Returns:
            Rate limit string (e.g., "100/minute").
        """
        limits = {
            RateLimitType.DEFAULT: self.RATE_LIMIT_DEFAULT,
            RateLimitType.WRITE: self.RATE_LIMIT_WRITE,
        }
        return limits.get(rate_limit_type, self.RATE_LIMIT_DEFAULT)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()
