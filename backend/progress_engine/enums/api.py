"""
API-related enums.

Defines enums for rate limiting and other API concerns.
"""

from enum import Enum


class RateLimitType(str, Enum):
    """
    Rate limit categories for different endpoint types.

    Each category has a corresponding rate limit configured in settings.
    Usage:
        from progress_engine.enums import RateLimitType
        from progress_engine.config import settings

        limit = settings.get_rate_limit(RateLimitType.WRITE)
    """

    # Read endpoints
    DEFAULT = "default"

    # Endpoints that record learner activity
    WRITE = "write"
