"""
Middleware Package

Provides FastAPI middleware for:
- Rate limiting
- Error handling

Rate limiting usage:
    from progress_engine.middleware import limiter
    from progress_engine.enums import RateLimitType
    from progress_engine.config import settings

    @limiter.limit(settings.get_rate_limit(RateLimitType.WRITE))
    async def my_endpoint(request: Request):
        ...
"""

from progress_engine.middleware.rate_limit import setup_rate_limiting, limiter, get_rate_limit
from progress_engine.middleware.error_handling import (
    ErrorHandlingMiddleware,
    ServiceError,
    setup_error_handling,
)

__all__ = [
    "setup_rate_limiting",
    "limiter",
    "get_rate_limit",
    "ErrorHandlingMiddleware",
    "ServiceError",
    "setup_error_handling",
]
