"""
Rate Limiting Middleware

Prevents abuse and ensures fair resource usage using SlowAPI.

Usage:
    from progress_engine.middleware.rate_limit import limiter
    from progress_engine.enums import RateLimitType
    from progress_engine.config import settings

    @router.post("/topic/complete")
    @limiter.limit(settings.get_rate_limit(RateLimitType.WRITE))
    async def complete_topic(request: Request, ...):
        ...

Rate limit configurations (from settings):
- DEFAULT: Read endpoints (100/minute)
- WRITE: Activity-recording endpoints (60/minute)

Clients are keyed by learner id when the auth gateway supplied one, so
learners behind a shared NAT do not throttle each other.
"""

import logging

from fastapi import FastAPI, Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from progress_engine.config import settings
from progress_engine.enums import RateLimitType

logger = logging.getLogger(__name__)

LEARNER_ID_HEADER = "X-Learner-Id"


def get_client_identifier(request: Request) -> str:
    """
    Get client identifier for rate limiting.

    Prefers the authenticated learner id, then the X-Forwarded-For header
    if behind a proxy, otherwise the direct IP address.

    Args:
        request: FastAPI request object

    Returns:
        Learner id, client IP address or identifier
    """
    learner_id = request.headers.get(LEARNER_ID_HEADER)
    if learner_id:
        return f"learner:{learner_id.strip()}"

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Take the first IP in the chain (original client)
        return forwarded_for.split(",")[0].strip()

    return get_remote_address(request)


# Initialize limiter with default key function
limiter = Limiter(key_func=get_client_identifier, enabled=settings.RATE_LIMIT_ENABLED)


def setup_rate_limiting(app: FastAPI) -> None:
    """
    Configure rate limiting on the FastAPI app.

    RATE_LIMIT_ENABLED is the only switch; the limiter and the endpoint
    decorators read it too.

    Args:
        app: FastAPI application instance
    """
    if not settings.RATE_LIMIT_ENABLED:
        logger.info("Rate limiting disabled")
        return

    # Store limiter in app state
    app.state.limiter = limiter

    # Add exception handler for rate limit exceeded
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Add middleware
    app.add_middleware(SlowAPIMiddleware)

    logger.info("Rate limiting enabled")


def get_rate_limit(rate_limit_type: RateLimitType) -> str:
    """
    Get rate limit string for an endpoint type.

    Args:
        rate_limit_type: RateLimitType enum value

    Returns:
        Rate limit string (e.g., "100/minute")
    """
    return settings.get_rate_limit(rate_limit_type)


def limit_write(func):
    """Decorator for activity-recording endpoints."""
    if not settings.RATE_LIMIT_ENABLED:
        return func
    return limiter.limit(get_rate_limit(RateLimitType.WRITE))(func)


def limit_read(func):
    """Decorator for read endpoints."""
    if not settings.RATE_LIMIT_ENABLED:
        return func
    return limiter.limit(get_rate_limit(RateLimitType.DEFAULT))(func)
