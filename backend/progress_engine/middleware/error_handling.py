"""
Error Handling Middleware

Provides consistent, informative error responses across the API.

Features:
- Standardized error response format
- Correlation IDs for log tracking
- Sanitized responses (hides internal details in production)
- Custom exception classes for the progress engine's failure modes

Usage:
    from progress_engine.middleware.error_handling import (
        ErrorHandlingMiddleware,
        ProgressStoreError,
    )

    # Add middleware to app
    app.add_middleware(ErrorHandlingMiddleware)

    # Raise custom exceptions
    raise ProgressStoreError("Progress store unavailable")

Exception handling hierarchy:
    - HTTPException: Re-raised for FastAPI's built-in handler
    - ServiceError: Custom exceptions → structured JSON response
    - Exception: Catch-all for unexpected errors → sanitized response

Retryable errors (ProgressStoreError, ConcurrentUpdateError,
LockTimeoutError) carry `retryable=True` in their details so clients can
resend the same request; the engine itself never retries.
"""

import functools
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, TypeVar
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Custom Exceptions
# =============================================================================


class ServiceError(Exception):
    """
    Base exception for service errors.

    Provides consistent error handling with:
    - HTTP status code
    - Error code for categorization
    - Optional details for debugging

    Example:
        raise ServiceError("Database connection failed", status_code=503)
    """

    status_code: int = 500
    error_code: str = "service_error"
    retryable: bool = False

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        if error_code:
            self.error_code = error_code
        self.details = details


class AuthenticationError(ServiceError):
    """
    Missing or invalid caller identity.

    Raised before the engine runs when no learner id or a bad API key
    is supplied.
    """

    status_code = 401
    error_code = "unauthorized"


class ValidationError(ServiceError):
    """
    Data validation error.

    Raised when input data fails semantic validation.
    """

    status_code = 422
    error_code = "validation_error"


class ProgressStoreError(ServiceError):
    """
    Progress store failure.

    Raised when the persistence layer is unreachable or rejects a write.
    The record stays in its last successfully persisted state.
    """

    status_code = 503
    error_code = "progress_store_unavailable"
    retryable = True


class ConcurrentUpdateError(ServiceError):
    """
    Optimistic concurrency conflict.

    Raised when a save carries a version older than the stored one,
    meaning another request wrote the record after it was loaded.
    """

    status_code = 409
    error_code = "concurrent_update"
    retryable = True


class LockTimeoutError(ServiceError):
    """
    Per-learner lock not acquired in time.

    Raised when another request for the same learner holds the lock
    longer than the configured blocking timeout.
    """

    status_code = 503
    error_code = "learner_busy"
    retryable = True


# =============================================================================
# Error Handling Middleware
# =============================================================================


def _error_content(
    error_code: str,
    message: str,
    error_id: str,
    details: Optional[dict] = None,
) -> dict[str, Any]:
    return {
        "error": error_code,
        "message": message,
        "error_id": error_id,
        "details": details,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    - Catches unhandled exceptions
    - Logs with correlation ID
    - Returns consistent error format
    - Hides internal details in production
    """

    def __init__(self, app, debug: bool = False):
        """
        Initialize middleware.

        Args:
            app: FastAPI/Starlette application
            debug: Whether to include stack traces in responses
        """
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        """Process request and handle any errors."""
        error_id = str(uuid4())[:8]

        try:
            response = await call_next(request)
            return response

        except HTTPException:
            # Let FastAPI handle HTTP exceptions
            raise

        except ServiceError as e:
            log = logger.warning if e.status_code < 500 else logger.error
            log(
                f"[{error_id}] {e.error_code}: {e.message}",
                extra={
                    "error_id": error_id,
                    "error_code": e.error_code,
                    "path": request.url.path,
                    "method": request.method,
                    "details": e.details,
                },
            )

            details = dict(e.details or {}) if self.debug else {}
            if e.retryable:
                details["retryable"] = True

            return JSONResponse(
                status_code=e.status_code,
                content=_error_content(
                    e.error_code, e.message, error_id, details or None
                ),
            )

        except Exception as e:
            # Log full traceback for unexpected errors
            logger.error(
                f"[{error_id}] Unhandled error: {type(e).__name__}: {e}",
                extra={
                    "error_id": error_id,
                    "path": request.url.path,
                    "method": request.method,
                    "traceback": traceback.format_exc(),
                },
            )

            details = None
            if self.debug:
                details = {
                    "exception": type(e).__name__,
                    "message": str(e),
                    "traceback": traceback.format_exc(),
                }

            return JSONResponse(
                status_code=500,
                content=_error_content(
                    "internal_server_error",
                    "An unexpected error occurred",
                    error_id,
                    details,
                ),
            )


# =============================================================================
# Setup Function
# =============================================================================


def setup_error_handling(app: FastAPI, debug: bool = False) -> None:
    """
    Configure error handling on the FastAPI app.

    Args:
        app: FastAPI application instance
        debug: Whether to include stack traces in responses
    """
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    logger.info(f"Error handling middleware enabled (debug={debug})")


# =============================================================================
# Endpoint Decorator
# =============================================================================


def handle_endpoint_errors(
    operation: str,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Wrap an endpoint so unexpected failures surface as ServiceError.

    HTTPException and ServiceError pass through untouched; anything else
    is logged with the operation name and re-raised as a generic 500
    ServiceError chained to the original exception.

    Args:
        operation: Human-readable operation name used in logs and messages.
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except (HTTPException, ServiceError):
                raise
            except Exception as e:
                logger.exception(f"{operation} failed: {e}")
                raise ServiceError(f"{operation} failed") from e

        return wrapper

    return decorator
