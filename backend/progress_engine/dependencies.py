"""
FastAPI Dependencies

Common dependencies for caller identity, database sessions and the
progress service.
"""

from fastapi import Depends, Header
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from progress_engine.config import settings
from progress_engine.db.base import get_db
from progress_engine.middleware.error_handling import AuthenticationError
from progress_engine.services.progress import (
    ProgressRepository,
    ProgressService,
    SqlProgressRepository,
    get_lock_manager,
)

# API Key header scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(
    api_key: str | None = Depends(api_key_header),
) -> str:
    """
    Verify the service-to-service API key.

    If API_KEY is not configured in settings (empty string),
    authentication is disabled (development mode).

    Returns:
        str: The validated API key

    Raises:
        AuthenticationError: 401 if API key is missing or invalid
    """
    if not settings.API_KEY:
        return "dev-mode"

    if not api_key:
        raise AuthenticationError("Missing API key. Provide X-API-Key header.")

    if api_key != settings.API_KEY:
        raise AuthenticationError("Invalid API key")

    return api_key


async def get_current_learner_id(
    x_learner_id: str | None = Header(None, alias="X-Learner-Id"),
    _api_key: str = Depends(verify_api_key),
) -> str:
    """
    Resolve the authenticated learner.

    The upstream auth gateway verifies the learner's session and forwards
    the learner id in the X-Learner-Id header.

    Raises:
        AuthenticationError: 401 if no learner id was supplied
    """
    learner_id = (x_learner_id or "").strip()
    if not learner_id:
        raise AuthenticationError("Missing learner identity. Provide X-Learner-Id header.")
    return learner_id


async def get_progress_repository(
    db: AsyncSession = Depends(get_db),
) -> ProgressRepository:
    """Get the SQL-backed progress repository."""
    return SqlProgressRepository(db)


async def get_progress_service(
    repository: ProgressRepository = Depends(get_progress_repository),
) -> ProgressService:
    """Get progress service using the process-wide lock manager."""
    return ProgressService(repository, locks=get_lock_manager())


# Dependencies that can be used in routers
CurrentLearner = Depends(get_current_learner_id)
