"""API Routers package."""

from progress_engine.routers import health as health_router
from progress_engine.routers import progress as progress_router

__all__ = ["health_router", "progress_router"]
