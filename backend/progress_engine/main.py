"""
Learner Progress Engine API

Application entry point. Wires configuration, logging, middleware and
routers into a FastAPI app.

Run:
    uvicorn progress_engine.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from progress_engine.config import settings, yaml_config
from progress_engine.db.base import init_db
from progress_engine.db.redis import close_redis_pool
from progress_engine.middleware import setup_error_handling, setup_rate_limiting
from progress_engine.routers import health_router, progress_router


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for the API process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME}")
    await init_db()
    yield
    await close_redis_pool()
    logger.info(f"Stopped {settings.APP_NAME}")


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

    cors_config = yaml_config.get("cors", {})
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_config.get("allow_origins", ["*"]),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_error_handling(app, debug=settings.DEBUG)
    setup_rate_limiting(app)

    app.include_router(health_router.router)
    app.include_router(progress_router.router)

    return app


app = create_app()
