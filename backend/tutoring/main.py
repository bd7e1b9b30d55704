# backend/tutoring/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from . import __version__
from .core.config import is_running_tests, settings
from .core.constants import BRAND_NAME
from .database import init_db
from .routes.v1 import availability as availability_v1
from .routes.v1 import balance as balance_v1
from .routes.v1 import invitations as invitations_v1
from .routes.v1 import lessons as lessons_v1

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{BRAND_NAME} lessons API starting up...")
    logger.info(f"Environment: {settings.environment}, tutor timezone: {settings.tutor_timezone}")

    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    else:
        init_db()

    yield

    logger.info(f"{BRAND_NAME} lessons API shutting down...")


def create_app() -> FastAPI:
    app = FastAPI(
        title=f"{BRAND_NAME} Lessons API",
        description="Lesson cancellation, rescheduling, availability and invitations",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )

    # Create API v1 router
    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(lessons_v1.router, prefix="/lessons")
    api_v1.include_router(availability_v1.router)
    api_v1.include_router(invitations_v1.router)
    api_v1.include_router(balance_v1.router)
    app.include_router(api_v1)

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "healthy", "version": __version__}

    return app


app = create_app()

fastapi_app = app

__all__ = ["app", "create_app", "fastapi_app"]
