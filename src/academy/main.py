"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from academy.config import get_settings
from academy.database import close_db, get_session, init_db
from academy.health.router import router as health_router
from academy.middleware import setup_middleware
from academy.quizzes.router import router as quizzes_router
from academy.redis_client import close_redis, init_redis
from academy.rewards.badge_service import BadgeService
from academy.rewards.router import router as rewards_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    # Reconcile the badge catalog with the milestone config (idempotent)
    try:
        async for db in get_session():
            await BadgeService(db).ensure_catalog()
            await db.commit()
            break
    except SQLAlchemyError:
        logger.warning("badge_catalog_sync_failed", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Academy API",
        description="Quiz attempts, scoring and rewards for the online course platform",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(quizzes_router)
    app.include_router(rewards_router)

    return app


app = create_app()
