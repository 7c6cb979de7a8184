"""Service health: process liveness, store readiness and build info.

Readiness only requires the database, which holds quizzes, attempts and the
reward ledger. Redis backs rate limiting and badge events; when it is not
configured those features are skipped, so it is reported but never fatal.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.config import get_settings
from academy.database import get_session
from academy.db.models import Badge
from academy.redis_client import get_redis_or_none

router = APIRouter()

SERVICE_NAME = "academy-api"


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Check the academy stores.

    The database check reads the badge catalog, so a reachable server with
    missing tables still reports an error. ``badge_catalog`` is the number of
    badges synced from the milestone config.
    """
    checks: dict[str, str] = {}
    badge_count: int | None = None

    try:
        badge_count = (await db.execute(select(func.count()).select_from(Badge))).scalar_one()
        checks["database"] = "ok"
    except Exception as exc:
        checks["database"] = f"error: {exc}"

    redis = get_redis_or_none()
    if redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as exc:
            checks["redis"] = f"error: {exc}"

    ready = checks["database"] == "ok" and not checks["redis"].startswith("error")
    return {
        "status": "ready" if ready else "degraded",
        "checks": checks,
        "badge_catalog": badge_count,
    }


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "service": SERVICE_NAME,
        "version": settings.app_version,
        "environment": settings.environment,
    }
