"""Health check endpoints for service monitoring."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.core.config_file import get_settings
from app.core.db.deps import get_db
from app.schemas.common import StandardResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness():
    """
    Basic health check: the service is alive.

    Returns:
        Service status
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "bizflow-automation",
    }


@router.get("/ready")
async def readiness(db: Annotated[Session, Depends(get_db)]):
    """
    Full health check: the service is ready to receive traffic.

    Checks the database connection and, when rate limiting is backed by
    Redis, the Redis connection.

    Returns:
        Detailed status of each component
    """
    checks = {"database": "unknown"}

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        checks["database"] = f"unhealthy: {str(e)}"

    if get_settings().RATE_LIMIT_BACKEND == "redis":
        try:
            from app.core.redis import ping_redis

            await ping_redis()
            checks["redis"] = "healthy"
        except Exception as e:
            checks["redis"] = f"unhealthy: {str(e)}"

    all_healthy = all(status_value == "healthy" for status_value in checks.values())

    return StandardResponse(
        data={
            "status": "healthy" if all_healthy else "unhealthy",
            "checks": checks,
            "timestamp": datetime.now(UTC).isoformat(),
        }
    )
