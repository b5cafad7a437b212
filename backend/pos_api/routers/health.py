"""
Health check endpoints.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from pos_shared.config.settings import settings
from pos_shared.infrastructure.db import get_db
from pos_shared.infrastructure.events import check_redis_health

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "service": "pos_api",
        "environment": settings.environment,
    }


@router.get("/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    """
    Verifies connectivity to the database and Redis.
    Returns 503 when a dependency is down.
    """
    checks = {
        "service": "pos_api",
        "environment": settings.environment,
        "dependencies": {},
    }
    all_healthy = True

    try:
        db.execute(text("SELECT 1"))
        checks["dependencies"]["database"] = {"status": "healthy"}
    except Exception as e:
        checks["dependencies"]["database"] = {"status": "unhealthy", "error": str(e)}
        all_healthy = False

    redis_status = await check_redis_health()
    checks["dependencies"]["redis"] = redis_status
    if redis_status["status"] != "healthy":
        all_healthy = False

    checks["status"] = "healthy" if all_healthy else "degraded"

    if not all_healthy:
        return JSONResponse(content=checks, status_code=503)
    return checks
