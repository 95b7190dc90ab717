"""
Health check router.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from shared.config.settings import settings
from shared.infrastructure.db import SessionLocal
from rest_api.services.events import get_outbox_processor
from rest_api.services.messaging import get_all_breaker_stats


router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "service": "rest-api",
        "environment": settings.environment,
    }


@router.get("/detailed")
def detailed_health_check():
    """
    Health check that verifies the database connection.
    Returns 503 when a dependency is down.
    """
    checks = {
        "service": "rest-api",
        "environment": settings.environment,
        "dependencies": {},
    }
    all_healthy = True

    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
        checks["dependencies"]["database"] = {"status": "healthy"}
    except Exception as e:
        checks["dependencies"]["database"] = {"status": "unhealthy", "error": str(e)}
        all_healthy = False

    checks["outbox_processor"] = {"running": get_outbox_processor().running}
    checks["circuit_breakers"] = get_all_breaker_stats()
    checks["status"] = "healthy" if all_healthy else "degraded"

    if not all_healthy:
        return JSONResponse(content=checks, status_code=503)
    return checks
