"""
Health check endpoints.
Used for monitoring, deployment readiness checks, and basic connectivity tests.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from roadblock.core.settings import settings
from roadblock.services.storage import IncidentRepository, get_repository

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if service is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/db")
async def database_health(repository: IncidentRepository = Depends(get_repository)):
    """
    Storage connectivity check.
    """
    try:
        info = await repository.ping()
    except Exception as e:
        raise HTTPException(
            status_code=503,
            detail=f"Database connection failed: {str(e)}"
        )
    return {
        "status": "healthy",
        **info,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
