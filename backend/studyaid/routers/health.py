"""
Health Check Endpoints

Endpoints:
- GET /api/health - Basic health check
"""

from fastapi import APIRouter

from studyaid import __version__
from studyaid.config import settings

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
async def health_check():
    """
    Basic health check.

    Returns a simple status response indicating the API is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": __version__,
    }
