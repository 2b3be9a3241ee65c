"""
Health check router for observability.
"""
from fastapi import APIRouter

from app.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health Check")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "healthy"}


@router.get("/health/ready", summary="Readiness Check")
async def readiness_check() -> dict:
    """
    Readiness check for Kubernetes.
    Reports which providers have credentials configured.
    """
    settings = get_settings()

    return {
        "status": "ready" if settings.TMDB_API_KEY else "degraded",
        "providers": {
            "metadata": {"name": "tmdb", "configured": bool(settings.TMDB_API_KEY)},
            "video_search": {"name": "youtube", "configured": bool(settings.YOUTUBE_API_KEY)},
        },
    }
