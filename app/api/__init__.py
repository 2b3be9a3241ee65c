"""API package - FastAPI routes and dependencies."""
from .dependencies import get_catalog_service
from .routers import content_router, health_router

__all__ = ["content_router", "get_catalog_service", "health_router"]
