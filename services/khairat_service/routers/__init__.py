"""Khairat service routers package."""

from services.khairat_service.routers.applications import router as applications_router
from services.khairat_service.routers.search import router as search_router
from services.khairat_service.routers.uploads import router as uploads_router

__all__ = [
    "applications_router",
    "search_router",
    "uploads_router",
]
