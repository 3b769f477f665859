"""
API Routes Module
"""
from .health import router as health_router
from .views import router as views_router

__all__ = [
    "health_router",
    "views_router",
]
