"""API route modules."""

from routes.health_routes import router as health_router
from routes.products_admin_routes import router as products_admin_router
from routes.topics_admin_routes import router as topics_admin_router
from routes.topics_routes import router as topics_router

__all__ = [
    "health_router",
    "products_admin_router",
    "topics_admin_router",
    "topics_router",
]
