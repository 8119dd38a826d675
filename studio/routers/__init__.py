"""API routers."""
from studio.routers.health_router import router as health_router
from studio.routers.reel_router import router as reel_router

__all__ = [
    "health_router",
    "reel_router",
]
