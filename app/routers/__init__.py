"""
FastAPI routers.
"""
from app.routers.health import router as health_router
from app.routers.voices import router as voices_router
from app.routers.podcasts import router as podcasts_router

__all__ = ['health_router', 'voices_router', 'podcasts_router']
