"""
app/api/routers package marker.
"""

from app.api.routers.competitors import router as competitors_router
from app.api.routers.images import router as images_router
from app.api.routers.keywords import router as keywords_router
from app.api.routers.trawl import router as trawl_router

__all__ = [
    "competitors_router",
    "images_router",
    "keywords_router",
    "trawl_router",
]
