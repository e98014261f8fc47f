"""
Clipstream API v1 Router Aggregator.

Combines the v1 endpoint routers into a single APIRouter that the
application mounts under /api/v1.

Router Structure:
    - /videos: Video records, video upload and thumbnail upload
"""

import logging

from fastapi import APIRouter

from app.api.v1.videos import router as videos_router


logger = logging.getLogger(__name__)

api_router = APIRouter()

api_router.include_router(
    videos_router,
    prefix="/videos",
    tags=["videos"],
)

__all__ = ["api_router"]
