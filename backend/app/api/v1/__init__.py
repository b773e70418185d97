"""
Tubely API v1 Router Aggregator.

Combines the v1 endpoint routers into a single APIRouter that the main
FastAPI application mounts under the /api/v1 prefix.

Router Structure:
    - /video_upload: Video file upload for existing video records
"""

import logging

from fastapi import APIRouter

from app.api.v1.video_upload import router as video_upload_router


logger = logging.getLogger(__name__)

api_router = APIRouter()

api_router.include_router(
    video_upload_router,
    prefix="/video_upload",
    tags=["videos"],
)


__all__ = ["api_router"]
