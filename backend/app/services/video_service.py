"""
Video record service for Tubely.

Reads and writes video records in the MongoDB ``videos`` collection. The
upload pipeline uses it twice per request: once to load the record and check
its owner, and once to persist the new ``video_url``.
"""

import logging

from typing import Any
from uuid import UUID

from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from app.models.video import Video


logger = logging.getLogger(__name__)


class VideoServiceError(Exception):
    """Base exception for video record errors."""


class VideoNotFoundError(VideoServiceError):
    """Raised when no record exists for the requested video ID."""


class VideoPersistenceError(VideoServiceError):
    """Raised when the database cannot be read or written."""


class VideoService:
    """
    Data access for video records.

    Args:
        collection: Motor collection holding the video documents
    """

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self.collection = collection

    async def get_video(self, video_id: UUID) -> Video:
        """
        Load a video record by ID.

        Raises:
            VideoNotFoundError: If there is no such record
            VideoPersistenceError: If the query fails or the stored document is invalid
        """
        try:
            document: dict[str, Any] | None = await self.collection.find_one({"_id": str(video_id)})
        except PyMongoError as e:
            logger.error("Failed to load video %s: %s", video_id, e)
            raise VideoPersistenceError(f"Failed to load video {video_id}") from e

        if document is None:
            raise VideoNotFoundError(f"Video {video_id} not found")

        try:
            return Video.model_validate(document)
        except ValidationError as e:
            logger.error("Stored video %s is malformed: %s", video_id, e)
            raise VideoPersistenceError(f"Stored video {video_id} is malformed") from e

    async def update_video(self, video: Video) -> Video:
        """
        Replace the stored record with the given video.

        Raises:
            VideoNotFoundError: If the record disappeared since it was loaded
            VideoPersistenceError: If the write fails
        """
        document = video.to_document()
        try:
            result = await self.collection.replace_one({"_id": video.id}, document)
        except PyMongoError as e:
            logger.error("Failed to update video %s: %s", video.id, e)
            raise VideoPersistenceError(f"Failed to update video {video.id}") from e

        if result.matched_count == 0:
            raise VideoNotFoundError(f"Video {video.id} not found")

        logger.debug("Updated video %s", video.id)
        return video


__all__ = [
    "VideoNotFoundError",
    "VideoPersistenceError",
    "VideoService",
    "VideoServiceError",
]
