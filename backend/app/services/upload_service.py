"""
Tubely Video Upload Service Module

This module drives the upload pipeline for a single video record:

1. Check the declared media type (before anything touches the disk)
2. Stage the multipart body to a bounded-size temporary file with aiofiles
3. Probe the staged file with ffprobe and classify its aspect ratio
4. Remux it with ffmpeg so the container index sits at the front
5. Put the remuxed file to S3 under ``<aspect>/<random hex>.mp4``
6. Write the public URL onto the video record

Every stage raises its own exception type and any failure aborts the request.
Both temporary files (the staged upload and the remuxed output) are removed on
every exit path. A storage success followed by a failed record update leaves
the object in the bucket; the orphaned key is logged at WARNING.

The service integrates with:
- MetadataService: ffprobe wrapper and aspect-ratio classification
- ProcessingService: ffmpeg fast-start remux
- StorageService: S3 put and public URL construction
- VideoService: video record persistence
"""

import logging
import os
import secrets
import tempfile

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

import aiofiles

from fastapi import UploadFile

from app.config import Settings
from app.models.media import AspectBucket
from app.models.video import Video
from app.services.metadata_service import MetadataService
from app.services.processing_service import ProcessingService, remove_file_quietly
from app.services.storage_service import StorageService
from app.services.video_service import VideoService, VideoServiceError
from app.utils.file_validator import format_file_size, parse_media_type
from app.utils.logger import add_log_context


logger = logging.getLogger(__name__)

# Length of the random object identifier before hex encoding
OBJECT_ID_BYTES = 32

TEMP_FILE_PREFIX = "tubely-upload-"
VIDEO_FILE_EXTENSION = ".mp4"


class UploadServiceError(Exception):
    """Base exception for upload service errors."""


class InvalidMediaTypeError(UploadServiceError):
    """Raised when the declared content type cannot be parsed."""


class UnsupportedMediaTypeError(InvalidMediaTypeError):
    """Raised when the declared content type is not the supported video type."""


class UploadTooLargeError(UploadServiceError):
    """Raised when the upload exceeds the configured size cap."""


class StagingError(UploadServiceError):
    """Raised when the upload cannot be written to a temporary file."""


class VideoUploadService:
    """
    Upload pipeline for a single video file.

    Args:
        video_service: Record persistence
        storage_service: S3 uploads and public URLs
        metadata_service: ffprobe wrapper
        processing_service: ffmpeg wrapper
        settings: Upload limits, supported media type and temp directory
        random_bytes: Source of the random object identifier; tests pass a
            fixed source to get a predictable key

    Example:
        ```python
        video = await upload_service.upload_video(video, upload_file)
        print(video.video_url)
        ```
    """

    def __init__(
        self,
        video_service: VideoService,
        storage_service: StorageService,
        metadata_service: MetadataService,
        processing_service: ProcessingService,
        settings: Settings,
        random_bytes: Callable[[int], bytes] = secrets.token_bytes,
    ) -> None:
        self.videos = video_service
        self.storage = storage_service
        self.metadata = metadata_service
        self.processing = processing_service
        self.settings = settings
        self.random_bytes = random_bytes

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_media_type(self, content_type: str | None) -> str:
        """
        Check a declared content type and return the normalized media type.

        Raises:
            InvalidMediaTypeError: If the value cannot be parsed
            UnsupportedMediaTypeError: If it is not the supported video type
        """
        try:
            media_type, _params = parse_media_type(content_type)
        except ValueError as e:
            raise InvalidMediaTypeError(f"Invalid Content-Type {content_type!r}: {e}") from e

        if media_type != self.settings.supported_video_media_type:
            raise UnsupportedMediaTypeError(f"Unsupported video media type {media_type!r}")

        return media_type

    # =========================================================================
    # Staging
    # =========================================================================

    @asynccontextmanager
    async def stage_upload(self, file: UploadFile) -> AsyncIterator[str]:
        """
        Copy an upload to a temporary file and yield its path.

        The body is read in ``upload_chunk_size_bytes`` chunks; reading past
        ``max_upload_size_bytes`` aborts. The file is removed when the block exits.

        Raises:
            UploadTooLargeError: If the body exceeds the size cap
            StagingError: If the temporary file cannot be created or written
        """
        max_size = self.settings.max_upload_size_bytes
        chunk_size = self.settings.upload_chunk_size_bytes

        try:
            fd, temp_path = tempfile.mkstemp(
                prefix=TEMP_FILE_PREFIX,
                suffix=VIDEO_FILE_EXTENSION,
                dir=self.settings.temp_dir,
            )
        except OSError as e:
            raise StagingError(f"Could not create temporary file: {e}") from e
        os.close(fd)

        try:
            written = 0
            try:
                async with aiofiles.open(temp_path, "wb") as temp_file:
                    while chunk := await file.read(chunk_size):
                        written += len(chunk)
                        if written > max_size:
                            raise UploadTooLargeError(
                                f"Upload exceeds maximum size of {format_file_size(max_size)}"
                            )
                        await temp_file.write(chunk)
            except OSError as e:
                raise StagingError(f"Could not write temporary file: {e}") from e

            logger.debug("Staged %s to %s", format_file_size(written), temp_path)
            yield temp_path
        finally:
            remove_file_quietly(temp_path)

    # =========================================================================
    # Pipeline
    # =========================================================================

    def generate_object_key(self, bucket: AspectBucket) -> str:
        """Object key for a new upload: ``<aspect>/<hex of 32 random bytes>.mp4``."""
        object_id = self.random_bytes(OBJECT_ID_BYTES).hex()
        return f"{bucket.value}/{object_id}{VIDEO_FILE_EXTENSION}"

    async def upload_video(self, video: Video, file: UploadFile) -> Video:
        """
        Run the full pipeline for an upload and return the updated record.

        The caller is responsible for checking that the requester owns ``video``.

        Raises:
            InvalidMediaTypeError: Bad or unsupported declared content type
            UploadTooLargeError: Body over the size cap
            StagingError: Temporary file could not be written
            MetadataExtractionError: ffprobe failed
            VideoProcessingError: ffmpeg failed
            StorageOperationError: S3 put failed
            VideoServiceError: Record could not be updated
        """
        media_type = self.validate_media_type(file.content_type)
        upload_logger = add_log_context(logger, video_id=video.id, user_id=video.user_id)

        async with self.stage_upload(file) as staged_path:
            bucket = await self.metadata.get_aspect_bucket(staged_path)
            object_key = self.generate_object_key(bucket)

            async with self.processing.fast_start(staged_path) as processed_path:
                upload_logger.info(
                    "Uploading to bucket=%r, key=%r", self.storage.bucket_name, object_key
                )
                await self.storage.upload_file(object_key, processed_path, media_type)

        video.set_video_url(self.storage.get_public_url(object_key))

        try:
            updated = await self.videos.update_video(video)
        except VideoServiceError:
            upload_logger.warning(
                "Record update failed; object %r left in bucket %r",
                object_key,
                self.storage.bucket_name,
            )
            raise

        upload_logger.info("Video URL set to %s", updated.video_url)
        return updated


__all__ = [
    "OBJECT_ID_BYTES",
    "InvalidMediaTypeError",
    "StagingError",
    "UnsupportedMediaTypeError",
    "UploadServiceError",
    "UploadTooLargeError",
    "VideoUploadService",
]
