"""
FastAPI Video Upload Router for Tubely

Endpoint:
- POST /{video_id} - Upload the video file for an existing video record

Request checks run in this order, each aborting the request on failure:
1. ``video_id`` is a UUID (400)
2. A valid bearer token identifies the caller (401)
3. The video record exists (404) and is owned by the caller (401)
4. The body is within the size cap (413) and carries a ``video`` file field
   whose declared content type is ``video/mp4`` (400)

The pipeline itself (stage, probe, remux, S3 put, record update) lives in
VideoUploadService; this module only maps its exceptions to HTTP responses.
"""

import logging
from typing import Any, NoReturn
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from starlette.datastructures import UploadFile

from app.config import Settings, get_settings
from app.core.auth import get_current_user_id
from app.core.database import get_db_client
from app.models.video import VideoResponse
from app.services.metadata_service import MetadataExtractionError, MetadataService
from app.services.processing_service import ProcessingService, VideoProcessingError
from app.services.storage_service import StorageService, StorageServiceError
from app.services.upload_service import (
    InvalidMediaTypeError,
    StagingError,
    UnsupportedMediaTypeError,
    UploadTooLargeError,
    VideoUploadService,
)
from app.services.video_service import (
    VideoNotFoundError,
    VideoPersistenceError,
    VideoService,
    VideoServiceError,
)
from app.utils.file_validator import validate_file_size
from app.utils.logger import add_log_context


# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter()

VIDEO_FORM_FIELD = "video"


# ============================================================================
# Error Helpers
# ============================================================================


def _raise_error(status_code: int, error: str, message: str) -> NoReturn:
    raise HTTPException(status_code=status_code, detail={"error": error, "message": message})


# ============================================================================
# Dependency Injection Functions
# ============================================================================


def parse_video_id(video_id: str) -> UUID:
    """Parse the ``video_id`` path parameter, rejecting anything that is not a UUID."""
    try:
        return UUID(video_id)
    except ValueError:
        _raise_error(status.HTTP_400_BAD_REQUEST, "invalid_id", "Invalid ID")


def get_video_service() -> VideoService:
    """Dependency injection for VideoService backed by the ``videos`` collection."""
    return VideoService(get_db_client().get_videos_collection())


def get_storage_service(settings: Settings = Depends(get_settings)) -> StorageService:
    """Dependency injection for StorageService."""
    return StorageService.from_settings(settings)


def get_metadata_service(settings: Settings = Depends(get_settings)) -> MetadataService:
    """Dependency injection for MetadataService."""
    return MetadataService(ffprobe_path=settings.ffprobe_path)


def get_processing_service(settings: Settings = Depends(get_settings)) -> ProcessingService:
    """Dependency injection for ProcessingService."""
    return ProcessingService(ffmpeg_path=settings.ffmpeg_path)


def get_video_upload_service(
    settings: Settings = Depends(get_settings),
    video_service: VideoService = Depends(get_video_service),
    storage_service: StorageService = Depends(get_storage_service),
    metadata_service: MetadataService = Depends(get_metadata_service),
    processing_service: ProcessingService = Depends(get_processing_service),
) -> VideoUploadService:
    """
    Dependency injection for VideoUploadService.

    Returns:
        VideoUploadService: Upload pipeline wired to the request's services.
    """
    return VideoUploadService(
        video_service=video_service,
        storage_service=storage_service,
        metadata_service=metadata_service,
        processing_service=processing_service,
        settings=settings,
    )


def _check_content_length(request: Request, max_size: int) -> None:
    raw = request.headers.get("content-length")
    if raw is None or not raw.isdigit():
        return
    result = validate_file_size(int(raw), max_size)
    if not result["is_valid"]:
        _raise_error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "file_too_large", result["error"])


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "/{video_id}",
    response_model=VideoResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload video",
    description="Upload an MP4 for an existing video record. The file is remuxed for "
    "fast start, stored in S3 and its public URL is written to the record.",
    responses={
        400: {"description": "Invalid ID, missing form field or unsupported media type"},
        401: {"description": "Missing or invalid JWT, or caller does not own the video"},
        404: {"description": "Video not found"},
        413: {"description": "Upload exceeds the size limit"},
        500: {"description": "Processing, storage or database failure"},
    },
)
async def upload_video(
    request: Request,
    video_id: UUID = Depends(parse_video_id),
    user_id: UUID = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
    video_service: VideoService = Depends(get_video_service),
    upload_service: VideoUploadService = Depends(get_video_upload_service),
) -> VideoResponse:
    """
    Upload the video file for a video record owned by the caller.

    Returns:
        VideoResponse: The updated record with its new ``video_url``.
    """
    request_logger = add_log_context(logger, video_id=str(video_id), user_id=str(user_id))
    request_logger.info("Uploading video")

    try:
        video = await video_service.get_video(video_id)
    except VideoNotFoundError:
        _raise_error(status.HTTP_404_NOT_FOUND, "not_found", "Video not found")
    except VideoPersistenceError:
        request_logger.exception("Couldn't get video")
        _raise_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "database_error", "Couldn't get video")

    if not video.is_owned_by(user_id):
        request_logger.warning("Rejected upload from non-owner")
        _raise_error(
            status.HTTP_401_UNAUTHORIZED,
            "unauthorized",
            "You don't have permission to upload video for this video ID",
        )

    _check_content_length(request, settings.max_upload_size_bytes)

    form: Any = None
    try:
        try:
            form = await request.form()
        except Exception:
            request_logger.exception("Couldn't parse multipart form")
            _raise_error(
                status.HTTP_400_BAD_REQUEST, "invalid_form", "Couldn't get video data from form"
            )

        upload = form.get(VIDEO_FORM_FIELD)
        if not isinstance(upload, UploadFile):
            _raise_error(
                status.HTTP_400_BAD_REQUEST, "invalid_form", "Couldn't get video data from form"
            )

        updated = await upload_service.upload_video(video, upload)

    except UnsupportedMediaTypeError as e:
        request_logger.warning(str(e))
        _raise_error(
            status.HTTP_400_BAD_REQUEST, "unsupported_media_type", "Unsupported video media type"
        )
    except InvalidMediaTypeError as e:
        request_logger.warning(str(e))
        _raise_error(
            status.HTTP_400_BAD_REQUEST, "invalid_media_type", "Invalid Content-Type for video"
        )
    except UploadTooLargeError as e:
        request_logger.warning(str(e))
        _raise_error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "file_too_large", str(e))
    except StagingError:
        request_logger.exception("Couldn't write to temp file")
        _raise_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "staging_failed", "Couldn't write to temp file"
        )
    except MetadataExtractionError:
        request_logger.exception("Couldn't get video aspect ratio")
        _raise_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "metadata_failed",
            "Couldn't get video aspect ratio",
        )
    except VideoProcessingError:
        request_logger.exception("Couldn't process video for fast start")
        _raise_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "processing_failed",
            "Couldn't process video for fast start",
        )
    except StorageServiceError:
        request_logger.exception("Couldn't upload video to S3")
        _raise_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "storage_failed", "Couldn't upload video to S3"
        )
    except VideoServiceError:
        request_logger.exception("Couldn't update video with URL")
        _raise_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "database_error",
            "Couldn't update video with URL",
        )
    finally:
        if form is not None:
            await form.close()

    return VideoResponse.from_video(updated)
