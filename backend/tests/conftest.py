"""
Pytest Configuration and Test Fixtures for the Tubely Backend

This module provides the shared fixtures for the test suite:
- Test Settings with a temp directory per test
- Owner / non-owner user IDs, a sample video record and bearer tokens
- A mocked Motor collection and boto3 S3 client
- Fake ffprobe / ffmpeg services that skip the external executables
- A FastAPI TestClient with the upload dependencies overridden
"""

import uuid
from collections.abc import Callable, Generator
from datetime import UTC, datetime
from io import BytesIO
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from fastapi.testclient import TestClient
from starlette.datastructures import Headers, UploadFile

from app.api.v1.video_upload import get_video_service, get_video_upload_service
from app.config import Settings, get_settings
from app.core.auth import create_access_token
from app.main import app
from app.models.video import Video
from app.services.storage_service import StorageService
from app.services.upload_service import VideoUploadService
from app.services.video_service import VideoService

from tests.fakes import (
    SAMPLE_VIDEO_BYTES,
    FakeMetadataService,
    FakeProcessingService,
    fixed_random_bytes,
)


TEST_JWT_SECRET = "test-secret-key-for-jwt-signing-minimum-32-chars"


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def upload_temp_dir(tmp_path: Path) -> Path:
    """Directory the upload pipeline stages its temporary files in."""
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def mock_settings(upload_temp_dir: Path) -> Settings:
    """Settings for an isolated test environment."""
    return Settings(
        app_env="testing",
        app_name="Tubely-Test",
        json_logs=False,
        jwt_secret=TEST_JWT_SECRET,
        jwt_algorithm="HS256",
        mongodb_uri="mongodb://localhost:27017",
        mongodb_db_name="test_tubely",
        s3_bucket_name="test-bucket",
        s3_region="us-east-2",
        s3_public_base_url=None,
        temp_dir=str(upload_temp_dir),
    )


# ==============================================================================
# Users, Videos and Tokens
# ==============================================================================


@pytest.fixture
def owner_id() -> uuid.UUID:
    return uuid.UUID("6f1d3a43-2c1e-4d53-a2f6-0a4c7d5f0c11")


@pytest.fixture
def other_user_id() -> uuid.UUID:
    return uuid.UUID("9a7e2b10-55f4-4f0b-8f43-3a1d2e6c7b88")


@pytest.fixture
def video_id() -> uuid.UUID:
    return uuid.UUID("0b0f5c9e-7f57-4c2b-9a0f-25c0d6f1f3c4")


@pytest.fixture
def video_document(video_id: uuid.UUID, owner_id: uuid.UUID) -> dict[str, Any]:
    """Raw MongoDB document for a video without a URL yet."""
    created = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)
    return {
        "_id": str(video_id),
        "user_id": str(owner_id),
        "title": "Boot.dev beats",
        "description": "Lo-fi beats to code to",
        "thumbnail_url": None,
        "video_url": None,
        "created_at": created,
        "updated_at": created,
    }


@pytest.fixture
def sample_video(video_document: dict[str, Any]) -> Video:
    return Video.model_validate(video_document)


@pytest.fixture
def owner_token(owner_id: uuid.UUID, mock_settings: Settings) -> str:
    return create_access_token(owner_id, mock_settings)


@pytest.fixture
def other_user_token(other_user_id: uuid.UUID, mock_settings: Settings) -> str:
    return create_access_token(other_user_id, mock_settings)


@pytest.fixture
def auth_headers(owner_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {owner_token}"}


# ==============================================================================
# Collaborator Mocks
# ==============================================================================


@pytest.fixture
def mock_collection(video_document: dict[str, Any]) -> AsyncMock:
    """Mocked Motor ``videos`` collection holding one document."""
    collection = AsyncMock()
    collection.find_one = AsyncMock(return_value=dict(video_document))
    collection.replace_one = AsyncMock(return_value=MagicMock(matched_count=1, modified_count=1))
    return collection


@pytest.fixture
def uploaded_bodies() -> list[bytes]:
    """Bodies received by the mocked S3 client, in call order."""
    return []


@pytest.fixture
def mock_s3_client(uploaded_bodies: list[bytes]) -> Mock:
    """Mocked boto3 S3 client that records the bytes of every put_object."""

    def _put_object(**kwargs: Any) -> dict[str, Any]:
        uploaded_bodies.append(kwargs["Body"].read())
        return {"ETag": '"9b2cf535f27731c974343645a3985328"'}

    client = Mock()
    client.put_object = Mock(side_effect=_put_object)
    return client


@pytest.fixture
def video_service(mock_collection: AsyncMock) -> VideoService:
    return VideoService(mock_collection)


@pytest.fixture
def storage_service(mock_settings: Settings, mock_s3_client: Mock) -> StorageService:
    return StorageService.from_settings(mock_settings, client=mock_s3_client)


@pytest.fixture
def fake_metadata_service() -> FakeMetadataService:
    return FakeMetadataService(width=1920, height=1080)


@pytest.fixture
def fake_processing_service() -> FakeProcessingService:
    return FakeProcessingService()


@pytest.fixture
def upload_service(
    mock_settings: Settings,
    video_service: VideoService,
    storage_service: StorageService,
    fake_metadata_service: FakeMetadataService,
    fake_processing_service: FakeProcessingService,
) -> VideoUploadService:
    """Upload pipeline with fakes for the media tools and a fixed random source."""
    return VideoUploadService(
        video_service=video_service,
        storage_service=storage_service,
        metadata_service=fake_metadata_service,
        processing_service=fake_processing_service,
        settings=mock_settings,
        random_bytes=fixed_random_bytes,
    )


@pytest.fixture
def make_upload_file() -> Callable[..., UploadFile]:
    """Factory for in-memory UploadFile objects."""

    def _make(
        content: bytes = SAMPLE_VIDEO_BYTES,
        content_type: str = "video/mp4",
        filename: str = "boots.mp4",
    ) -> UploadFile:
        return UploadFile(
            file=BytesIO(content),
            filename=filename,
            headers=Headers({"content-type": content_type}),
        )

    return _make


# ==============================================================================
# FastAPI Test Client
# ==============================================================================


@pytest.fixture
def client(
    mock_settings: Settings,
    video_service: VideoService,
    upload_service: VideoUploadService,
) -> Generator[TestClient, None, None]:
    """
    TestClient with settings and upload services overridden.

    Authentication is not overridden; requests carry real tokens signed with
    the test secret.
    """
    app.dependency_overrides[get_settings] = lambda: mock_settings
    app.dependency_overrides[get_video_service] = lambda: video_service
    app.dependency_overrides[get_video_upload_service] = lambda: upload_service

    yield TestClient(app)

    app.dependency_overrides.clear()
