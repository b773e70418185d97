"""
Tests for the S3 storage service with a mocked boto3 client.
"""

import logging

from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from app.config import Settings
from app.services.storage_service import StorageOperationError, StorageService


@pytest.fixture
def video_file(tmp_path: Path) -> Path:
    path = tmp_path / "processed.mp4"
    path.write_bytes(b"faststart video bytes")
    return path


class TestPublicUrl:
    """Public URL construction."""

    def test_default_virtual_hosted_url(self) -> None:
        service = StorageService(bucket_name="tubely-videos", region_name="us-east-2", client=Mock())

        url = service.get_public_url("landscape/abc.mp4")

        assert url == "https://tubely-videos.s3.us-east-2.amazonaws.com/landscape/abc.mp4"

    def test_custom_base_url_strips_trailing_slash(self) -> None:
        service = StorageService(
            bucket_name="tubely-videos",
            public_url_prefix="https://cdn.tubely.dev/",
            client=Mock(),
        )

        assert service.get_public_url("other/abc.mp4") == "https://cdn.tubely.dev/other/abc.mp4"

    def test_from_settings(self, mock_settings: Settings) -> None:
        service = StorageService.from_settings(mock_settings, client=Mock())

        assert service.bucket_name == "test-bucket"
        assert service.get_public_url("k.mp4") == "https://test-bucket.s3.us-east-2.amazonaws.com/k.mp4"

    def test_from_settings_with_cdn(self, mock_settings: Settings) -> None:
        settings = mock_settings.model_copy(update={"s3_public_base_url": "https://cdn.example.com"})
        service = StorageService.from_settings(settings, client=Mock())

        assert service.get_public_url("k.mp4") == "https://cdn.example.com/k.mp4"

    def test_builds_boto3_client_with_credentials(self) -> None:
        with patch("app.services.storage_service.boto3.client") as mock_client:
            StorageService(
                bucket_name="b",
                region_name="eu-west-1",
                endpoint_url="http://localhost:9000",
                access_key="key",
                secret_key="secret",
            )

        mock_client.assert_called_once_with(
            service_name="s3",
            region_name="eu-west-1",
            endpoint_url="http://localhost:9000",
            aws_access_key_id="key",
            aws_secret_access_key="secret",
        )


class TestUploadFile:
    """StorageService.upload_file."""

    @pytest.mark.asyncio
    async def test_single_put_with_content_type(
        self,
        storage_service: StorageService,
        mock_s3_client: Mock,
        uploaded_bodies: list[bytes],
        video_file: Path,
    ) -> None:
        result = await storage_service.upload_file("landscape/abc.mp4", str(video_file), "video/mp4")

        mock_s3_client.put_object.assert_called_once()
        kwargs = mock_s3_client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "test-bucket"
        assert kwargs["Key"] == "landscape/abc.mp4"
        assert kwargs["ContentType"] == "video/mp4"
        assert uploaded_bodies == [b"faststart video bytes"]
        assert result == {
            "object_key": "landscape/abc.mp4",
            "bucket": "test-bucket",
            "etag": "9b2cf535f27731c974343645a3985328",
        }

    @pytest.mark.asyncio
    async def test_client_error_raises_storage_error(
        self, storage_service: StorageService, mock_s3_client: Mock, video_file: Path
    ) -> None:
        mock_s3_client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "PutObject"
        )

        with pytest.raises(StorageOperationError, match="Access Denied"):
            await storage_service.upload_file("k.mp4", str(video_file), "video/mp4")

    @pytest.mark.asyncio
    async def test_transport_error_raises_storage_error(
        self, storage_service: StorageService, mock_s3_client: Mock, video_file: Path
    ) -> None:
        mock_s3_client.put_object.side_effect = EndpointConnectionError(
            endpoint_url="https://test-bucket.s3.us-east-2.amazonaws.com"
        )

        with pytest.raises(StorageOperationError):
            await storage_service.upload_file("k.mp4", str(video_file), "video/mp4")

    @pytest.mark.asyncio
    async def test_missing_file_raises_storage_error(
        self, storage_service: StorageService, mock_s3_client: Mock, tmp_path: Path
    ) -> None:
        with pytest.raises(StorageOperationError, match="File system error"):
            await storage_service.upload_file("k.mp4", str(tmp_path / "gone.mp4"), "video/mp4")

        mock_s3_client.put_object.assert_not_called()

    @pytest.mark.asyncio
    async def test_upload_logs_key_as_argument(
        self,
        storage_service: StorageService,
        video_file: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.INFO, logger="app.services.storage_service"):
            await storage_service.upload_file("portrait/abc.mp4", str(video_file), "video/mp4")

        records = [r for r in caplog.records if r.msg.startswith("Uploading file to")]
        assert len(records) == 1
        assert records[0].args == ("portrait/abc.mp4", "test-bucket")
        assert records[0].getMessage() == (
            "Uploading file to object_key=portrait/abc.mp4, bucket=test-bucket"
        )
