"""
S3 storage service for Tubely.

This module wraps the boto3 S3 client for the one operation the upload
pipeline needs: a single ``put_object`` of a processed video. Blocking boto3
calls run on a worker thread.

Key Features:
- Single-request uploads (no multipart, no retry beyond botocore's own)
- Works against AWS S3 or any S3-compatible endpoint (MinIO, LocalStack)
- Public URL construction for stored objects
- Async-wrapped operations for non-blocking I/O
"""

import asyncio
import logging
from functools import wraps
from collections.abc import Callable
from typing import Any, TypeVar

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from app.config import Settings

# Set up module-level logger for tracking S3 operations
logger = logging.getLogger(__name__)

# Type variable for generic async wrapper
T = TypeVar("T")


def async_wrap(func: Callable[..., T]) -> Callable[..., "asyncio.Future[T]"]:
    """
    Decorator to wrap synchronous boto3 operations for async execution.

    Uses asyncio.to_thread to run blocking boto3 operations in a separate
    thread pool, preventing event loop blocking during S3 operations.
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        return await asyncio.to_thread(func, *args, **kwargs)
    return wrapper


class StorageServiceError(Exception):
    """Base exception for storage service errors."""
    pass


class StorageCredentialsError(StorageServiceError):
    """Raised when storage credentials are missing or invalid."""
    pass


class StorageOperationError(StorageServiceError):
    """Raised when a storage operation fails."""
    pass


class StorageService:
    """
    S3 storage service for processed videos.

    Attributes:
        bucket_name: Bucket every object is written to
        region_name: AWS region of the bucket
        public_url_prefix: Prefix object keys are appended to for public URLs

    Example:
        >>> service = StorageService.from_settings(get_settings())
        >>> await service.upload_file("landscape/ab12.mp4", "/tmp/x.mp4", "video/mp4")
        >>> service.get_public_url("landscape/ab12.mp4")
        'https://tubely-videos.s3.us-east-2.amazonaws.com/landscape/ab12.mp4'
    """

    def __init__(
        self,
        bucket_name: str,
        region_name: str = "us-east-2",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        public_url_prefix: str | None = None,
        client: Any = None,
    ) -> None:
        """
        Initialize the storage service.

        Args:
            bucket_name: Bucket for all operations
            region_name: AWS region of the bucket
            endpoint_url: S3-compatible endpoint URL (None for AWS S3 default)
            access_key: Access key ID (None to use the default credential chain)
            secret_key: Secret access key
            public_url_prefix: Base for public URLs; defaults to the
                virtual-hosted S3 URL for the bucket and region
            client: Pre-built boto3 S3 client, mainly for tests

        Raises:
            StorageCredentialsError: If credentials are missing or invalid
            StorageServiceError: If the client cannot be created
        """
        self.bucket_name = bucket_name
        self.region_name = region_name
        self.endpoint_url = endpoint_url
        self.public_url_prefix = (
            public_url_prefix or f"https://{bucket_name}.s3.{region_name}.amazonaws.com"
        ).rstrip("/")

        if client is not None:
            self._client = client
            return

        logger.info(
            "Initializing StorageService with bucket=%s, region=%s, endpoint=%s",
            bucket_name,
            region_name,
            endpoint_url or "AWS S3 default",
        )

        try:
            client_config: dict[str, Any] = {
                "service_name": "s3",
                "region_name": region_name,
            }

            if endpoint_url:
                client_config["endpoint_url"] = endpoint_url

            # Otherwise fall through to environment / IAM role credentials
            if access_key and secret_key:
                client_config["aws_access_key_id"] = access_key
                client_config["aws_secret_access_key"] = secret_key

            self._client = boto3.client(**client_config)

        except NoCredentialsError as e:
            error_msg = "S3 credentials not found"
            logger.error("Credential configuration error: %s", error_msg)
            raise StorageCredentialsError(error_msg) from e

        except BotoCoreError as e:
            error_msg = f"Failed to initialize S3 client: {e}"
            logger.error(error_msg)
            raise StorageServiceError(error_msg) from e

    @classmethod
    def from_settings(cls, settings: Settings, client: Any = None) -> "StorageService":
        """Build a service from application settings."""
        return cls(
            bucket_name=settings.s3_bucket_name,
            region_name=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            access_key=settings.s3_access_key_id,
            secret_key=settings.s3_secret_access_key,
            public_url_prefix=settings.s3_public_url_prefix,
            client=client,
        )

    def get_public_url(self, object_key: str) -> str:
        """Public URL of an object in the service bucket."""
        return f"{self.public_url_prefix}/{object_key}"

    async def upload_file(
        self,
        object_key: str,
        file_path: str,
        content_type: str,
    ) -> dict[str, Any]:
        """
        Upload a local file to S3 as a single ``put_object`` request.

        Args:
            object_key: The S3 object key (path) for the uploaded file
            file_path: Local file system path to upload
            content_type: MIME type stored as the object's Content-Type

        Returns:
            Dictionary containing:
                - object_key: The S3 object key
                - bucket: The bucket name
                - etag: ETag returned by S3

        Raises:
            StorageOperationError: If the file cannot be read or the put fails
        """
        logger.info("Uploading file to object_key=%s, bucket=%s", object_key, self.bucket_name)

        @async_wrap
        def _put_object() -> dict[str, Any]:
            with open(file_path, "rb") as body:
                return self._client.put_object(
                    Bucket=self.bucket_name,
                    Key=object_key,
                    Body=body,
                    ContentType=content_type,
                )

        try:
            response = await _put_object()

        except ClientError as e:
            error_msg = f"Failed to upload file: {e.response['Error']['Message']}"
            logger.error(error_msg)
            raise StorageOperationError(error_msg) from e

        except BotoCoreError as e:
            error_msg = f"Storage operation error during file upload: {e}"
            logger.error(error_msg)
            raise StorageOperationError(error_msg) from e

        except OSError as e:
            error_msg = f"File system error during upload: {e}"
            logger.error(error_msg)
            raise StorageOperationError(error_msg) from e

        logger.info("Successfully uploaded file to %s", object_key)

        return {
            "object_key": object_key,
            "bucket": self.bucket_name,
            "etag": (response or {}).get("ETag", "").strip('"'),
        }


__all__ = [
    "StorageCredentialsError",
    "StorageOperationError",
    "StorageService",
    "StorageServiceError",
    "async_wrap",
]
