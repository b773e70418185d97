"""
Tubely Configuration Management Module

This module provides configuration management for the Tubely video upload
service using Pydantic Settings. It loads and validates the environment
variables required for:
- Application settings (name, environment, debug mode, logging)
- MongoDB connection for video records
- S3 object storage for processed videos
- Local JWT validation for bearer tokens
- Upload limits and the external media tools (ffprobe / ffmpeg)

All settings support environment variable overrides and .env file loading.
"""

from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


# 1 GiB upload cap
DEFAULT_MAX_UPLOAD_SIZE_BYTES = 1 << 30


class Settings(BaseSettings):
    """
    Configuration settings for the Tubely video upload service.

    Configuration Categories:
    - Application: name, environment, debug mode, logging
    - MongoDB: connection URI and pool settings for the videos collection
    - S3: bucket, region, credentials and public URL settings
    - JWT: secret and algorithm used to validate bearer tokens
    - Upload: size cap, chunk size and the single supported media type
    - Media tools: paths to the ffprobe and ffmpeg executables

    Example usage:
        ```python
        from app.config import get_settings

        settings = get_settings()
        print(f"Uploading to bucket: {settings.s3_bucket_name}")
        ```
    """

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(
        default="Tubely",
        description="Application name displayed in API documentation and logs",
    )

    app_env: str = Field(
        default="development",
        description="Application environment (development, staging, production, testing)",
    )

    debug: bool = Field(default=False, description="Enable debug mode and hot-reload")

    log_level: str = Field(
        default="info", description="Logging level (debug, info, warning, error, critical)"
    )

    json_logs: bool = Field(
        default=True, description="Emit structured JSON logs instead of plain text"
    )

    host: str = Field(default="0.0.0.0", description="Host address for the API server to bind to")

    port: int = Field(default=8091, description="Port number for the API server", ge=1, le=65535)

    cors_origins: Annotated[list[str], NoDecode] = Field(
        default=["http://localhost:8091"],
        description="List of allowed CORS origins",
    )

    # =========================================================================
    # JWT Configuration
    # =========================================================================

    jwt_secret: str = Field(
        default="development-jwt-secret-change-in-production-32",
        description="Secret used to verify HS256 bearer tokens",
        min_length=32,
    )

    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")

    jwt_expiration_hours: int = Field(
        default=1, description="Lifetime of tokens issued by create_access_token", ge=1, le=168
    )

    # =========================================================================
    # MongoDB Configuration
    # =========================================================================

    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI",
    )

    mongodb_db_name: str = Field(default="tubely", description="MongoDB database name")

    mongodb_min_pool_size: int = Field(
        default=1, description="Minimum number of connections in the MongoDB pool", ge=0
    )

    mongodb_max_pool_size: int = Field(
        default=20, description="Maximum number of connections in the MongoDB pool", ge=1
    )

    # =========================================================================
    # S3 Storage Configuration
    # =========================================================================

    s3_bucket_name: str = Field(default="tubely-videos", description="S3 bucket for videos")

    s3_region: str = Field(default="us-east-2", description="AWS region of the S3 bucket")

    s3_endpoint_url: str | None = Field(
        default=None, description="S3-compatible endpoint URL (None for AWS S3)"
    )

    s3_access_key_id: str | None = Field(
        default=None, description="Access key ID (None to use the default AWS credential chain)"
    )

    s3_secret_access_key: str | None = Field(default=None, description="Secret access key")

    s3_public_base_url: str | None = Field(
        default=None,
        description="Base URL used for stored object links (e.g. a CDN); "
        "defaults to the virtual-hosted S3 URL",
    )

    # =========================================================================
    # Upload Settings
    # =========================================================================

    max_upload_size_bytes: int = Field(
        default=DEFAULT_MAX_UPLOAD_SIZE_BYTES,
        description="Maximum accepted request body size in bytes (1 GiB)",
        ge=1,
    )

    upload_chunk_size_bytes: int = Field(
        default=1024 * 1024,
        description="Chunk size used when staging the upload to disk",
        ge=1024,
    )

    supported_video_media_type: str = Field(
        default="video/mp4", description="The single accepted video media type"
    )

    temp_dir: str | None = Field(
        default=None, description="Directory for temporary files (None for the system default)"
    )

    # =========================================================================
    # Media Tools
    # =========================================================================

    ffprobe_path: str = Field(default="ffprobe", description="ffprobe executable")

    ffmpeg_path: str = Field(default="ffmpeg", description="ffmpeg executable")

    # =========================================================================
    # Model Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"debug", "info", "warning", "error", "critical"}
        normalized = v.lower()
        if normalized not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {', '.join(valid_levels)}")
        return normalized

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate that app_env is a valid environment name."""
        valid_envs = {"development", "staging", "production", "testing"}
        normalized = v.lower()
        if normalized not in valid_envs:
            raise ValueError(f"Invalid app_env '{v}'. Must be one of: {', '.join(valid_envs)}")
        return normalized

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Only HMAC algorithms are usable with a shared secret."""
        valid_algorithms = {"HS256", "HS384", "HS512"}
        if v.upper() not in valid_algorithms:
            raise ValueError(
                f"Invalid jwt_algorithm '{v}'. Must be one of: {', '.join(valid_algorithms)}"
            )
        return v.upper()

    @field_validator("supported_video_media_type")
    @classmethod
    def validate_media_type(cls, v: str) -> str:
        normalized = v.strip().lower()
        if "/" not in normalized:
            raise ValueError(f"Invalid media type '{v}'")
        return normalized

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string if provided as string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def s3_public_url_prefix(self) -> str:
        """
        Prefix that object keys are appended to when building public URLs.

        Uses ``s3_public_base_url`` when configured, otherwise the
        virtual-hosted style AWS URL for the bucket and region.
        """
        if self.s3_public_base_url:
            return self.s3_public_base_url.rstrip("/")
        return f"https://{self.s3_bucket_name}.s3.{self.s3_region}.amazonaws.com"


@lru_cache
def get_settings() -> Settings:
    """
    Get the global Settings instance.

    The settings are loaded once from environment variables and the .env
    file and reused for the lifetime of the process. Routes receive them
    through FastAPI's dependency injection so tests can override them.

    Returns:
        Settings: The global configuration instance.
    """
    return Settings()
