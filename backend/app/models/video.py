"""
Video Pydantic models for Tubely.

This module defines the Video model for the records stored in the MongoDB
``videos`` collection, and the response schema returned by the upload API.
The upload service only reads the owner (``user_id``) and writes the public
``video_url`` of a record; the remaining fields are carried through unchanged.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Video(BaseModel):
    """
    Pydantic model for video records in Tubely.

    Attributes:
        id: Video UUID as string (aliased from _id)
        user_id: UUID of the owning user
        title: Display title
        description: Free-form description
        thumbnail_url: Public thumbnail URL, if one has been uploaded
        video_url: Public URL of the processed video, set after upload
        created_at: Record creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)

    Example:
        ```python
        video = Video(
            _id="0b0f5c9e-7f57-4c2b-9a0f-25c0d6f1f3c4",
            user_id="6f1d3a43-2c1e-4d53-a2f6-0a4c7d5f0c11",
            title="Boot.dev beats",
        )
        ```
    """

    id: str = Field(..., alias="_id", description="Video UUID as string")

    user_id: str = Field(..., min_length=1, description="UUID of the owning user")

    title: str = Field(default="", max_length=255, description="Display title")

    description: str = Field(default="", description="Video description")

    thumbnail_url: str | None = Field(default=None, description="Public thumbnail URL")

    video_url: str | None = Field(default=None, description="Public URL of the processed video")

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Creation timestamp (UTC)"
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Last modification timestamp (UTC)"
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "_id": "0b0f5c9e-7f57-4c2b-9a0f-25c0d6f1f3c4",
                "user_id": "6f1d3a43-2c1e-4d53-a2f6-0a4c7d5f0c11",
                "title": "Boot.dev beats",
                "description": "Lo-fi beats to code to",
                "video_url": "https://tubely-videos.s3.us-east-2.amazonaws.com/landscape/ab12.mp4",
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
            }
        },
    )

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def coerce_to_string(cls, v: Any) -> str:
        """Accept UUID instances from callers and store the canonical string."""
        return str(v)

    def is_owned_by(self, user_id: Any) -> bool:
        """Check whether the given user UUID owns this record."""
        return self.user_id == str(user_id)

    def set_video_url(self, url: str) -> None:
        """Point the record at a processed video and bump updated_at."""
        self.video_url = url
        self.updated_at = datetime.now(UTC)

    def to_document(self) -> dict[str, Any]:
        """Serialize for MongoDB, storing the id under ``_id``."""
        return self.model_dump(by_alias=True)


class VideoResponse(BaseModel):
    """
    Schema for video API responses.

    Mirrors the Video record but exposes the identifier as ``id``.
    """

    id: str = Field(..., description="Video ID")
    user_id: str = Field(..., description="Owner user ID")
    title: str = Field(..., description="Display title")
    description: str = Field(..., description="Video description")
    thumbnail_url: str | None = Field(None, description="Thumbnail URL")
    video_url: str | None = Field(None, description="Processed video URL")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    @classmethod
    def from_video(cls, video: Video) -> "VideoResponse":
        return cls(**video.model_dump())
