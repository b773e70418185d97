"""
Media metadata models for Tubely.

Holds the parsed shape of ``ffprobe -show_streams -of json`` output and the
aspect-ratio bucket a video is filed under in object storage.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AspectBucket(str, Enum):
    """
    Storage prefix a video is filed under, derived from its aspect ratio.

    - LANDSCAPE: within tolerance of 16:9
    - PORTRAIT: within tolerance of 9:16
    - OTHER: anything else
    """

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"

    @property
    def ratio_label(self) -> str:
        """Human-readable ratio, e.g. ``16:9``."""
        return {
            AspectBucket.LANDSCAPE: "16:9",
            AspectBucket.PORTRAIT: "9:16",
            AspectBucket.OTHER: "other",
        }[self]


class ProbeStream(BaseModel):
    """A single stream entry from ffprobe. Audio streams carry no dimensions."""

    model_config = ConfigDict(extra="ignore")

    index: int | None = None
    codec_type: str | None = None
    width: int = 0
    height: int = 0


class ProbeOutput(BaseModel):
    """Top-level ffprobe JSON document."""

    model_config = ConfigDict(extra="ignore")

    streams: list[ProbeStream] = Field(default_factory=list)


class VideoDimensions(BaseModel):
    """Width and height of the first stream of a probed file."""

    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)

    @property
    def ratio(self) -> float:
        """
        Width divided by height.

        A zero height yields ``inf`` (or ``nan`` for 0x0) so that the ratio
        never matches a known bucket.
        """
        if self.height == 0:
            return float("nan") if self.width == 0 else float("inf")
        return self.width / self.height
