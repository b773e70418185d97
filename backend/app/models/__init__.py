"""
Models Package for Tubely.

Pydantic models for video records and for the media metadata produced while
processing an upload.

Models Overview:
    - Video: Video record stored in MongoDB (``_id`` alias support)
    - VideoResponse: API representation of a video record
    - AspectBucket: landscape / portrait / other storage prefix
    - ProbeOutput, ProbeStream: parsed ffprobe output
    - VideoDimensions: width/height of the first probed stream
"""

from app.models.media import AspectBucket, ProbeOutput, ProbeStream, VideoDimensions
from app.models.video import Video, VideoResponse


__all__ = [
    "AspectBucket",
    "ProbeOutput",
    "ProbeStream",
    "Video",
    "VideoDimensions",
    "VideoResponse",
]
