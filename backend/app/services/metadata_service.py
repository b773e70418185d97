"""
Metadata Extraction Service for Tubely

This service inspects staged uploads with ``ffprobe`` and derives the
aspect-ratio bucket a video is filed under in object storage:

- landscape: within tolerance of 16:9
- portrait: within tolerance of 9:16
- other: anything else, including files whose first stream has no height

ffprobe runs as an asyncio subprocess.
"""

import asyncio
import logging
import math

from pydantic import ValidationError

from app.models.media import AspectBucket, ProbeOutput, VideoDimensions


logger = logging.getLogger(__name__)

LANDSCAPE_RATIO = 16 / 9
PORTRAIT_RATIO = 9 / 16
ASPECT_RATIO_TOLERANCE = 0.05

# Absorbs float error so that a ratio exactly on the tolerance edge still matches
_EDGE_EPSILON = 1e-9


class MetadataExtractionError(Exception):
    """Raised when ffprobe fails or returns output that cannot be used."""


def classify_aspect_ratio(ratio: float) -> AspectBucket:
    """
    Classify a width/height ratio into an aspect bucket.

    Pure and deterministic. The tolerance is absolute and the edge is
    inclusive, so ``16/9 + 0.05`` is still landscape.

    Args:
        ratio: Width divided by height

    Returns:
        AspectBucket: LANDSCAPE, PORTRAIT or OTHER
    """
    if not math.isfinite(ratio):
        return AspectBucket.OTHER
    limit = ASPECT_RATIO_TOLERANCE + _EDGE_EPSILON
    if abs(ratio - LANDSCAPE_RATIO) <= limit:
        return AspectBucket.LANDSCAPE
    if abs(ratio - PORTRAIT_RATIO) <= limit:
        return AspectBucket.PORTRAIT
    return AspectBucket.OTHER


def parse_probe_output(raw: bytes | str) -> VideoDimensions:
    """
    Parse ``ffprobe -show_streams -of json`` output into the first stream's dimensions.

    Raises:
        MetadataExtractionError: If the output is not valid JSON or lists no streams
    """
    try:
        probe = ProbeOutput.model_validate_json(raw)
    except ValidationError as e:
        raise MetadataExtractionError(f"Could not parse ffprobe output: {e}") from e

    if not probe.streams:
        raise MetadataExtractionError("No video streams found")

    first = probe.streams[0]
    return VideoDimensions(width=first.width, height=first.height)


class MetadataService:
    """
    Thin async wrapper around the ffprobe executable.

    Attributes:
        ffprobe_path: Executable name or absolute path of ffprobe

    Example:
        service = MetadataService()
        bucket = await service.get_aspect_bucket("/tmp/tubely-upload-x.mp4")
        key = f"{bucket.value}/{random_id}.mp4"
    """

    def __init__(self, ffprobe_path: str = "ffprobe") -> None:
        self.ffprobe_path = ffprobe_path

    async def probe(self, file_path: str) -> VideoDimensions:
        """
        Run ffprobe against a file and return the first stream's width and height.

        Args:
            file_path: Path of the local file to inspect

        Returns:
            VideoDimensions: Width and height of the first stream

        Raises:
            MetadataExtractionError: If ffprobe is missing, exits non-zero,
                or produces unusable output
        """
        logger.debug("Probing %s with %s", file_path, self.ffprobe_path)

        try:
            process = await asyncio.create_subprocess_exec(
                self.ffprobe_path,
                "-v",
                "error",
                "-show_streams",
                "-of",
                "json",
                file_path,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error("Could not start ffprobe: %s", e)
            raise MetadataExtractionError(f"Could not start ffprobe: {e}") from e

        stdout, stderr = await process.communicate()

        if process.returncode != 0:
            diagnostic = stderr.decode("utf-8", errors="replace").strip()
            logger.error("ffprobe exited with %s: %s", process.returncode, diagnostic)
            raise MetadataExtractionError(
                f"ffprobe exited with status {process.returncode}: {diagnostic}"
            )

        dimensions = parse_probe_output(stdout)
        logger.debug("Probed %s: %dx%d", file_path, dimensions.width, dimensions.height)
        return dimensions

    async def get_aspect_bucket(self, file_path: str) -> AspectBucket:
        """Probe a file and classify its aspect ratio."""
        dimensions = await self.probe(file_path)
        bucket = classify_aspect_ratio(dimensions.ratio)
        logger.info(
            "Classified %dx%d as %s (%s)",
            dimensions.width,
            dimensions.height,
            bucket.value,
            bucket.ratio_label,
        )
        return bucket


__all__ = [
    "ASPECT_RATIO_TOLERANCE",
    "LANDSCAPE_RATIO",
    "PORTRAIT_RATIO",
    "MetadataExtractionError",
    "MetadataService",
    "classify_aspect_ratio",
    "parse_probe_output",
]
