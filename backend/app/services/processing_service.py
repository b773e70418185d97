"""
Video Processing Service for Tubely

Rewrites a staged MP4 with ``ffmpeg -movflags faststart`` so the container
index (the ``moov`` atom) sits at the front of the file and playback can start
before the whole object has downloaded. Streams are copied, never re-encoded.

The output is written next to the input as ``<base>.processing<ext>``.
"""

import asyncio
import logging
import os

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


logger = logging.getLogger(__name__)


class VideoProcessingError(Exception):
    """Raised when ffmpeg fails or produces no usable output."""


def processing_output_path(input_path: str) -> str:
    """Sibling path ffmpeg writes to: ``/tmp/a.mp4`` -> ``/tmp/a.processing.mp4``."""
    base, ext = os.path.splitext(input_path)
    return f"{base}.processing{ext}"


def remove_file_quietly(path: str) -> None:
    """Delete a local file if it exists, logging (not raising) on failure."""
    try:
        os.remove(path)
        logger.debug("Removed temporary file %s", path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to remove temporary file '%s': %s", path, e)


class ProcessingService:
    """
    Async wrapper around the ffmpeg executable.

    Example:
        service = ProcessingService()
        async with service.fast_start(staged_path) as processed_path:
            await storage.upload_file(key, processed_path, "video/mp4")
        # processed_path has been removed here
    """

    def __init__(self, ffmpeg_path: str = "ffmpeg") -> None:
        self.ffmpeg_path = ffmpeg_path

    async def process_for_fast_start(self, file_path: str) -> str:
        """
        Remux a file for fast start.

        Args:
            file_path: Path of the staged MP4

        Returns:
            str: Path of the remuxed file; the caller owns it and must delete it

        Raises:
            VideoProcessingError: If ffmpeg cannot be started, exits non-zero,
                or leaves a missing or empty output file
        """
        output_path = processing_output_path(file_path)
        logger.debug("Remuxing %s -> %s", file_path, output_path)

        try:
            process = await asyncio.create_subprocess_exec(
                self.ffmpeg_path,
                "-i",
                file_path,
                "-c",
                "copy",
                "-movflags",
                "faststart",
                "-f",
                "mp4",
                output_path,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error("Could not start ffmpeg: %s", e)
            raise VideoProcessingError(f"Could not start ffmpeg: {e}") from e

        _, stderr = await process.communicate()

        if process.returncode != 0:
            remove_file_quietly(output_path)
            diagnostic = stderr.decode("utf-8", errors="replace").strip()
            logger.error("ffmpeg exited with %s: %s", process.returncode, diagnostic)
            raise VideoProcessingError(f"error processing video: {diagnostic}")

        try:
            size = os.path.getsize(output_path)
        except OSError as e:
            raise VideoProcessingError(f"could not stat processed file: {e}") from e

        if size == 0:
            remove_file_quietly(output_path)
            raise VideoProcessingError("processed file is empty")

        logger.info("Remuxed %s for fast start (%d bytes)", file_path, size)
        return output_path

    @asynccontextmanager
    async def fast_start(self, file_path: str) -> AsyncIterator[str]:
        """Remux a file and remove the output when the block exits."""
        output_path = await self.process_for_fast_start(file_path)
        try:
            yield output_path
        finally:
            remove_file_quietly(output_path)


__all__ = [
    "ProcessingService",
    "VideoProcessingError",
    "processing_output_path",
    "remove_file_quietly",
]
