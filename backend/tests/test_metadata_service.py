"""
Tests for the ffprobe metadata service and aspect-ratio classification.

Test Organization:
- TestClassifyAspectRatio: Pure classification including the tolerance edges
- TestParseProbeOutput: Parsing of ffprobe JSON
- TestProbe: Subprocess invocation with create_subprocess_exec patched
"""

import json
import math
from unittest.mock import AsyncMock, Mock, patch

import pytest

from app.models.media import AspectBucket, VideoDimensions
from app.services.metadata_service import (
    ASPECT_RATIO_TOLERANCE,
    LANDSCAPE_RATIO,
    PORTRAIT_RATIO,
    MetadataExtractionError,
    MetadataService,
    classify_aspect_ratio,
    parse_probe_output,
)


def _probe_json(*streams: dict) -> bytes:
    return json.dumps({"streams": list(streams)}).encode()


def _mock_process(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> Mock:
    process = Mock()
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.returncode = returncode
    return process


class TestClassifyAspectRatio:
    """Classification of width/height ratios."""

    @pytest.mark.parametrize(
        ("ratio", "expected"),
        [
            (16 / 9, AspectBucket.LANDSCAPE),
            (9 / 16, AspectBucket.PORTRAIT),
            (1.0, AspectBucket.OTHER),
            (4 / 3, AspectBucket.OTHER),
            (1280 / 720, AspectBucket.LANDSCAPE),
            (608 / 1080, AspectBucket.PORTRAIT),
        ],
    )
    def test_known_ratios(self, ratio: float, expected: AspectBucket) -> None:
        assert classify_aspect_ratio(ratio) is expected

    def test_landscape_upper_edge_is_inclusive(self) -> None:
        assert classify_aspect_ratio(LANDSCAPE_RATIO + ASPECT_RATIO_TOLERANCE) is AspectBucket.LANDSCAPE

    def test_landscape_lower_edge_is_inclusive(self) -> None:
        assert classify_aspect_ratio(LANDSCAPE_RATIO - ASPECT_RATIO_TOLERANCE) is AspectBucket.LANDSCAPE

    def test_just_beyond_landscape_edge_is_other(self) -> None:
        assert classify_aspect_ratio(LANDSCAPE_RATIO + 0.051) is AspectBucket.OTHER

    def test_portrait_edges(self) -> None:
        assert classify_aspect_ratio(PORTRAIT_RATIO + ASPECT_RATIO_TOLERANCE) is AspectBucket.PORTRAIT
        assert classify_aspect_ratio(PORTRAIT_RATIO - 0.051) is AspectBucket.OTHER

    @pytest.mark.parametrize("ratio", [math.inf, math.nan, -math.inf])
    def test_non_finite_ratio_is_other(self, ratio: float) -> None:
        assert classify_aspect_ratio(ratio) is AspectBucket.OTHER

    def test_zero_height_dimensions_classify_as_other(self) -> None:
        assert classify_aspect_ratio(VideoDimensions(width=1920, height=0).ratio) is AspectBucket.OTHER
        assert classify_aspect_ratio(VideoDimensions(width=0, height=0).ratio) is AspectBucket.OTHER

    def test_ratio_labels(self) -> None:
        assert AspectBucket.LANDSCAPE.ratio_label == "16:9"
        assert AspectBucket.PORTRAIT.ratio_label == "9:16"
        assert AspectBucket.OTHER.ratio_label == "other"


class TestParseProbeOutput:
    """Parsing ffprobe -show_streams JSON."""

    def test_uses_first_stream(self) -> None:
        raw = _probe_json(
            {"index": 0, "codec_type": "video", "width": 1080, "height": 1920},
            {"index": 1, "codec_type": "audio"},
        )

        dimensions = parse_probe_output(raw)

        assert (dimensions.width, dimensions.height) == (1080, 1920)

    def test_ignores_unknown_fields(self) -> None:
        raw = _probe_json({"width": 640, "height": 360, "codec_name": "h264", "r_frame_rate": "30/1"})
        assert parse_probe_output(raw).ratio == pytest.approx(16 / 9)

    def test_first_stream_without_dimensions_yields_zeroes(self) -> None:
        dimensions = parse_probe_output(_probe_json({"index": 0, "codec_type": "audio"}))
        assert (dimensions.width, dimensions.height) == (0, 0)

    def test_no_streams_raises(self) -> None:
        with pytest.raises(MetadataExtractionError, match="No video streams"):
            parse_probe_output(_probe_json())

    @pytest.mark.parametrize("raw", [b"", b"not json", b'{"streams": "nope"}'])
    def test_malformed_output_raises(self, raw: bytes) -> None:
        with pytest.raises(MetadataExtractionError):
            parse_probe_output(raw)


class TestProbe:
    """MetadataService.probe and get_aspect_bucket against a patched subprocess."""

    @pytest.mark.asyncio
    async def test_invokes_ffprobe_with_json_output(self) -> None:
        process = _mock_process(stdout=_probe_json({"width": 1920, "height": 1080}))
        service = MetadataService(ffprobe_path="/usr/bin/ffprobe")

        with patch(
            "app.services.metadata_service.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ) as mock_exec:
            dimensions = await service.probe("/tmp/tubely-upload-abc.mp4")

        assert (dimensions.width, dimensions.height) == (1920, 1080)
        args = mock_exec.call_args.args
        assert args == (
            "/usr/bin/ffprobe",
            "-v",
            "error",
            "-show_streams",
            "-of",
            "json",
            "/tmp/tubely-upload-abc.mp4",
        )

    @pytest.mark.asyncio
    async def test_get_aspect_bucket_portrait(self) -> None:
        process = _mock_process(stdout=_probe_json({"width": 1080, "height": 1920}))

        with patch(
            "app.services.metadata_service.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            bucket = await MetadataService().get_aspect_bucket("/tmp/v.mp4")

        assert bucket is AspectBucket.PORTRAIT

    @pytest.mark.asyncio
    async def test_non_zero_exit_raises_with_stderr(self) -> None:
        process = _mock_process(stderr=b"/tmp/v.mp4: Invalid data found", returncode=1)

        with patch(
            "app.services.metadata_service.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            with pytest.raises(MetadataExtractionError, match="Invalid data found"):
                await MetadataService().probe("/tmp/v.mp4")

    @pytest.mark.asyncio
    async def test_missing_executable_raises(self) -> None:
        with patch(
            "app.services.metadata_service.asyncio.create_subprocess_exec",
            AsyncMock(side_effect=FileNotFoundError("ffprobe")),
        ):
            with pytest.raises(MetadataExtractionError, match="Could not start ffprobe"):
                await MetadataService().probe("/tmp/v.mp4")

    @pytest.mark.asyncio
    async def test_zero_streams_raises(self) -> None:
        with patch(
            "app.services.metadata_service.asyncio.create_subprocess_exec",
            AsyncMock(return_value=_mock_process(stdout=_probe_json())),
        ):
            with pytest.raises(MetadataExtractionError):
                await MetadataService().get_aspect_bucket("/tmp/v.mp4")
