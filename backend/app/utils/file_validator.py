"""
File Validation Utilities Module for Tubely

Helpers for checking uploads before they touch the disk:
- Media type parsing of a declared Content-Type (``type/subtype; k=v``)
- Upload size checks against the configured cap
- Human-readable size formatting for log and error messages
"""

import re

from typing import Any

from python_multipart.multipart import parse_options_header


# =============================================================================
# CONSTANTS
# =============================================================================

BYTES_PER_KB: int = 1024

# RFC 7230 token characters
_TOKEN = r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+"
_MEDIA_TYPE_RE = re.compile(rf"^\s*({_TOKEN})/({_TOKEN})\s*$")


# =============================================================================
# MEDIA TYPE VALIDATION
# =============================================================================


def parse_media_type(content_type: str | None) -> tuple[str, dict[str, str]]:
    """
    Parse a Content-Type value into a lowercase media type and its parameters.

    Parameters are split by python-multipart, so quoted values may contain
    ``;`` and escaped quotes.

    Args:
        content_type: Declared content type, e.g. ``video/MP4; codecs="avc1"``

    Returns:
        Tuple of (media_type, params), e.g. ``("video/mp4", {"codecs": "avc1"})``

    Raises:
        ValueError: If the value is empty or not of the form ``type/subtype``

    Example:
        >>> parse_media_type("Video/MP4")
        ('video/mp4', {})
    """
    if not content_type or not content_type.strip():
        raise ValueError("no media type")

    raw_type, raw_params = parse_options_header(content_type)
    head = raw_type.decode("latin-1")

    match = _MEDIA_TYPE_RE.match(head)
    if match is None:
        raise ValueError(f"invalid media type: {head.strip()!r}")

    media_type = f"{match.group(1)}/{match.group(2)}".lower()
    params = {
        key.decode("latin-1").lower(): value.decode("latin-1") for key, value in raw_params.items()
    }

    return media_type, params


# =============================================================================
# SIZE VALIDATION
# =============================================================================


def validate_file_size(file_size: int, max_size: int) -> dict[str, Any]:
    """
    Validate an upload size against the maximum allowed.

    Returns:
        Dictionary with validation results:
        - is_valid: True if size is within limit
        - error: Human-readable error message or None if valid
        - file_size: The size that was validated
        - max_size: The limit that was applied

    Example:
        >>> validate_file_size(2 * 1024**3, 1024**3)["error"]
        'File size (2.00 GB) exceeds maximum allowed (1.00 GB)'
    """
    result: dict[str, Any] = {
        "is_valid": True,
        "error": None,
        "file_size": file_size,
        "max_size": max_size,
    }

    if file_size < 0:
        result["is_valid"] = False
        result["error"] = "Invalid file size: cannot be negative"
        return result

    if file_size > max_size:
        result["is_valid"] = False
        result["error"] = (
            f"File size ({format_file_size(file_size)}) exceeds maximum allowed "
            f"({format_file_size(max_size)})"
        )

    return result


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable string.

    Example:
        >>> format_file_size(1536)
        '1.50 KB'
        >>> format_file_size(1 << 30)
        '1.00 GB'
    """
    if size_bytes < 0:
        return "Invalid size"

    bytes_per_mb = BYTES_PER_KB * BYTES_PER_KB
    bytes_per_gb = bytes_per_mb * BYTES_PER_KB

    if size_bytes < BYTES_PER_KB:
        return f"{size_bytes} B"
    if size_bytes < bytes_per_mb:
        return f"{size_bytes / BYTES_PER_KB:.2f} KB"
    if size_bytes < bytes_per_gb:
        return f"{size_bytes / bytes_per_mb:.2f} MB"
    return f"{size_bytes / bytes_per_gb:.2f} GB"


__all__ = [
    "format_file_size",
    "parse_media_type",
    "validate_file_size",
]
