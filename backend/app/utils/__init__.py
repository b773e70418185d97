"""
Utilities Package for the Tubely Backend Application.

Modules:
--------
file_validator:
    - Media type parsing of declared Content-Type values
    - Upload size checks and human-readable sizes

logger:
    - JSONFormatter / StandardFormatter
    - setup_logging for application-wide configuration
    - add_log_context for per-upload context fields
"""

from app.utils.file_validator import format_file_size, parse_media_type, validate_file_size
from app.utils.logger import add_log_context, setup_logging


__all__ = [
    "add_log_context",
    "format_file_size",
    "parse_media_type",
    "setup_logging",
    "validate_file_size",
]
