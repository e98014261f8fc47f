"""
Utilities Package for the Clipstream Backend Application.

Modules:
--------
file_validator:
    Content-Type parsing and the supported video/thumbnail media types.

aspect_ratio:
    Tolerance-based 16:9 / 9:16 classification used to route storage keys.

security:
    URL-safe random tokens and storage key generation.

logger:
    JSON/standard formatters, setup_logging and context-enriched adapters.
"""

from app.utils.aspect_ratio import classify_aspect_ratio
from app.utils.file_validator import format_file_size, parse_media_type
from app.utils.logger import add_log_context, get_logger, setup_logging
from app.utils.security import generate_secure_token, generate_storage_key


__all__ = [
    "classify_aspect_ratio",
    "format_file_size",
    "parse_media_type",
    "add_log_context",
    "get_logger",
    "setup_logging",
    "generate_secure_token",
    "generate_storage_key",
]
