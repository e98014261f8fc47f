"""
File Validation Utilities Module for Clipstream

This module implements the checks applied to inbound media before it enters
the ingestion pipeline:
- Content-Type header parsing (type/subtype plus parameters)
- Whitelisting of the single supported video declaration (video/mp4)
- Whitelisting of thumbnail image types and their storage extensions
- Human-readable size formatting for error messages and logs
"""

import re


# =============================================================================
# CONSTANTS - Size Formatting
# =============================================================================

# Bytes in a kilobyte (for size conversions and comparisons)
BYTES_PER_KB: int = 1024


# =============================================================================
# CONSTANTS - Supported Media Types
# =============================================================================

# The pipeline remuxes MP4 containers only
SUPPORTED_VIDEO_MEDIA_TYPE: str = "video/mp4"
VIDEO_FILE_EXTENSION: str = ".mp4"

# Thumbnail media types mapped to the extension used for their storage key
THUMBNAIL_EXTENSIONS: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
}


# =============================================================================
# CONSTANTS - Header Grammar
# =============================================================================

# RFC 7230 token characters
_TOKEN = r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+"
_MEDIA_TYPE_PATTERN = re.compile(rf"^({_TOKEN})/({_TOKEN})$")
_PARAM_NAME_PATTERN = re.compile(rf"^{_TOKEN}$")
_QUOTED_STRING_PATTERN = re.compile(r'^"(?:[^"\\]|\\.)*"$')


class MediaTypeError(ValueError):
    """Raised when a Content-Type header cannot be parsed."""


# =============================================================================
# CONTENT-TYPE PARSING
# =============================================================================


def parse_media_type(content_type: str | None) -> tuple[str, dict[str, str]]:
    """
    Parse a Content-Type header value into its media type and parameters.

    The media type is lowercased; parameter names are lowercased and quoted
    parameter values are unquoted.

    Args:
        content_type: Raw header value, e.g. ``'video/mp4; codecs="avc1"'``.

    Returns:
        Tuple of (media type, parameter mapping).

    Raises:
        MediaTypeError: If the header is missing or does not follow the
            ``type/subtype *(; name=value)`` grammar.

    Example:
        >>> parse_media_type("Video/MP4; codecs=avc1")
        ('video/mp4', {'codecs': 'avc1'})
    """
    if not content_type or not content_type.strip():
        raise MediaTypeError("Content-Type is missing")

    head, *raw_params = content_type.split(";")
    media_type = head.strip().lower()
    if not _MEDIA_TYPE_PATTERN.match(media_type):
        raise MediaTypeError(f"Malformed media type: {head.strip()!r}")

    params: dict[str, str] = {}
    for raw_param in raw_params:
        raw_param = raw_param.strip()
        if not raw_param:
            # Tolerate a trailing semicolon
            continue

        name, sep, value = raw_param.partition("=")
        name = name.strip().lower()
        value = value.strip()
        if not sep or not _PARAM_NAME_PATTERN.match(name) or not value:
            raise MediaTypeError(f"Malformed media type parameter: {raw_param!r}")

        if value.startswith('"'):
            if not _QUOTED_STRING_PATTERN.match(value):
                raise MediaTypeError(f"Unterminated quoted parameter: {raw_param!r}")
            value = re.sub(r"\\(.)", r"\1", value[1:-1])
        elif not _PARAM_NAME_PATTERN.match(value):
            raise MediaTypeError(f"Malformed media type parameter: {raw_param!r}")

        if name in params:
            raise MediaTypeError(f"Duplicate media type parameter: {name!r}")
        params[name] = value

    return media_type, params


def is_supported_video_type(media_type: str) -> bool:
    """Check a parsed media type against the one video declaration we accept."""
    return media_type == SUPPORTED_VIDEO_MEDIA_TYPE


def get_thumbnail_extension(media_type: str) -> str | None:
    """Return the storage extension for a thumbnail media type, or None if unsupported."""
    return THUMBNAIL_EXTENSIONS.get(media_type)


# =============================================================================
# SIZE FORMATTING
# =============================================================================


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        Human-readable size string (e.g., "1.50 KB", "1.00 GB")

    Example:
        >>> format_file_size(1536)
        '1.50 KB'
        >>> format_file_size(1073741824)
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
