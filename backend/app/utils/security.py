"""
Security utilities module for Clipstream.

Cryptographically random identifiers used for storage keys. Object keys are
derived from 256 bits of randomness so they cannot be guessed from a record
ID or enumerated, and collisions are not a practical concern.
"""

import base64
import secrets


# 32 bytes = 256 bits of entropy per storage key
STORAGE_KEY_TOKEN_BYTES = 32

KEY_PATH_SEPARATOR = "/"


def generate_secure_token(num_bytes: int = STORAGE_KEY_TOKEN_BYTES) -> str:
    """
    Generate a URL-safe random token.

    The raw bytes come from the ``secrets`` module and are encoded with the
    URL-safe base64 alphabet without padding, so a 32-byte token is always
    43 characters long.

    Args:
        num_bytes: Number of random bytes to draw. Defaults to 32.

    Returns:
        str: Unpadded URL-safe base64 encoding of the random bytes.

    Raises:
        ValueError: If ``num_bytes`` is not positive.
    """
    if num_bytes <= 0:
        raise ValueError("num_bytes must be a positive integer")

    raw = secrets.token_bytes(num_bytes)
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def generate_storage_key(prefix: str, extension: str) -> str:
    """
    Build a fresh object key of the form ``<prefix>/<token><extension>``.

    Args:
        prefix: Routing segment, e.g. ``"landscape"`` or ``"thumbnails"``.
        extension: File extension including the dot, e.g. ``".mp4"``.

    Returns:
        str: A new storage key. No state is kept between calls.

    Example:
        >>> generate_storage_key("portrait", ".mp4")  # doctest: +SKIP
        'portrait/3q2-7wE...X9s.mp4'
    """
    if not prefix:
        raise ValueError("prefix must not be empty")
    if extension and not extension.startswith("."):
        extension = f".{extension}"

    return f"{prefix}{KEY_PATH_SEPARATOR}{generate_secure_token()}{extension}"
