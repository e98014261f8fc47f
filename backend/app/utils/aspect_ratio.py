"""
Aspect ratio classification for uploaded videos.

Encoded dimensions are rarely exact multiples of 16:9 (854x480, 1366x768, ...),
so the width/height ratio is compared against each canonical ratio with an
absolute tolerance instead of exact equality. Landscape is checked first; the
two canonical ratios are far enough apart that no ratio can match both for any
tolerance below 0.5.
"""

import logging

from app.models.video import AspectCategory


logger = logging.getLogger(__name__)

LANDSCAPE_RATIO = 16 / 9
PORTRAIT_RATIO = 9 / 16
DEFAULT_TOLERANCE = 0.01


def classify_aspect_ratio(
    width: int,
    height: int,
    tolerance: float = DEFAULT_TOLERANCE,
) -> AspectCategory:
    """
    Classify a frame geometry into a routing category.

    Args:
        width: Frame width in pixels (positive).
        height: Frame height in pixels (positive).
        tolerance: Maximum absolute difference between ``width / height`` and
            a canonical ratio for the category to match.

    Returns:
        AspectCategory: ``LANDSCAPE`` for ~16:9, ``PORTRAIT`` for ~9:16,
        ``OTHER`` for anything else.

    Raises:
        ValueError: If either dimension is not a positive integer.

    Example:
        >>> classify_aspect_ratio(1920, 1080)
        <AspectCategory.LANDSCAPE: 'landscape'>
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Dimensions must be positive, got {width}x{height}")

    ratio = width / height

    if abs(ratio - LANDSCAPE_RATIO) <= tolerance:
        category = AspectCategory.LANDSCAPE
    elif abs(ratio - PORTRAIT_RATIO) <= tolerance:
        category = AspectCategory.PORTRAIT
    else:
        category = AspectCategory.OTHER

    logger.debug("Classified %dx%d (ratio %.4f) as %s", width, height, ratio, category.value)
    return category
