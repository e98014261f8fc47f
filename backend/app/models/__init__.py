"""
Models Package for Clipstream.

Example Usage:
    ```python
    from app.models import StorageLocator, Video

    video = Video(id="6b1f...", owner_id="9c2e...", title="Launch day recap")
    video.set_video_locator(StorageLocator(bucket="clipstream-videos", key="landscape/Qm.mp4"))
    ```
"""

from app.models.video import (
    LOCATOR_SEPARATOR,
    AspectCategory,
    MalformedLocatorError,
    StorageLocator,
    Video,
    VideoCreate,
    VideoResponse,
)


__all__ = [
    "LOCATOR_SEPARATOR",
    "AspectCategory",
    "MalformedLocatorError",
    "StorageLocator",
    "Video",
    "VideoCreate",
    "VideoResponse",
]
