"""
Read-time URL signing for video records.

Stored locators never leave the service. Whenever a record is returned to a
client, each locator on it is parsed and exchanged for a presigned GET URL
with a fresh expiry window. Signing has no side effects and does not touch
previously issued URLs.
"""

import logging

from app.models.video import StorageLocator, Video, VideoResponse
from app.services.storage_service import StorageService


logger = logging.getLogger(__name__)


class VideoURLSigner:
    """
    Turns stored locators into time-limited URLs.

    Args:
        storage: Storage service used to presign
        expires_in: URL lifetime in seconds
    """

    def __init__(self, storage: StorageService, expires_in: int) -> None:
        self.storage = storage
        self.expires_in = expires_in

    async def sign_locator(self, locator: str) -> str:
        """
        Presign a flattened ``bucket,key`` locator.

        Raises:
            MalformedLocatorError: If the locator does not split into exactly
                two non-empty parts.
            StorageOperationError: If presigning fails.
        """
        parsed = StorageLocator.parse(locator)
        return await self.storage.generate_presigned_download_url(
            parsed.bucket, parsed.key, expires_in=self.expires_in
        )

    async def sign_video(self, video: Video) -> VideoResponse:
        """Build the client view of ``video`` with signed URLs in place of locators."""
        video_url = None
        if video.video_locator is not None:
            video_url = await self.sign_locator(video.video_locator)

        thumbnail_url = None
        if video.thumbnail_locator is not None:
            thumbnail_url = await self.sign_locator(video.thumbnail_locator)

        return VideoResponse(
            id=video.id,
            owner_id=video.owner_id,
            title=video.title,
            description=video.description,
            video_url=video_url,
            thumbnail_url=thumbnail_url,
            created_at=video.created_at,
            updated_at=video.updated_at,
        )
