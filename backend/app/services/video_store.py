"""
Video metadata store backed by the MongoDB ``videos`` collection.

Documents are keyed by the video UUID string. Locators are stored in their
flattened ``bucket,key`` form so existing records stay readable.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import ValidationError
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.models.video import Video


logger = logging.getLogger(__name__)


class VideoStoreError(Exception):
    """Raised when a metadata store operation fails."""


class VideoStore:
    """CRUD access to video records."""

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self._collection = collection

    async def get(self, video_id: str) -> Video | None:
        """
        Load one record.

        Returns:
            Video | None: The record, or None when no document has this ID.

        Raises:
            VideoStoreError: If the query fails or the stored document is invalid.
        """
        try:
            document = await self._collection.find_one({"_id": video_id})
        except PyMongoError as e:
            raise VideoStoreError(f"Failed to load video {video_id}") from e

        if document is None:
            return None

        try:
            return Video.model_validate(document)
        except ValidationError as e:
            raise VideoStoreError(f"Stored video {video_id} is invalid") from e

    async def create(self, video: Video) -> Video:
        """Insert a new record; the ID must not already exist."""
        try:
            await self._collection.insert_one(video.to_document())
        except DuplicateKeyError as e:
            raise VideoStoreError(f"Video {video.id} already exists") from e
        except PyMongoError as e:
            raise VideoStoreError(f"Failed to create video {video.id}") from e

        logger.info("Created video record %s for owner %s", video.id, video.owner_id)
        return video

    async def update(self, video: Video) -> None:
        """
        Replace the stored record with ``video`` (last writer wins).

        Raises:
            VideoStoreError: If the write fails or the record no longer exists.
        """
        try:
            result = await self._collection.replace_one({"_id": video.id}, video.to_document())
        except PyMongoError as e:
            raise VideoStoreError(f"Failed to update video {video.id}") from e

        if result.matched_count == 0:
            raise VideoStoreError(f"Video {video.id} no longer exists")

    async def list_for_owner(self, owner_id: str, limit: int = 100) -> list[Video]:
        """Return the owner's records, newest first."""
        try:
            cursor = (
                self._collection.find({"owner_id": owner_id})
                .sort("created_at", DESCENDING)
                .limit(limit)
            )
            documents = await cursor.to_list(length=limit)
        except PyMongoError as e:
            raise VideoStoreError(f"Failed to list videos for owner {owner_id}") from e

        try:
            return [Video.model_validate(document) for document in documents]
        except ValidationError as e:
            raise VideoStoreError(f"Stored video for owner {owner_id} is invalid") from e
