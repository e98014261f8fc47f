"""
Video Pydantic models for Clipstream.

This module defines the Video record persisted in MongoDB, the structured
storage locator that points at an object in the bucket, the aspect categories
used to route storage keys, and the request/response shapes used by the
videos router.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# Separator used when a locator is flattened into a single stored string.
LOCATOR_SEPARATOR = ","


# =============================================================================
# ENUMS
# =============================================================================


class AspectCategory(str, Enum):
    """
    Routing categories derived from a video's frame geometry.

    The value doubles as the first path segment of the storage key, so every
    uploaded object lands under ``landscape/``, ``portrait/`` or ``other/``.
    """

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"


# =============================================================================
# STORAGE LOCATOR
# =============================================================================


class MalformedLocatorError(ValueError):
    """Raised when a stored locator does not split into a bucket and a key."""


class StorageLocator(BaseModel):
    """
    Structured ``(bucket, key)`` pair identifying one object in storage.

    Records keep the flattened ``"bucket,key"`` form for compatibility with
    existing documents; everything above the store works with this type.
    """

    bucket: str = Field(..., min_length=1, description="Bucket holding the object")
    key: str = Field(..., min_length=1, description="Object key inside the bucket")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def parse(cls, value: str | None) -> "StorageLocator":
        """
        Parse a flattened locator string.

        Args:
            value: Stored locator in ``bucket,key`` form.

        Returns:
            StorageLocator: The parsed pair.

        Raises:
            MalformedLocatorError: If the value is empty or does not split into
                exactly two non-empty parts.
        """
        if not value:
            raise MalformedLocatorError("Locator is empty")

        parts = value.split(LOCATOR_SEPARATOR)
        if len(parts) != 2 or not all(parts):
            raise MalformedLocatorError(f"Invalid locator: {value!r}")

        return cls(bucket=parts[0], key=parts[1])

    def serialize(self) -> str:
        """Flatten into the single-string form stored on video records."""
        return f"{self.bucket}{LOCATOR_SEPARATOR}{self.key}"


# =============================================================================
# MODELS
# =============================================================================


class Video(BaseModel):
    """
    Pydantic model for a video record stored in MongoDB.

    Attributes:
        id: UUID string used as the MongoDB ``_id``
        owner_id: ID of the user who created the record; only this user may
            replace the video or thumbnail payload
        title: Display title
        description: Optional free-form description
        video_locator: Flattened ``bucket,key`` of the published video, absent
            until the first successful upload
        thumbnail_locator: Flattened ``bucket,key`` of the thumbnail image
        created_at: Record creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)
    """

    id: str = Field(..., alias="_id", description="Video UUID")

    owner_id: str = Field(..., min_length=1, description="Uploading user's ID")

    title: str = Field(..., min_length=1, max_length=200, description="Video title")

    description: str | None = Field(default=None, max_length=5000)

    video_locator: str | None = Field(
        default=None, description="Stored 'bucket,key' of the published video"
    )

    thumbnail_locator: str | None = Field(
        default=None, description="Stored 'bucket,key' of the thumbnail image"
    )

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = ConfigDict(populate_by_name=True)

    def is_owned_by(self, user_id: str) -> bool:
        """Check whether ``user_id`` is the recorded owner."""
        return self.owner_id == user_id

    def set_video_locator(self, locator: StorageLocator) -> None:
        """Point the record at a freshly uploaded video object."""
        self.video_locator = locator.serialize()
        self.updated_at = datetime.now(UTC)

    def set_thumbnail_locator(self, locator: StorageLocator) -> None:
        """Point the record at a freshly uploaded thumbnail object."""
        self.thumbnail_locator = locator.serialize()
        self.updated_at = datetime.now(UTC)

    def to_document(self) -> dict:
        """Dump the record in the shape stored in MongoDB."""
        return self.model_dump(by_alias=True)


class VideoCreate(BaseModel):
    """Request body for creating a draft video record."""

    title: str = Field(..., min_length=1, max_length=200, examples=["Launch day recap"])
    description: str | None = Field(default=None, max_length=5000)


class VideoResponse(BaseModel):
    """
    Video record as returned to clients.

    Stored locators never leave the service: ``video_url`` and
    ``thumbnail_url`` carry time-limited presigned URLs instead.
    """

    id: str
    owner_id: str
    title: str
    description: str | None = None
    video_url: str | None = None
    thumbnail_url: str | None = None
    created_at: datetime
    updated_at: datetime
