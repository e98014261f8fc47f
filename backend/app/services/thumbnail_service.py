"""
Thumbnail write-through path.

A thumbnail is small enough to hold in memory, so it skips the temp-file,
probe and remux stages of the video pipeline: the bytes are validated, written
to the bucket under ``thumbnails/<token>.<ext>`` and the locator is persisted
on the record.
"""

import logging

from app.config import Settings
from app.models.video import StorageLocator, VideoResponse
from app.services.signing_service import VideoURLSigner
from app.services.storage_service import StorageService, StorageServiceError
from app.services.upload_service import (
    AsyncByteStream,
    FileTooLargeError,
    FileValidationError,
    RecordUpdateError,
    StorageError,
    ensure_owned_video,
)
from app.services.video_store import VideoStore, VideoStoreError
from app.utils.file_validator import (
    MediaTypeError,
    format_file_size,
    get_thumbnail_extension,
    parse_media_type,
)
from app.utils.logger import add_log_context
from app.utils.security import generate_storage_key


logger = logging.getLogger(__name__)

THUMBNAIL_KEY_PREFIX = "thumbnails"

READ_CHUNK_SIZE = 64 * 1024


class ThumbnailService:
    """Stores thumbnails and links them to video records."""

    def __init__(
        self,
        store: VideoStore,
        storage: StorageService,
        signer: VideoURLSigner,
        settings: Settings,
    ) -> None:
        self.store = store
        self.storage = storage
        self.signer = signer
        self.max_upload_bytes = settings.max_thumbnail_upload_bytes

    async def upload_thumbnail(
        self,
        owner_id: str,
        video_id: str,
        stream: AsyncByteStream,
        content_type: str | None,
    ) -> VideoResponse:
        """
        Replace the thumbnail of an owned video.

        Raises the same exception types as ``VideoUploadService.upload_video``
        for the same conditions; accepted types are image/jpeg and image/png.
        """
        ctx_logger = add_log_context(logger, video_id=video_id, user_id=owner_id)

        video = ensure_owned_video(await self.store.get(video_id), video_id, owner_id)

        try:
            media_type, _ = parse_media_type(content_type)
        except MediaTypeError as e:
            raise FileValidationError("Invalid Content-Type") from e

        extension = get_thumbnail_extension(media_type)
        if extension is None:
            raise FileValidationError("Invalid file type, only JPEG or PNG is allowed")

        data = await self._read_limited(stream)
        key = generate_storage_key(THUMBNAIL_KEY_PREFIX, extension)

        try:
            bucket = await self.storage.put_object(key, data, media_type)
        except StorageServiceError as e:
            ctx_logger.error("Thumbnail write failed for key %s: %s", key, e)
            raise StorageError("Couldn't upload thumbnail") from e

        video.set_thumbnail_locator(StorageLocator(bucket=bucket, key=key))

        try:
            await self.store.update(video)
        except VideoStoreError as e:
            ctx_logger.error(
                "Record update failed after thumbnail upload; object left unreferenced",
                extra={"bucket": bucket, "key": key},
            )
            raise RecordUpdateError("Couldn't update video") from e

        ctx_logger.info(
            "Stored %s thumbnail", format_file_size(len(data)), extra={"key": key}
        )

        refreshed = await self.store.get(video_id)
        return await self.signer.sign_video(refreshed or video)

    async def _read_limited(self, stream: AsyncByteStream) -> bytes:
        chunks: list[bytes] = []
        total = 0
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            total += len(chunk)
            if total > self.max_upload_bytes:
                raise FileTooLargeError(
                    f"Thumbnail exceeds the {format_file_size(self.max_upload_bytes)} limit"
                )
            chunks.append(chunk)
        return b"".join(chunks)
