"""
Clipstream Video Upload Service Module

This module implements the video ingestion and publish pipeline. For one
authenticated owner, one target video record and one inbound byte stream it:

1. Loads the record and checks ownership
2. Validates the declared content type (``video/mp4`` only)
3. Copies the stream to a temporary file under a hard byte ceiling
4. Probes the file for its video geometry and classifies the aspect ratio
5. Remuxes the file for fast start into a second temporary file
6. Uploads the remuxed file under a fresh ``<category>/<token>.mp4`` key
7. Persists the ``bucket,key`` locator on the record
8. Re-reads the record and returns it with a signed playback URL

Temporary files are scoped to one call and are removed on every exit path.
No step is retried. A record update that fails after the object was stored
leaves the object unreferenced; it is logged with its bucket and key and is
not deleted.
"""

import contextlib
import logging
import os
import tempfile

from typing import Protocol

import aiofiles

from app.config import Settings
from app.models.video import StorageLocator, Video, VideoResponse
from app.services.media_service import FastStartRemuxer, MediaProber, MediaToolError
from app.services.signing_service import VideoURLSigner
from app.services.storage_service import StorageService, StorageServiceError
from app.services.video_store import VideoStore, VideoStoreError
from app.utils.aspect_ratio import classify_aspect_ratio
from app.utils.file_validator import (
    VIDEO_FILE_EXTENSION,
    MediaTypeError,
    format_file_size,
    is_supported_video_type,
    parse_media_type,
)
from app.utils.logger import add_log_context
from app.utils.security import generate_storage_key


logger = logging.getLogger(__name__)

# Read size for the stream-to-disk copy
COPY_CHUNK_SIZE = 1024 * 1024

TEMP_FILE_PREFIX = "clipstream-upload-"


# =============================================================================
# EXCEPTIONS
# =============================================================================


class UploadServiceError(Exception):
    """Base exception for upload service errors."""


class FileValidationError(UploadServiceError):
    """Raised when the declared content type is malformed or unsupported."""


class FileTooLargeError(UploadServiceError):
    """Raised when the inbound stream crosses the configured byte ceiling."""


class VideoNotFoundError(UploadServiceError):
    """Raised when the target video record does not exist."""


class NotVideoOwnerError(UploadServiceError):
    """Raised when the caller is not the owner of the target record."""


class MediaProcessingError(UploadServiceError):
    """Raised when probing or remuxing fails."""


class StorageError(UploadServiceError):
    """Raised when the object-storage write fails."""


class RecordUpdateError(UploadServiceError):
    """Raised when the locator cannot be persisted after a successful write."""


# =============================================================================
# HELPERS
# =============================================================================


class AsyncByteStream(Protocol):
    """Anything with an async ``read(size)``, e.g. ``fastapi.UploadFile``."""

    async def read(self, size: int = -1) -> bytes: ...


def ensure_owned_video(video: Video | None, video_id: str, owner_id: str) -> Video:
    """
    Apply the existence and ownership checks shared by every write path.

    Raises:
        VideoNotFoundError: If ``video`` is None.
        NotVideoOwnerError: If ``owner_id`` does not own the record.
    """
    if video is None:
        raise VideoNotFoundError(f"Couldn't find video {video_id}")
    if not video.is_owned_by(owner_id):
        raise NotVideoOwnerError("Not authorized to update this video")
    return video


def _discard(path: str) -> None:
    try:
        os.remove(path)
        logger.debug("Removed temporary file %s", path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to clean up temporary file '%s': %s", path, e)


def _reserve_temp_path(stack: contextlib.ExitStack, directory: str) -> str:
    """Create an empty temp file whose removal is registered on ``stack``."""
    fd, path = tempfile.mkstemp(
        prefix=TEMP_FILE_PREFIX, suffix=VIDEO_FILE_EXTENSION, dir=directory
    )
    os.close(fd)
    stack.callback(_discard, path)
    return path


# =============================================================================
# SERVICE
# =============================================================================


class VideoUploadService:
    """
    Pipeline controller for replacing a video's payload.

    All collaborators are injected so the pipeline can run against fakes:

    Args:
        store: Metadata store holding video records
        storage: Object storage client
        prober: Media geometry capability
        remuxer: Fast-start remux capability
        signer: Read-time URL signer
        settings: Size ceiling, temp directory and aspect tolerance
    """

    def __init__(
        self,
        store: VideoStore,
        storage: StorageService,
        prober: MediaProber,
        remuxer: FastStartRemuxer,
        signer: VideoURLSigner,
        settings: Settings,
    ) -> None:
        self.store = store
        self.storage = storage
        self.prober = prober
        self.remuxer = remuxer
        self.signer = signer
        self.max_upload_bytes = settings.max_video_upload_bytes
        self.temp_dir = settings.upload_temp_dir
        self.aspect_tolerance = settings.aspect_ratio_tolerance

    async def upload_video(
        self,
        owner_id: str,
        video_id: str,
        stream: AsyncByteStream,
        content_type: str | None,
    ) -> VideoResponse:
        """
        Run the full ingestion pipeline and return the signed record.

        Args:
            owner_id: Authenticated caller
            video_id: Target record ID
            stream: Inbound video bytes
            content_type: Declared Content-Type of the file part

        Returns:
            VideoResponse: The re-read record with a presigned ``video_url``.

        Raises:
            VideoNotFoundError: Unknown ``video_id``.
            NotVideoOwnerError: Caller does not own the record.
            FileValidationError: Content type malformed or not ``video/mp4``.
            FileTooLargeError: Stream crossed the byte ceiling.
            MediaProcessingError: Probe or remux failed.
            StorageError: Object-storage write failed.
            RecordUpdateError: Locator could not be persisted.
            UploadServiceError: Temporary file I/O failed.
        """
        ctx_logger = add_log_context(logger, video_id=video_id, user_id=owner_id)

        video = ensure_owned_video(await self.store.get(video_id), video_id, owner_id)

        try:
            media_type, _ = parse_media_type(content_type)
        except MediaTypeError as e:
            raise FileValidationError("Invalid Content-Type") from e
        if not is_supported_video_type(media_type):
            raise FileValidationError("Invalid file type, only MP4 is allowed")

        with contextlib.ExitStack() as stack:
            try:
                raw_path = _reserve_temp_path(stack, self.temp_dir)
                size = await self._copy_to_disk(stream, raw_path)
            except OSError as e:
                ctx_logger.exception("Could not write upload to a temporary file")
                raise UploadServiceError("Couldn't write file to disk") from e

            ctx_logger.info("Received upload of %s", format_file_size(size))

            try:
                geometry = await self.prober.probe(raw_path)
            except MediaToolError as e:
                ctx_logger.error("Probe failed: %s", e)
                raise MediaProcessingError("Couldn't read video metadata") from e

            category = classify_aspect_ratio(
                geometry.width, geometry.height, tolerance=self.aspect_tolerance
            )

            try:
                processed_path = _reserve_temp_path(stack, self.temp_dir)
            except OSError as e:
                ctx_logger.exception("Could not create remux output file")
                raise UploadServiceError("Couldn't create processed file") from e

            try:
                await self.remuxer.remux(raw_path, processed_path)
            except MediaToolError as e:
                ctx_logger.error("Remux failed: %s", e)
                raise MediaProcessingError("Couldn't process video") from e

            # The raw copy is no longer needed once the remuxed file exists
            _discard(raw_path)

            key = generate_storage_key(category.value, VIDEO_FILE_EXTENSION)

            try:
                with open(processed_path, "rb") as body:
                    bucket = await self.storage.put_object(key, body, media_type)
            except StorageServiceError as e:
                ctx_logger.error("Storage write failed for key %s: %s", key, e)
                raise StorageError("Couldn't upload video") from e
            except OSError as e:
                ctx_logger.exception("Could not read processed file")
                raise UploadServiceError("Couldn't read processed file") from e

        locator = StorageLocator(bucket=bucket, key=key)
        video.set_video_locator(locator)

        try:
            await self.store.update(video)
        except VideoStoreError as e:
            # Stored object is now unreferenced; not rolled back
            ctx_logger.error(
                "Record update failed after upload; object left unreferenced",
                extra={"bucket": bucket, "key": key},
            )
            raise RecordUpdateError("Couldn't update video") from e

        ctx_logger.info(
            "Published %s video", category.value, extra={"bucket": bucket, "key": key}
        )

        refreshed = await self.store.get(video_id)
        return await self.signer.sign_video(refreshed or video)

    async def _copy_to_disk(self, stream: AsyncByteStream, path: str) -> int:
        """
        Stream ``stream`` into ``path``, refusing to write past the ceiling.

        Raises:
            FileTooLargeError: Before any byte beyond the ceiling is written.
            OSError: On write failure.
        """
        written = 0
        async with aiofiles.open(path, "wb") as out:
            while True:
                chunk = await stream.read(COPY_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > self.max_upload_bytes:
                    raise FileTooLargeError(
                        f"Upload exceeds the {format_file_size(self.max_upload_bytes)} limit"
                    )
                await out.write(chunk)
        return written
