"""
FastAPI Videos Router for Clipstream

Endpoints:
- POST /                      - Create a draft video record
- GET /                       - List the caller's videos, newest first
- GET /{video_id}             - Fetch one video
- POST /{video_id}/video      - Upload and publish the video payload
- POST /{video_id}/thumbnail  - Upload the thumbnail image

Every record leaving this router has passed through the URL signer, so
clients receive presigned URLs and never the stored locators. Internal
failures are logged; callers get a short generic message.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from pydantic import BaseModel, Field

from app.config import Settings, get_settings
from app.core.auth import get_current_user_id
from app.core.database import get_db_client
from app.models.video import MalformedLocatorError, Video, VideoCreate, VideoResponse
from app.services.media_service import (
    FastStartRemuxer,
    FFmpegRemuxer,
    FFprobeProber,
    MediaProber,
)
from app.services.signing_service import VideoURLSigner
from app.services.storage_service import StorageService, StorageServiceError
from app.services.thumbnail_service import ThumbnailService
from app.services.upload_service import (
    FileTooLargeError,
    FileValidationError,
    NotVideoOwnerError,
    UploadServiceError,
    VideoNotFoundError,
    VideoUploadService,
)
from app.services.video_store import VideoStore, VideoStoreError


logger = logging.getLogger(__name__)


# ============================================================================
# Response Models
# ============================================================================


class ErrorResponse(BaseModel):
    """Structured error body carried in ``detail``."""

    error: str = Field(..., description="Error type/code")
    message: str = Field(..., description="Human-readable error message")


# ============================================================================
# Router Definition
# ============================================================================

router = APIRouter(
    tags=["videos"],
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized - Invalid or missing token"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)


# ============================================================================
# Dependency Injection Functions
# ============================================================================


def get_storage_service(settings: Settings = Depends(get_settings)) -> StorageService:
    return StorageService.from_settings(settings)


def get_video_store() -> VideoStore:
    return VideoStore(get_db_client().get_videos_collection())


def get_media_prober(settings: Settings = Depends(get_settings)) -> MediaProber:
    return FFprobeProber.from_settings(settings)


def get_remuxer(settings: Settings = Depends(get_settings)) -> FastStartRemuxer:
    return FFmpegRemuxer.from_settings(settings)


def get_url_signer(
    storage: StorageService = Depends(get_storage_service),
    settings: Settings = Depends(get_settings),
) -> VideoURLSigner:
    return VideoURLSigner(storage, expires_in=settings.signed_url_expiration_seconds)


def get_upload_service(
    store: VideoStore = Depends(get_video_store),
    storage: StorageService = Depends(get_storage_service),
    prober: MediaProber = Depends(get_media_prober),
    remuxer: FastStartRemuxer = Depends(get_remuxer),
    signer: VideoURLSigner = Depends(get_url_signer),
    settings: Settings = Depends(get_settings),
) -> VideoUploadService:
    return VideoUploadService(
        store=store,
        storage=storage,
        prober=prober,
        remuxer=remuxer,
        signer=signer,
        settings=settings,
    )


def get_thumbnail_service(
    store: VideoStore = Depends(get_video_store),
    storage: StorageService = Depends(get_storage_service),
    signer: VideoURLSigner = Depends(get_url_signer),
    settings: Settings = Depends(get_settings),
) -> ThumbnailService:
    return ThumbnailService(store=store, storage=storage, signer=signer, settings=settings)


# ============================================================================
# Helper Functions
# ============================================================================


def _error(status_code: int, error: str, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"error": error, "message": message})


def _internal_error(message: str) -> HTTPException:
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", message)


def parse_video_id(video_id: str) -> str:
    """Canonicalize a path ID, rejecting anything that is not a UUID."""
    try:
        return str(uuid.UUID(video_id))
    except ValueError as e:
        raise _error(status.HTTP_400_BAD_REQUEST, "invalid_id", "Invalid ID") from e


def upload_error_to_http(exc: UploadServiceError) -> HTTPException:
    """Map pipeline failures onto the API's status codes."""
    if isinstance(exc, FileValidationError):
        return _error(status.HTTP_400_BAD_REQUEST, "invalid_file", str(exc))
    if isinstance(exc, FileTooLargeError):
        return _error(413, "file_too_large", str(exc))
    if isinstance(exc, NotVideoOwnerError):
        return _error(status.HTTP_401_UNAUTHORIZED, "not_owner", str(exc))
    if isinstance(exc, VideoNotFoundError):
        return _error(status.HTTP_404_NOT_FOUND, "not_found", "Couldn't find video")
    return _internal_error(str(exc))


async def _sign_or_fail(signer: VideoURLSigner, video: Video) -> VideoResponse:
    try:
        return await signer.sign_video(video)
    except (MalformedLocatorError, StorageServiceError) as e:
        logger.error("Couldn't sign video %s: %s", video.id, e)
        raise _internal_error("Couldn't generate video URL") from e


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "",
    response_model=VideoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create video",
)
async def create_video(
    payload: VideoCreate,
    user_id: str = Depends(get_current_user_id),
    store: VideoStore = Depends(get_video_store),
    signer: VideoURLSigner = Depends(get_url_signer),
) -> VideoResponse:
    """Create a draft record owned by the caller; it has no video until an upload succeeds."""
    video = Video(
        id=str(uuid.uuid4()),
        owner_id=user_id,
        title=payload.title,
        description=payload.description,
    )

    try:
        await store.create(video)
    except VideoStoreError as e:
        logger.error("Couldn't create video for %s: %s", user_id, e)
        raise _internal_error("Couldn't create video") from e

    return await _sign_or_fail(signer, video)


@router.get("", response_model=list[VideoResponse], summary="List videos")
async def list_videos(
    user_id: str = Depends(get_current_user_id),
    store: VideoStore = Depends(get_video_store),
    signer: VideoURLSigner = Depends(get_url_signer),
) -> list[VideoResponse]:
    try:
        videos = await store.list_for_owner(user_id)
    except VideoStoreError as e:
        logger.error("Couldn't list videos for %s: %s", user_id, e)
        raise _internal_error("Couldn't retrieve videos") from e

    return [await _sign_or_fail(signer, video) for video in videos]


@router.get(
    "/{video_id}",
    response_model=VideoResponse,
    summary="Get video",
    responses={
        400: {"model": ErrorResponse, "description": "Malformed video ID"},
        404: {"model": ErrorResponse, "description": "Video not found"},
    },
)
async def get_video(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    store: VideoStore = Depends(get_video_store),
    signer: VideoURLSigner = Depends(get_url_signer),
) -> VideoResponse:
    """Fetch one of the caller's videos with freshly signed URLs."""
    video_id = parse_video_id(video_id)

    try:
        video = await store.get(video_id)
    except VideoStoreError as e:
        logger.error("Couldn't load video %s: %s", video_id, e)
        raise _internal_error("Couldn't get video") from e

    if video is None:
        raise _error(status.HTTP_404_NOT_FOUND, "not_found", "Couldn't find video")
    if not video.is_owned_by(user_id):
        raise _error(status.HTTP_401_UNAUTHORIZED, "not_owner", "Not authorized to view this video")

    return await _sign_or_fail(signer, video)


@router.post(
    "/{video_id}/video",
    response_model=VideoResponse,
    summary="Upload video",
    description="Multipart upload (field ``video``) of an MP4 that replaces the video payload.",
    responses={
        400: {"model": ErrorResponse, "description": "Malformed ID or unsupported file"},
        404: {"model": ErrorResponse, "description": "Video not found"},
        413: {"model": ErrorResponse, "description": "File too large"},
    },
)
async def upload_video(
    video_id: str,
    video: UploadFile | None = File(None, description="MP4 file to publish"),
    user_id: str = Depends(get_current_user_id),
    upload_service: VideoUploadService = Depends(get_upload_service),
) -> VideoResponse:
    video_id = parse_video_id(video_id)
    if video is None:
        raise _error(status.HTTP_400_BAD_REQUEST, "invalid_file", "Unable to parse form file")

    logger.info("Video upload request from user %s for video %s", user_id, video_id)

    try:
        return await upload_service.upload_video(
            owner_id=user_id,
            video_id=video_id,
            stream=video,
            content_type=video.content_type,
        )
    except UploadServiceError as e:
        raise upload_error_to_http(e) from e
    except VideoStoreError as e:
        logger.error("Couldn't load video %s: %s", video_id, e)
        raise _internal_error("Couldn't get video") from e
    except (MalformedLocatorError, StorageServiceError) as e:
        logger.error("Couldn't sign video %s: %s", video_id, e)
        raise _internal_error("Couldn't generate video URL") from e
    finally:
        await video.close()


@router.post(
    "/{video_id}/thumbnail",
    response_model=VideoResponse,
    summary="Upload thumbnail",
    description="Multipart upload (field ``thumbnail``) of a JPEG or PNG image.",
    responses={
        400: {"model": ErrorResponse, "description": "Malformed ID or unsupported file"},
        404: {"model": ErrorResponse, "description": "Video not found"},
        413: {"model": ErrorResponse, "description": "File too large"},
    },
)
async def upload_thumbnail(
    video_id: str,
    thumbnail: UploadFile | None = File(None, description="JPEG or PNG image"),
    user_id: str = Depends(get_current_user_id),
    thumbnail_service: ThumbnailService = Depends(get_thumbnail_service),
) -> VideoResponse:
    video_id = parse_video_id(video_id)
    if thumbnail is None:
        raise _error(status.HTTP_400_BAD_REQUEST, "invalid_file", "Unable to parse form file")

    try:
        return await thumbnail_service.upload_thumbnail(
            owner_id=user_id,
            video_id=video_id,
            stream=thumbnail,
            content_type=thumbnail.content_type,
        )
    except UploadServiceError as e:
        raise upload_error_to_http(e) from e
    except VideoStoreError as e:
        logger.error("Couldn't load video %s: %s", video_id, e)
        raise _internal_error("Couldn't get video") from e
    except (MalformedLocatorError, StorageServiceError) as e:
        logger.error("Couldn't sign video %s: %s", video_id, e)
        raise _internal_error("Couldn't generate video URL") from e
    finally:
        await thumbnail.close()
