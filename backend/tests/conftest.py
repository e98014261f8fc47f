"""
Pytest Configuration and Test Fixtures for the Clipstream Backend

This module provides shared fixtures including:
- Isolated Settings with a per-test upload temp directory
- An in-memory video store implementing the VideoStore interface
- Fake prober/remuxer objects implementing the media capabilities
- A mocked storage service that records every object written
- Signed bearer tokens for an owner and a second user
- A FastAPI TestClient with dependency overrides wired to the fakes
"""

import shutil
import uuid

from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

from fastapi.testclient import TestClient

from app.config import Settings, get_settings
from app.core.auth import create_access_token
from app.models.video import Video
from app.services.media_service import ProbeError, RemuxError, VideoGeometry
from app.services.signing_service import VideoURLSigner
from app.services.video_store import VideoStoreError


TEST_BUCKET = "test-bucket"
TEST_SECRET_KEY = "test-secret-key-for-jwt-signing-minimum-32-chars"


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")


# ==============================================================================
# Fakes
# ==============================================================================


class ByteStream:
    """Async byte stream over an in-memory payload, read in caller-sized chunks."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._offset = 0
        self.bytes_read = 0

    async def read(self, size: int = -1) -> bytes:
        if size < 0:
            size = len(self._data) - self._offset
        chunk = self._data[self._offset : self._offset + size]
        self._offset += len(chunk)
        self.bytes_read += len(chunk)
        return chunk


class InMemoryVideoStore:
    """VideoStore stand-in backed by a dict; records are copied in and out."""

    def __init__(self) -> None:
        self.records: dict[str, Video] = {}
        self.update_calls = 0
        self.fail_updates = False

    def add(self, video: Video) -> Video:
        self.records[video.id] = video.model_copy(deep=True)
        return video

    async def get(self, video_id: str) -> Video | None:
        video = self.records.get(video_id)
        return video.model_copy(deep=True) if video else None

    async def create(self, video: Video) -> Video:
        if video.id in self.records:
            raise VideoStoreError(f"Video {video.id} already exists")
        return self.add(video)

    async def update(self, video: Video) -> None:
        self.update_calls += 1
        if self.fail_updates:
            raise VideoStoreError("write concern failed")
        if video.id not in self.records:
            raise VideoStoreError(f"Video {video.id} no longer exists")
        self.records[video.id] = video.model_copy(deep=True)

    async def list_for_owner(self, owner_id: str, limit: int = 100) -> list[Video]:
        owned = [v for v in self.records.values() if v.owner_id == owner_id]
        owned.sort(key=lambda v: v.created_at, reverse=True)
        return [v.model_copy(deep=True) for v in owned[:limit]]


class FakeProber:
    """MediaProber returning a fixed geometry, or raising ProbeError when ``error`` is set."""

    def __init__(self, width: int = 1920, height: int = 1080) -> None:
        self.geometry = VideoGeometry(width=width, height=height)
        self.error: str | None = None
        self.probed: list[str] = []

    async def probe(self, path: str) -> VideoGeometry:
        self.probed.append(path)
        if self.error:
            raise ProbeError(self.error)
        return self.geometry


class FakeRemuxer:
    """FastStartRemuxer that prefixes the input with a marker, or fails when ``error`` is set."""

    MARKER = b"moov-first:"

    def __init__(self) -> None:
        self.error: str | None = None
        self.calls: list[tuple[str, str]] = []

    async def remux(self, input_path: str, output_path: str) -> None:
        self.calls.append((input_path, output_path))
        if self.error:
            raise RemuxError(self.error)
        with open(input_path, "rb") as src, open(output_path, "wb") as dst:
            dst.write(self.MARKER)
            shutil.copyfileobj(src, dst)


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def upload_dir(tmp_path) -> str:
    path = tmp_path / "uploads"
    path.mkdir()
    return str(path)


@pytest.fixture
def test_settings(upload_dir: str) -> Settings:
    """Settings isolated from the environment with a small upload ceiling."""
    return Settings(
        app_env="testing",
        app_name="Clipstream-Test",
        json_logs=False,
        secret_key=TEST_SECRET_KEY,
        mongodb_uri="mongodb://localhost:27017",
        mongodb_db_name="test_clipstream",
        s3_endpoint_url="http://localhost:9000",
        s3_access_key_id="test-access-key",
        s3_secret_access_key="test-secret-key",
        s3_bucket_name=TEST_BUCKET,
        s3_region="us-east-1",
        signed_url_expiration_seconds=900,
        max_video_upload_bytes=64 * 1024,
        max_thumbnail_upload_bytes=8 * 1024,
        upload_temp_dir=upload_dir,
    )


# ==============================================================================
# Identity Fixtures
# ==============================================================================


@pytest.fixture
def owner_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def other_user_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def owner_headers(owner_id: str, test_settings: Settings) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(owner_id, test_settings)}"}


@pytest.fixture
def other_user_headers(other_user_id: str, test_settings: Settings) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(other_user_id, test_settings)}"}


# ==============================================================================
# Collaborator Fixtures
# ==============================================================================


@pytest.fixture
def video_store() -> InMemoryVideoStore:
    return InMemoryVideoStore()


@pytest.fixture
def draft_video(video_store: InMemoryVideoStore, owner_id: str) -> Video:
    """A stored record owned by ``owner_id`` with no payload yet."""
    video = Video(
        id=str(uuid.uuid4()),
        owner_id=owner_id,
        title="Launch day recap",
        description="Keynote highlights",
        created_at=datetime.now(UTC) - timedelta(hours=1),
        updated_at=datetime.now(UTC) - timedelta(hours=1),
    )
    return video_store.add(video)


@pytest.fixture
def mock_storage() -> Mock:
    """
    Mocked StorageService.

    ``put_object`` reads the body and keeps it in ``objects[key]`` together
    with its content type; presigning returns a deterministic fake URL.
    """
    mock = Mock()
    mock.bucket_name = TEST_BUCKET
    mock.objects: dict[str, tuple[bytes, str]] = {}

    async def _put_object(
        key: str, body: Any, content_type: str, bucket_name: str | None = None
    ) -> str:
        payload = body if isinstance(body, bytes) else body.read()
        mock.objects[key] = (payload, content_type)
        return bucket_name or TEST_BUCKET

    async def _presign(bucket_name: str, key: str, expires_in: int = 900) -> str:
        return f"https://storage.test/{bucket_name}/{key}?X-Amz-Expires={expires_in}"

    mock.put_object = AsyncMock(side_effect=_put_object)
    mock.generate_presigned_download_url = AsyncMock(side_effect=_presign)
    return mock


@pytest.fixture
def prober() -> FakeProber:
    return FakeProber()


@pytest.fixture
def remuxer() -> FakeRemuxer:
    return FakeRemuxer()


@pytest.fixture
def url_signer(mock_storage: Mock) -> VideoURLSigner:
    return VideoURLSigner(mock_storage, expires_in=900)


@pytest.fixture
def mp4_payload() -> bytes:
    """A small ftyp-box prefixed payload; its contents never reach a real tool."""
    return (
        b"\x00\x00\x00\x20ftypisom\x00\x00\x02\x00isomiso2avc1mp41"
        + b"\x00" * 2048
    )


# ==============================================================================
# API Client Fixture
# ==============================================================================


@pytest.fixture
def api_client(
    test_settings: Settings,
    video_store: InMemoryVideoStore,
    mock_storage: Mock,
    prober: FakeProber,
    remuxer: FakeRemuxer,
) -> Generator[TestClient, None, None]:
    """TestClient with settings, store, storage and media tools overridden."""
    from app.api.v1.videos import (  # noqa: PLC0415
        get_media_prober,
        get_remuxer,
        get_storage_service,
        get_video_store,
    )
    from app.main import app  # noqa: PLC0415

    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_video_store] = lambda: video_store
    app.dependency_overrides[get_storage_service] = lambda: mock_storage
    app.dependency_overrides[get_media_prober] = lambda: prober
    app.dependency_overrides[get_remuxer] = lambda: remuxer

    # Not entered as a context manager, so the lifespan (MongoDB) never runs
    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()
