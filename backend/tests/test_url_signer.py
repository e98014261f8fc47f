"""
Presigned URL signing tests.

Presigning is computed locally by botocore, so these tests use a real
StorageService pointed at an unreachable endpoint with dummy credentials.
"""

from datetime import UTC, datetime
from urllib.parse import parse_qs, urlparse

import pytest

from app.models.video import MalformedLocatorError, Video
from app.services.signing_service import VideoURLSigner
from app.services.storage_service import StorageService


@pytest.fixture
def storage() -> StorageService:
    return StorageService(
        bucket_name="bucket1",
        endpoint_url="http://localhost:9000",
        access_key="test-access-key",
        secret_key="test-secret-key",
    )


@pytest.fixture
def signer(storage: StorageService) -> VideoURLSigner:
    return VideoURLSigner(storage, expires_in=900)


class TestSignLocator:
    async def test_signed_url_targets_object(self, signer: VideoURLSigner) -> None:
        url = await signer.sign_locator("bucket1,videos/abc.mp4")

        parsed = urlparse(url)
        assert parsed.netloc == "localhost:9000"
        assert parsed.path == "/bucket1/videos/abc.mp4"

    async def test_signed_url_carries_expiry_window(self, signer: VideoURLSigner) -> None:
        url = await signer.sign_locator("bucket1,videos/abc.mp4")

        query = parse_qs(urlparse(url).query)
        assert query["X-Amz-Expires"] == ["900"]
        assert query["X-Amz-Algorithm"] == ["AWS4-HMAC-SHA256"]
        assert "X-Amz-Signature" in query

        signed_at = datetime.strptime(query["X-Amz-Date"][0], "%Y%m%dT%H%M%SZ").replace(
            tzinfo=UTC
        )
        assert abs((datetime.now(UTC) - signed_at).total_seconds()) < 60

    async def test_custom_lifetime(self, storage: StorageService) -> None:
        signer = VideoURLSigner(storage, expires_in=120)

        url = await signer.sign_locator("bucket1,videos/abc.mp4")

        assert parse_qs(urlparse(url).query)["X-Amz-Expires"] == ["120"]

    @pytest.mark.parametrize("locator", ["", "bucket-only", "a,b,c", ",key", "bucket,"])
    async def test_malformed_locator_raises(self, signer: VideoURLSigner, locator: str) -> None:
        with pytest.raises(MalformedLocatorError):
            await signer.sign_locator(locator)


class TestSignVideo:
    async def test_record_without_locators(self, signer: VideoURLSigner) -> None:
        video = Video(id="v1", owner_id="u1", title="Draft")

        response = await signer.sign_video(video)

        assert response.video_url is None
        assert response.thumbnail_url is None
        assert response.id == "v1"

    async def test_both_locators_are_signed(self, signer: VideoURLSigner) -> None:
        video = Video(
            id="v1",
            owner_id="u1",
            title="Published",
            video_locator="bucket1,landscape/a.mp4",
            thumbnail_locator="bucket1,thumbnails/a.jpg",
        )

        response = await signer.sign_video(video)

        assert urlparse(response.video_url).path == "/bucket1/landscape/a.mp4"
        assert urlparse(response.thumbnail_url).path == "/bucket1/thumbnails/a.jpg"

    async def test_stored_record_is_not_modified(self, signer: VideoURLSigner) -> None:
        video = Video(id="v1", owner_id="u1", title="T", video_locator="bucket1,other/a.mp4")

        await signer.sign_video(video)

        assert video.video_locator == "bucket1,other/a.mp4"

    async def test_each_read_signs_again(self, mock_storage) -> None:
        signer = VideoURLSigner(mock_storage, expires_in=900)
        video = Video(id="v1", owner_id="u1", title="T", video_locator="b,portrait/a.mp4")

        await signer.sign_video(video)
        await signer.sign_video(video)

        assert mock_storage.generate_presigned_download_url.await_count == 2
