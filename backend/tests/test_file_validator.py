"""
Content-Type parsing and media type whitelist tests.
"""

import pytest

from app.utils.file_validator import (
    MediaTypeError,
    format_file_size,
    get_thumbnail_extension,
    is_supported_video_type,
    parse_media_type,
)


class TestParseMediaType:
    def test_plain_type(self) -> None:
        assert parse_media_type("video/mp4") == ("video/mp4", {})

    def test_type_is_lowercased(self) -> None:
        assert parse_media_type("Video/MP4")[0] == "video/mp4"

    def test_parameters(self) -> None:
        media_type, params = parse_media_type('video/mp4; codecs="avc1.42E01E, mp4a.40.2"')

        assert media_type == "video/mp4"
        assert params == {"codecs": "avc1.42E01E, mp4a.40.2"}

    def test_trailing_semicolon_tolerated(self) -> None:
        assert parse_media_type("image/png;") == ("image/png", {})

    @pytest.mark.parametrize(
        "header",
        [
            None,
            "",
            "   ",
            "video",
            "video/",
            "/mp4",
            "video/mp4/extra",
            "video mp4",
            "video/mp4; codecs",
            "video/mp4; =avc1",
            'video/mp4; codecs="avc1',
            "video/mp4; a=1; a=2",
        ],
    )
    def test_malformed_headers_rejected(self, header: str | None) -> None:
        with pytest.raises(MediaTypeError):
            parse_media_type(header)

    def test_media_type_error_is_value_error(self) -> None:
        assert issubclass(MediaTypeError, ValueError)


class TestSupportedTypes:
    def test_only_mp4_video_is_supported(self) -> None:
        assert is_supported_video_type("video/mp4")
        assert not is_supported_video_type("video/quicktime")
        assert not is_supported_video_type("video/webm")

    def test_thumbnail_extensions(self) -> None:
        assert get_thumbnail_extension("image/jpeg") == ".jpg"
        assert get_thumbnail_extension("image/png") == ".png"
        assert get_thumbnail_extension("image/gif") is None


class TestFormatFileSize:
    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (512, "512 B"),
            (1536, "1.50 KB"),
            (10 * 1024 * 1024, "10.00 MB"),
            (1 << 30, "1.00 GB"),
            (-1, "Invalid size"),
        ],
    )
    def test_format(self, size: int, expected: str) -> None:
        assert format_file_size(size) == expected
