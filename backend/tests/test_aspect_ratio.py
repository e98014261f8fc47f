"""
Aspect ratio classification tests.

Covers the canonical sizes, common near-16:9 encodes, the tolerance
boundary and invalid dimensions.
"""

import pytest

from app.models.video import AspectCategory
from app.utils.aspect_ratio import classify_aspect_ratio


class TestClassifyAspectRatio:
    """Test suite for classify_aspect_ratio."""

    def test_full_hd_is_landscape(self) -> None:
        assert classify_aspect_ratio(1920, 1080) is AspectCategory.LANDSCAPE

    def test_vertical_full_hd_is_portrait(self) -> None:
        assert classify_aspect_ratio(1080, 1920) is AspectCategory.PORTRAIT

    def test_square_is_other(self) -> None:
        assert classify_aspect_ratio(1000, 1000) is AspectCategory.OTHER

    @pytest.mark.parametrize(
        ("width", "height"),
        [(1280, 720), (3840, 2160), (854, 480), (1366, 768), (640, 360)],
    )
    def test_common_widescreen_sizes_are_landscape(self, width: int, height: int) -> None:
        assert classify_aspect_ratio(width, height) is AspectCategory.LANDSCAPE

    @pytest.mark.parametrize(("width", "height"), [(720, 1280), (480, 854), (360, 640)])
    def test_common_vertical_sizes_are_portrait(self, width: int, height: int) -> None:
        assert classify_aspect_ratio(width, height) is AspectCategory.PORTRAIT

    @pytest.mark.parametrize(
        ("width", "height"),
        [(640, 480), (1440, 1080), (2560, 1080), (1080, 1350), (1, 1)],
    )
    def test_other_ratios(self, width: int, height: int) -> None:
        assert classify_aspect_ratio(width, height) is AspectCategory.OTHER

    def test_tolerance_is_applied(self) -> None:
        # 1900/1080 is ~0.0185 away from 16/9
        assert classify_aspect_ratio(1900, 1080) is AspectCategory.OTHER
        assert classify_aspect_ratio(1900, 1080, tolerance=0.02) is AspectCategory.LANDSCAPE

    @pytest.mark.parametrize(("width", "height"), [(0, 1080), (1920, 0), (-1920, 1080)])
    def test_non_positive_dimensions_rejected(self, width: int, height: int) -> None:
        with pytest.raises(ValueError):
            classify_aspect_ratio(width, height)

    def test_category_values_are_key_prefixes(self) -> None:
        assert [c.value for c in AspectCategory] == ["landscape", "portrait", "other"]
