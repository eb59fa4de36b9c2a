"""Tests for radial-zone background segmentation."""
import numpy as np

from pixelcloud.segmentation import analyze_segmentation, color_class_key, outer_zone_mask
from pixelcloud.types import PixelBuffer, SegmentationConfig

from conftest import BACKDROP, SUBJECT


class TestColorClassKey:
    """Test color quantization keys."""

    def test_scalar_keys(self):
        assert color_class_key(0, 0, 0) == 0
        assert color_class_key(15, 15, 15) == 0
        assert color_class_key(16, 0, 0) == 256
        assert color_class_key(255, 255, 255) == 4095

    def test_nearby_colors_share_key(self):
        assert color_class_key(200, 100, 50) == color_class_key(207, 111, 63)
        assert color_class_key(200, 100, 50) != color_class_key(208, 100, 50)

    def test_array_keys_match_scalar(self):
        rgb = np.array([[0, 0, 0], [16, 0, 0], [255, 255, 255], [200, 100, 50]], dtype=np.uint8)
        keys = color_class_key(rgb[:, 0], rgb[:, 1], rgb[:, 2])
        expected = [color_class_key(*(int(c) for c in row)) for row in rgb]
        assert keys.tolist() == expected


class TestOuterZone:
    """Test outer zone geometry."""

    def test_center_is_inner_and_corner_is_outer(self):
        xs = np.array([50, 0, 99])
        ys = np.array([50, 0, 50])
        mask = outer_zone_mask(xs, ys, 100, 100, 0.3)
        assert mask.tolist() == [False, True, True]


class TestAnalyzeSegmentation:
    """Test background classification."""

    def test_border_color_is_background(self, subject_image):
        """Uniform border color is background, centered subject is not."""
        result = analyze_segmentation(PixelBuffer(subject_image))

        backdrop_key = color_class_key(*BACKDROP)
        subject_key = color_class_key(*SUBJECT)

        assert backdrop_key in result.background_keys
        assert subject_key not in result.background_keys
        assert result.color_stats[subject_key].outer == 0
        assert result.color_stats[backdrop_key].outer_ratio > 0.4

    def test_samples_on_stride(self, subject_image):
        result = analyze_segmentation(PixelBuffer(subject_image))
        total = sum(stats.total for stats in result.color_stats.values())
        assert total == 16 * 16

    def test_representative_sample(self, subject_image):
        result = analyze_segmentation(PixelBuffer(subject_image))
        assert result.color_stats[color_class_key(*BACKDROP)].sample == BACKDROP

    def test_transparent_pixels_ignored(self):
        image = np.zeros((32, 32, 4), dtype=np.uint8)
        image[..., :3] = 200
        image[..., 3] = 49
        result = analyze_segmentation(PixelBuffer(image))
        assert result.background_keys == frozenset()
        assert result.color_stats == {}

    def test_ratio_threshold_is_configurable(self, subject_image):
        config = SegmentationConfig(background_ratio=0.99)
        result = analyze_segmentation(PixelBuffer(subject_image), config)
        assert color_class_key(*BACKDROP) not in result.background_keys

    def test_deterministic(self, subject_image):
        buffer = PixelBuffer(subject_image)
        first = analyze_segmentation(buffer)
        second = analyze_segmentation(buffer)
        assert first.background_keys == second.background_keys
        assert first.color_stats == second.color_stats

    def test_is_background_mask(self, subject_image):
        result = analyze_segmentation(PixelBuffer(subject_image))
        keys = np.array([color_class_key(*BACKDROP), color_class_key(*SUBJECT)])
        assert result.is_background(keys).tolist() == [True, False]
