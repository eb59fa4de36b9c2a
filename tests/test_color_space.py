"""Tests for color space conversions."""
from itertools import product

import pytest

from pixelcloud.color_space import (
    color_distance_sq,
    hex_to_rgb,
    hsl_to_hex,
    hsl_to_rgb,
    jitter,
    jitter_hue,
    rgb_to_hex,
    rgb_to_hsl,
)
from pixelcloud.types import HSL

CHANNEL_SWEEP = [0, 1, 17, 64, 127, 128, 200, 254, 255]


class FixedRandom:
    """Random source that always returns the same value."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


class TestHex:
    """Test hex encoding and decoding."""

    def test_rgb_to_hex_basic(self):
        assert rgb_to_hex(0, 0, 0) == "#000000"
        assert rgb_to_hex(255, 255, 255) == "#ffffff"
        assert rgb_to_hex(1, 2, 3) == "#010203"
        assert rgb_to_hex(171, 205, 239) == "#abcdef"

    def test_rgb_to_hex_rounds_half_up(self):
        assert rgb_to_hex(127.5, 0.4, 254.6) == "#8000ff"

    def test_rgb_to_hex_clamps(self):
        assert rgb_to_hex(300, -5, 0) == "#ff0000"

    def test_hex_to_rgb(self):
        assert hex_to_rgb("#ff8000") == (255, 128, 0)
        assert hex_to_rgb("FF8000") == (255, 128, 0)
        assert hex_to_rgb("#AbCdEf") == (171, 205, 239)

    @pytest.mark.parametrize("bad", [
        "", "#fff", "#gg0000", "#12345", "#1234567", "blue", None, " #ff0000 ", "#ff0000\n",
    ])
    def test_malformed_hex_is_black(self, bad):
        """Malformed input degrades to black instead of raising."""
        assert hex_to_rgb(bad) == (0, 0, 0)

    def test_hex_round_trip(self):
        for rgb in product(CHANNEL_SWEEP, repeat=3):
            assert hex_to_rgb(rgb_to_hex(*rgb)) == rgb


class TestHSL:
    """Test HSL conversions."""

    def test_primaries(self):
        red = rgb_to_hsl(255, 0, 0)
        assert red.h == pytest.approx(0.0)
        assert red.s == pytest.approx(1.0)
        assert red.l == pytest.approx(0.5)

        assert rgb_to_hsl(0, 255, 0).h == pytest.approx(1 / 3)
        assert rgb_to_hsl(0, 0, 255).h == pytest.approx(2 / 3)

    def test_gray_has_no_saturation(self):
        gray = rgb_to_hsl(128, 128, 128)
        assert gray.s == 0.0
        assert gray.h == 0.0
        assert gray.l == pytest.approx(128 / 255)

    def test_round_trip_within_one(self):
        """RGB -> HSL -> RGB reproduces the input within rounding."""
        for rgb in product(CHANNEL_SWEEP, repeat=3):
            hsl = rgb_to_hsl(*rgb)
            back = hex_to_rgb(rgb_to_hex(*hsl_to_rgb(hsl.h, hsl.s, hsl.l)))
            for original, restored in zip(rgb, back):
                assert abs(original - restored) <= 1, f"{rgb} -> {back}"

    def test_hsl_to_hex_clamps_out_of_range(self):
        assert hsl_to_hex(HSL(0.0, 1.7, 1.3)) == "#ffffff"
        assert hsl_to_hex(HSL(1.0, 1.0, 0.5)) == "#ff0000"
        assert hsl_to_hex(HSL(-0.5, 0.0, -1.0)) == "#000000"


class TestHelpers:
    """Test jitter and distance helpers."""

    def test_color_distance_sq(self):
        assert color_distance_sq((0, 0, 0), (30, 0, 0)) == 900
        assert color_distance_sq((10, 20, 30), (10, 20, 30)) == 0

    def test_jitter_midpoint_is_identity(self):
        assert jitter(0.3, 0.1, FixedRandom(0.5)) == pytest.approx(0.3)

    def test_jitter_clamps(self):
        assert jitter(0.98, 0.1, FixedRandom(0.99)) == 1.0
        assert jitter(0.02, 0.1, FixedRandom(0.0)) == 0.0

    def test_jitter_hue_wraps(self):
        assert jitter_hue(0.98, 0.05, FixedRandom(1.0)) == pytest.approx(0.03)
        assert jitter_hue(0.01, 0.05, FixedRandom(0.0)) == pytest.approx(0.96)
