"""RGB, HSL and hex color conversions."""
import colorsys
import logging
import math
import re
from typing import Sequence, Tuple

from pixelcloud.types import HSL, RGB

logger = logging.getLogger(__name__)

_HEX_PATTERN = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def _channel(value: float) -> int:
    # Half-up rounding, then clamp to a byte
    return int(clamp(math.floor(value + 0.5), 0, 255))


def rgb_to_hex(r: float, g: float, b: float) -> str:
    """
    Encode an RGB triple as a lowercase #rrggbb string.

    Channels are rounded to the nearest integer and clamped to [0, 255].
    """
    return "#{:02x}{:02x}{:02x}".format(_channel(r), _channel(g), _channel(b))


def hex_to_rgb(hex_color: str) -> RGB:
    """
    Parse a 6-digit hex color with optional leading '#'.

    Malformed input returns black instead of raising, since color pickers
    always need a usable color back.
    """
    match = _HEX_PATTERN.fullmatch(hex_color) if isinstance(hex_color, str) else None
    if match is None:
        logger.debug(f"Malformed hex color {hex_color!r}, using black")
        return (0, 0, 0)
    return (int(match.group(1), 16), int(match.group(2), 16), int(match.group(3), 16))


def rgb_to_hsl(r: float, g: float, b: float) -> HSL:
    """
    Convert RGB (0-255) to HSL (each component 0-1).

    Args:
        r, g, b: Channel values in [0, 255], integers or floats

    Returns:
        HSL with hue as a fraction of a full turn
    """
    h, l, s = colorsys.rgb_to_hls(r / 255.0, g / 255.0, b / 255.0)
    return HSL(h, s, l)


def hsl_to_rgb(h: float, s: float, l: float) -> Tuple[float, float, float]:
    """
    Convert HSL (each 0-1) to unrounded RGB floats in [0, 255].
    """
    r, g, b = colorsys.hls_to_rgb(h, l, s)
    return (r * 255.0, g * 255.0, b * 255.0)


def hsl_to_hex(color: HSL) -> str:
    """Clamp an HSL color into range and encode it as hex."""
    h = color.h % 1.0
    s = clamp(color.s)
    l = clamp(color.l)
    return rgb_to_hex(*hsl_to_rgb(h, s, l))


def color_distance_sq(c1: Sequence[float], c2: Sequence[float]) -> float:
    """Squared Euclidean distance between two RGB colors."""
    return (c1[0] - c2[0]) ** 2 + (c1[1] - c2[1]) ** 2 + (c1[2] - c2[2]) ** 2


def jitter(value: float, amount: float, rng) -> float:
    """Offset value by up to +/- amount and clamp to [0, 1]."""
    return clamp(value + (rng.random() * amount * 2 - amount))


def jitter_hue(hue: float, amount: float, rng) -> float:
    """Offset a hue by up to +/- amount, wrapping around the color wheel."""
    return (hue + (rng.random() * amount * 2 - amount) + 1) % 1
