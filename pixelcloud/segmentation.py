"""Radial-zone histogram segmentation of background vs foreground colors."""
import logging
from typing import Optional

import numpy as np

from pixelcloud.types import ColorStats, PixelBuffer, SegmentationConfig, SegmentationResult

logger = logging.getLogger(__name__)


def color_class_key(r, g, b):
    """
    Quantize RGB to a coarse 4-bit-per-channel bucket key.

    Works on plain ints and on numpy arrays of channel values.
    """
    if isinstance(r, np.ndarray):
        r, g, b = (np.asarray(c).astype(np.int64) for c in (r, g, b))
    else:
        r, g, b = int(r), int(g), int(b)
    return ((r >> 4) << 8) | ((g >> 4) << 4) | (b >> 4)


def outer_zone_mask(xs: np.ndarray, ys: np.ndarray, width: int, height: int, radius_sq: float) -> np.ndarray:
    """True where a pixel lies outside the central disk in normalized coordinates."""
    nx = (xs / width - 0.5) * 2
    ny = (ys / height - 0.5) * 2
    return (nx * nx + ny * ny) > radius_sq


def analyze_segmentation(
    buffer: PixelBuffer,
    config: Optional[SegmentationConfig] = None
) -> SegmentationResult:
    """
    Classify color classes as background by where they occur.

    Colors found mostly near the border of the image are treated as
    backdrop. Only a strided grid of pixels is sampled.

    Args:
        buffer: Decoded RGBA image
        config: Segmentation thresholds (defaults if None)

    Returns:
        SegmentationResult with the background key set and histogram
    """
    config = config or SegmentationConfig()
    stride = config.sample_stride
    pixels = buffer.pixels

    grid = pixels[::stride, ::stride]
    ys, xs = np.mgrid[0:buffer.height:stride, 0:buffer.width:stride]

    visible = grid[..., 3] >= config.min_alpha
    if not np.any(visible):
        logger.debug("Segmentation found no visible pixels")
        return SegmentationResult(background_keys=frozenset(), color_stats={})

    rgb = grid[visible][:, :3]
    keys = color_class_key(rgb[:, 0], rgb[:, 1], rgb[:, 2])
    outer = outer_zone_mask(
        xs[visible], ys[visible], buffer.width, buffer.height, config.outer_radius_sq
    )

    # First occurrence in scan order provides the representative sample
    unique_keys, first_index, inverse, totals = np.unique(
        keys, return_index=True, return_inverse=True, return_counts=True
    )
    outer_counts = np.bincount(inverse.ravel(), weights=outer, minlength=len(unique_keys))

    color_stats = {}
    background = set()
    for key, idx, total, outer_count in zip(unique_keys, first_index, totals, outer_counts):
        r, g, b = rgb[idx]
        stats = ColorStats(total=int(total), outer=int(outer_count), sample=(int(r), int(g), int(b)))
        color_stats[int(key)] = stats
        if stats.outer_ratio > config.background_ratio:
            background.add(int(key))

    logger.debug(
        f"Segmentation: {len(color_stats)} color classes, {len(background)} background"
    )

    return SegmentationResult(background_keys=frozenset(background), color_stats=color_stats)
