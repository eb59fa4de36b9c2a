"""Image to 3-D point cloud sampling."""
import logging
import math
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
from scipy import ndimage

from pixelcloud.raster_ingest import ingest
from pixelcloud.segmentation import analyze_segmentation, color_class_key
from pixelcloud.types import (
    CandidateSet,
    GeometryResult,
    PixelBuffer,
    PixelCloudError,
    SamplerConfig,
    SegmentationResult,
)

logger = logging.getLogger(__name__)


def generate_sphere(count: int, radius: float) -> GeometryResult:
    """
    Distribute count points over a sphere surface.

    Deterministic spiral layout. Used as the initial shape and as the
    fallback whenever an image cannot be sampled.

    Args:
        count: Number of points (> 0)
        radius: Sphere radius

    Returns:
        GeometryResult with positions only
    """
    if count <= 0:
        raise ValueError(f"count must be > 0, got {count}")

    i = np.arange(count, dtype=np.float64)
    phi = np.arccos(-1 + (2 * i) / count)
    theta = math.sqrt(count * math.pi) * phi

    positions = np.empty((count, 3), dtype=np.float32)
    positions[:, 0] = radius * np.cos(theta) * np.sin(phi)
    positions[:, 1] = radius * np.sin(theta) * np.sin(phi)
    positions[:, 2] = radius * np.cos(phi)

    return GeometryResult(positions=positions.ravel())


def edge_strength_map(brightness: np.ndarray, divisor: float = 100.0) -> np.ndarray:
    """
    Gradient magnitude of a brightness map, normalized to [0, 1].

    Uses central differences along each axis; neighbours outside the
    image count as brightness 0.
    """
    kernel = [-1.0, 0.0, 1.0]
    gx = ndimage.correlate1d(brightness, kernel, axis=1, mode='constant', cval=0.0)
    gy = ndimage.correlate1d(brightness, kernel, axis=0, mode='constant', cval=0.0)
    return np.minimum(1.0, np.sqrt(gx * gx + gy * gy) / divisor)


def collect_candidates(
    buffer: PixelBuffer,
    segmentation: SegmentationResult,
    config: SamplerConfig,
    rng: np.random.Generator
) -> CandidateSet:
    """
    Score every visible pixel for point selection.

    Importance is random noise plus a boost for strong edges and a flat
    boost for foreground pixels.
    """
    pixels = buffer.pixels
    brightness = pixels[..., :3].astype(np.float64).mean(axis=2)
    edges = edge_strength_map(brightness, config.edge_divisor)

    ys, xs = np.nonzero(pixels[..., 3] > config.min_alpha)
    rgb = pixels[ys, xs, :3]
    cand_brightness = brightness[ys, xs]
    cand_edges = edges[ys, xs]

    keys = color_class_key(rgb[:, 0], rgb[:, 1], rgb[:, 2])
    is_background = segmentation.is_background(keys) & (cand_edges < config.edge_background_cutoff)

    importance = rng.random(len(xs)) * config.random_weight
    importance += np.where(
        cand_edges > config.edge_boost_threshold, cand_edges * config.edge_boost, 0.0
    )
    importance += np.where(is_background, 0.0, config.foreground_boost)

    return CandidateSet(
        x=xs.astype(np.float64),
        y=ys.astype(np.float64),
        brightness=cand_brightness,
        edge_strength=cand_edges,
        importance=importance,
        is_background=is_background,
        rgb=rgb,
    )


def select_candidates(
    candidates: CandidateSet,
    count: int,
    rng: np.random.Generator,
    pad_jitter: float = 1.0
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Pick exactly count candidates, highest importance first.

    When there are fewer candidates than requested, the selection is
    repeated cyclically with a small positional jitter.

    Returns:
        Tuple of (indices into candidates, x, y) each of length count
    """
    if len(candidates) == 0:
        raise ValueError("Cannot select from an empty candidate set")

    order = np.argsort(-candidates.importance, kind='stable')[:count]
    x = candidates.x[order]
    y = candidates.y[order]

    missing = count - len(order)
    if missing > 0:
        source = np.arange(missing) % len(order)
        jitter_x = (rng.random(missing) - 0.5) * pad_jitter
        jitter_y = (rng.random(missing) - 0.5) * pad_jitter
        x = np.concatenate([x, x[source] + jitter_x])
        y = np.concatenate([y, y[source] + jitter_y])
        order = np.concatenate([order, order[source]])
        logger.debug(f"Padded {missing} points from {len(source)} duplicated candidates")

    return order, x, y


def sample_points(
    buffer: PixelBuffer,
    count: int,
    scale: float,
    rng: Optional[np.random.Generator] = None,
    config: Optional[SamplerConfig] = None,
    segmentation: Optional[SegmentationResult] = None
) -> GeometryResult:
    """
    Convert a decoded image into a point cloud with depth cues.

    Args:
        buffer: Image at working resolution
        count: Number of points to emit (> 0)
        scale: Output coordinate magnitude
        rng: Random source (fresh entropy if None)
        config: Sampler configuration (defaults if None)
        segmentation: Precomputed segmentation of buffer

    Returns:
        GeometryResult with count points and per-point attributes. A fully
        transparent image yields the sphere fallback.
    """
    if count <= 0:
        raise ValueError(f"count must be > 0, got {count}")

    config = config or SamplerConfig()
    rng = rng if rng is not None else np.random.default_rng()
    if segmentation is None:
        segmentation = analyze_segmentation(buffer, config.segmentation)

    candidates = collect_candidates(buffer, segmentation, config, rng)
    if len(candidates) == 0:
        logger.warning("Image has no visible pixels, falling back to sphere")
        return generate_sphere(count, scale)

    logger.info(f"Selecting {count} points from {len(candidates)} candidates")
    indices, x, y = select_candidates(candidates, count, rng, config.pad_jitter)

    width, height = buffer.width, buffer.height
    min_b = candidates.brightness.min()
    max_b = candidates.brightness.max()
    b_range = (max_b - min_b) or 1.0

    norm_brightness = (candidates.brightness[indices] - min_b) / b_range
    edge_strength = candidates.edge_strength[indices]
    is_background = candidates.is_background[indices]

    nx = (x / width - 0.5) * 2 * (width / height)
    ny = -(y / height - 0.5) * 2
    # Snap to horizontal scanlines
    ny = np.floor(ny * config.scanlines) / config.scanlines

    # Foreground floats forward, background is pushed back
    z = np.where(
        is_background,
        -0.5 * scale + norm_brightness * 0.1,
        norm_brightness * 0.15 * scale + 0.1 * scale,
    )
    z = z + edge_strength * 0.05 * scale

    positions = np.column_stack([nx * scale * 2.0, ny * scale * 2.0, z]).astype(np.float32)

    return GeometryResult(
        positions=positions.ravel(),
        brightness=norm_brightness.astype(np.float32),
        edge_strength=edge_strength.astype(np.float32),
        is_background=is_background.astype(np.float32),
    )


def process_image_to_points(
    image_url: Union[str, Path],
    count: int,
    scale: float,
    rng: Optional[np.random.Generator] = None,
    config: Optional[SamplerConfig] = None
) -> GeometryResult:
    """
    Decode an image and sample it into a point cloud.

    Never raises for unreadable images: those degrade to
    generate_sphere(count, scale).
    """
    if count <= 0:
        raise ValueError(f"count must be > 0, got {count}")

    config = config or SamplerConfig()
    try:
        buffer = ingest(image_url, width=config.working_width)
    except PixelCloudError as e:
        logger.warning(f"Image load failed, using sphere fallback: {e}")
        return generate_sphere(count, scale)

    return sample_points(buffer, count, scale, rng=rng, config=config)
