"""Randomized six-role palette extraction.

The palette is built from two pools: pixels whose color class the
segmenter marked as background, and everything else bucketed into
foreground samples. A chain of randomized stages then assigns roles and
forces lightness ranges so the roles contrast with each other.

Every random draw goes through an injected source exposing random(), so
a scripted source can pin each branch.
"""
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from pixelcloud.color_space import (
    clamp,
    color_distance_sq,
    hsl_to_hex,
    jitter,
    jitter_hue,
    rgb_to_hsl,
)
from pixelcloud.raster_ingest import ingest
from pixelcloud.segmentation import analyze_segmentation, color_class_key
from pixelcloud.types import (
    HSL,
    FgSample,
    Palette,
    PaletteConfig,
    PixelBuffer,
    PixelCloudError,
    SegmentationResult,
)

logger = logging.getLogger(__name__)

NEUTRAL_GRAY = FgSample(color=(128, 128, 128), count=100, hsl=HSL(0.0, 0.0, 0.5))
DEFAULT_BACKGROUND = HSL(0.0, 0.0, 0.05)


def build_color_pools(
    buffer: PixelBuffer,
    segmentation: SegmentationResult,
    config: Optional[PaletteConfig] = None
) -> Tuple[np.ndarray, List[FgSample]]:
    """
    Split visible pixels into a background pool and foreground buckets.

    Args:
        buffer: Image at palette working resolution
        segmentation: Background classification of the same buffer
        config: Palette configuration (defaults if None)

    Returns:
        Tuple of (background RGB samples as (N, 3) uint8,
        foreground samples sorted by count descending)
    """
    config = config or PaletteConfig()
    flat = buffer.pixels.reshape(-1, 4)
    rgb = flat[flat[:, 3] >= config.min_alpha][:, :3]

    keys = color_class_key(rgb[:, 0], rgb[:, 1], rgb[:, 2])
    background_mask = segmentation.is_background(keys)
    background = rgb[background_mask]
    foreground = rgb[~background_mask]

    if len(foreground) == 0:
        return background, []

    buckets = foreground.astype(np.int64) // config.bucket_size
    _, first_index, counts = np.unique(buckets, axis=0, return_index=True, return_counts=True)

    # Keep first-seen order among buckets with equal counts
    by_appearance = np.argsort(first_index, kind='stable')
    ranked = by_appearance[np.argsort(-counts[by_appearance], kind='stable')]

    samples = []
    for idx in ranked:
        r, g, b = (int(c) for c in foreground[first_index[idx]])
        samples.append(FgSample(color=(r, g, b), count=int(counts[idx]), hsl=rgb_to_hsl(r, g, b)))

    return background, samples


def select_distinct_colors(
    samples: Sequence[FgSample],
    max_colors: int = 12,
    min_distance_sq: float = 900.0
) -> List[FgSample]:
    """
    Greedily keep samples that are far from every color kept so far.

    Falls back to the most frequent sample, then to neutral gray, so the
    result is never empty.
    """
    distinct: List[FgSample] = []
    for sample in samples:
        if len(distinct) >= max_colors:
            break
        if all(color_distance_sq(d.color, sample.color) > min_distance_sq for d in distinct):
            distinct.append(sample)

    if not distinct and samples:
        distinct.append(samples[0])
    if not distinct:
        distinct.append(NEUTRAL_GRAY)
    return distinct


def _background_anchor(background: np.ndarray, rng) -> HSL:
    use_average = rng.random() > 0.5
    if len(background) == 0:
        return DEFAULT_BACKGROUND

    if use_average:
        mean = background.astype(np.float64).mean(axis=0)
        logger.debug("Background anchor: pool average")
        return rgb_to_hsl(*mean)

    r, g, b = background[int(rng.random() * len(background))]
    logger.debug("Background anchor: random pool sample")
    return rgb_to_hsl(int(r), int(g), int(b))


def _shuffled(candidates: List[FgSample], rng) -> List[FgSample]:
    # Fisher-Yates
    items = list(candidates)
    for i in range(len(items) - 1, 0, -1):
        j = int(rng.random() * (i + 1))
        items[i], items[j] = items[j], items[i]
    return items


def choose_palette(
    background: np.ndarray,
    distinct: Sequence[FgSample],
    rng,
    top_candidates: int = 6
) -> Palette:
    """
    Assign palette roles from the color pools.

    Args:
        background: Background RGB samples (N, 3), may be empty
        distinct: Non-empty list of distinct foreground samples, most
            frequent first
        rng: Random source with a random() method returning [0, 1)
        top_candidates: How many distinct colors take part in the shuffle

    Returns:
        Palette with shadow, midtone, highlight, features, details and
        background roles
    """
    if not distinct:
        distinct = [NEUTRAL_GRAY]
    distinct = list(distinct)

    bg = _background_anchor(background, rng)
    top = _shuffled(distinct[:top_candidates], rng)

    # Midtone anchors the hue relationships below
    midtone_src = top[0]
    mid_h = midtone_src.hsl.h
    midtone = HSL(
        jitter_hue(midtone_src.hsl.h, 0.05, rng),
        jitter(midtone_src.hsl.s, 0.1, rng),
        clamp(jitter(midtone_src.hsl.l, 0.1, rng), 0.4, 0.6),
    )

    if rng.random() > 0.5:
        highlight_src = distinct[0]
        for candidate in distinct[1:]:
            if candidate.hsl.l > highlight_src.hsl.l:
                highlight_src = candidate
        logger.debug("Highlight: brightest distinct color")
    else:
        highlight_src = top[1] if len(top) > 1 else midtone_src
        logger.debug("Highlight: shuffled candidate")
    highlight = HSL(
        jitter_hue(highlight_src.hsl.h, 0.05, rng),
        jitter(highlight_src.hsl.s, 0.1, rng),
        max(0.8, jitter(highlight_src.hsl.l, 0.1, rng) + 0.1),
    )

    target_shadow_h = (mid_h + 0.5) % 1
    shadow_src = next((c for c in distinct if abs(c.hsl.h - target_shadow_h) < 0.25), None)
    if shadow_src is None:
        shadow_src = top[2] if len(top) > 2 else top[0]
    shadow_h = shadow_src.hsl.h
    dist_to_complement = abs(shadow_src.hsl.h - target_shadow_h)
    if 0.25 < dist_to_complement < 0.75:
        shadow_h = target_shadow_h + (rng.random() * 0.1 - 0.05)
        logger.debug("Shadow: hue forced to complement")
    shadow = HSL(
        jitter_hue(shadow_h, 0.08, rng),
        max(0.6, jitter(shadow_src.hsl.s, 0.1, rng)),
        clamp(shadow_src.hsl.l - 0.1, 0.05, 0.25),
    )

    features_src = top[3] if len(top) > 3 else distinct[-1]
    features = HSL(
        jitter_hue(features_src.hsl.h, 0.05, rng),
        jitter(features_src.hsl.s, 0.1, rng),
        jitter(features_src.hsl.l, 0.1, rng),
    )

    if rng.random() > 0.5:
        details_h, details_l = (mid_h + 0.5) % 1, 0.8
        logger.debug("Details: complementary")
    else:
        details_h, details_l = (mid_h + 0.33) % 1, 0.6
        logger.debug("Details: triadic")
    details = HSL(jitter_hue(details_h, 0.05, rng), 1.0, details_l)

    tint = 0.15 if rng.random() > 0.8 else 0.0
    background_color = HSL(
        jitter_hue(bg.h, 0.05, rng),
        bg.s * (0.5 + rng.random()),
        min(0.25, bg.l * (0.8 + rng.random() * 0.4) + tint),
    )

    return Palette(
        shadow=hsl_to_hex(shadow),
        midtone=hsl_to_hex(midtone),
        highlight=hsl_to_hex(highlight),
        features=hsl_to_hex(features),
        details=hsl_to_hex(details),
        background=hsl_to_hex(background_color),
    )


def extract_palette(
    buffer: PixelBuffer,
    rng=None,
    config: Optional[PaletteConfig] = None
) -> Palette:
    """Run segmentation, pooling and role assignment on a decoded buffer."""
    config = config or PaletteConfig()
    rng = rng if rng is not None else np.random.default_rng()

    segmentation = analyze_segmentation(buffer, config.segmentation)
    background, samples = build_color_pools(buffer, segmentation, config)
    distinct = select_distinct_colors(samples, config.max_distinct, config.min_distance_sq)
    logger.info(
        f"Palette pools: {len(background)} background pixels, "
        f"{len(samples)} foreground buckets, {len(distinct)} distinct"
    )
    return choose_palette(background, distinct, rng, config.top_candidates)


def extract_colors_from_image(
    image_url: Union[str, Path],
    rng=None,
    config: Optional[PaletteConfig] = None
) -> List[str]:
    """
    Extract [shadow, midtone, highlight, features, details, background].

    Returns an empty list if the image cannot be loaded; callers keep
    their previous colors in that case.
    """
    config = config or PaletteConfig()
    try:
        buffer = ingest(image_url, width=config.size, height=config.size)
    except PixelCloudError as e:
        logger.warning(f"Image load failed, no palette extracted: {e}")
        return []

    return extract_palette(buffer, rng=rng, config=config).as_list()
