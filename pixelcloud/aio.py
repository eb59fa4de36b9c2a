"""Awaitable wrappers around the image operations.

Decoding and analysis run in a worker thread; each call owns its buffer
and result, so concurrent calls do not interact. There is no
cancellation: a superseded call still completes.
"""
import asyncio
from pathlib import Path
from typing import List, Optional, Union

import numpy as np

from pixelcloud.palette import extract_colors_from_image
from pixelcloud.point_sampler import process_image_to_points
from pixelcloud.types import GeometryResult, PaletteConfig, SamplerConfig


async def process_image_to_points_async(
    image_url: Union[str, Path],
    count: int,
    scale: float,
    rng: Optional[np.random.Generator] = None,
    config: Optional[SamplerConfig] = None
) -> GeometryResult:
    return await asyncio.to_thread(process_image_to_points, image_url, count, scale, rng, config)


async def extract_colors_from_image_async(
    image_url: Union[str, Path],
    rng=None,
    config: Optional[PaletteConfig] = None
) -> List[str]:
    return await asyncio.to_thread(extract_colors_from_image, image_url, rng, config)
