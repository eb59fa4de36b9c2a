"""Image to point cloud and palette extraction."""
from pixelcloud.types import (
    GeometryResult,
    Palette,
    PaletteConfig,
    PixelBuffer,
    SamplerConfig,
    SegmentationConfig,
    PixelCloudError,
    ImageDecodeError,
)
from pixelcloud.point_sampler import generate_sphere, process_image_to_points
from pixelcloud.palette import extract_colors_from_image
from pixelcloud.aio import process_image_to_points_async, extract_colors_from_image_async

__version__ = "0.1.0"

__all__ = [
    "GeometryResult",
    "Palette",
    "PaletteConfig",
    "PixelBuffer",
    "SamplerConfig",
    "SegmentationConfig",
    "PixelCloudError",
    "ImageDecodeError",
    "generate_sphere",
    "process_image_to_points",
    "extract_colors_from_image",
    "process_image_to_points_async",
    "extract_colors_from_image_async",
]
