"""Core types for the point cloud and palette pipeline."""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple, Union
import numpy as np

RGB = Tuple[int, int, int]

PALETTE_ROLES = ("shadow", "midtone", "highlight", "features", "details", "background")


@dataclass
class HSL:
    """Hue, saturation and lightness, each in [0, 1]."""
    h: float
    s: float
    l: float


@dataclass
class PixelBuffer:
    """Decoded RGBA image, row-major, shape (height, width, 4) uint8."""
    pixels: np.ndarray

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"Expected (H, W, 4) RGBA array, got shape {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            self.pixels = self.pixels.astype(np.uint8)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @classmethod
    def from_bytes(cls, width: int, height: int, data: Union[bytes, bytearray, np.ndarray]) -> "PixelBuffer":
        """Build a buffer from a flat RGBA byte sequence (4 bytes per pixel)."""
        if isinstance(data, np.ndarray):
            flat = np.asarray(data, dtype=np.uint8).ravel()
        else:
            flat = np.frombuffer(bytes(data), dtype=np.uint8)
        if flat.size != width * height * 4:
            raise ValueError(
                f"Expected {width * height * 4} bytes for {width}x{height} RGBA, got {flat.size}"
            )
        return cls(pixels=flat.reshape(height, width, 4).copy())


@dataclass
class ColorStats:
    """Histogram entry for one color class key."""
    total: int
    outer: int
    sample: RGB

    @property
    def outer_ratio(self) -> float:
        return self.outer / self.total if self.total else 0.0


@dataclass
class SegmentationResult:
    """Background color classes and the histogram they were derived from."""
    background_keys: FrozenSet[int]
    color_stats: Dict[int, ColorStats] = field(default_factory=dict)

    def is_background(self, keys: np.ndarray) -> np.ndarray:
        """Boolean mask of which keys belong to the background set."""
        if not self.background_keys:
            return np.zeros(np.shape(keys), dtype=bool)
        return np.isin(keys, np.fromiter(self.background_keys, dtype=np.int64))


@dataclass
class CandidateSet:
    """Opaque pixels considered for point sampling, one row per pixel.

    All arrays share the same length. x and y are pixel coordinates, rgb is
    (N, 3) uint8.
    """
    x: np.ndarray
    y: np.ndarray
    brightness: np.ndarray
    edge_strength: np.ndarray
    importance: np.ndarray
    is_background: np.ndarray
    rgb: np.ndarray

    def __len__(self) -> int:
        return len(self.x)


@dataclass
class GeometryResult:
    """Point cloud output.

    positions holds x, y, z per point. The per-point attribute arrays are
    None for the sphere fallback.
    """
    positions: np.ndarray
    brightness: Optional[np.ndarray] = None
    edge_strength: Optional[np.ndarray] = None
    is_background: Optional[np.ndarray] = None

    @property
    def count(self) -> int:
        return len(self.positions) // 3

    @property
    def has_attributes(self) -> bool:
        return self.brightness is not None


@dataclass
class FgSample:
    """Foreground color bucket with its occurrence count."""
    color: RGB
    count: int
    hsl: HSL


@dataclass
class Palette:
    """Six hex colors in fixed role order."""
    shadow: str
    midtone: str
    highlight: str
    features: str
    details: str
    background: str

    def as_list(self):
        return [getattr(self, role) for role in PALETTE_ROLES]


@dataclass
class SegmentationConfig:
    """Thresholds for the radial-zone background classifier."""
    sample_stride: int = 4
    min_alpha: int = 50
    outer_radius_sq: float = 0.3  # nx^2 + ny^2 above this is outer zone
    background_ratio: float = 0.4  # outer/total above this is background

    def __post_init__(self):
        if self.sample_stride < 1:
            raise ValueError(f"sample_stride must be >= 1, got {self.sample_stride}")
        if not 0.0 <= self.background_ratio <= 1.0:
            raise ValueError(f"background_ratio must be in [0, 1], got {self.background_ratio}")


@dataclass
class SamplerConfig:
    """Configuration for image-to-point sampling."""
    # Working resolution
    working_width: int = 600

    # Candidate selection
    min_alpha: int = 20
    edge_divisor: float = 100.0
    edge_background_cutoff: float = 0.5  # harder edges are never background
    edge_boost_threshold: float = 0.2
    edge_boost: float = 1000.0
    foreground_boost: float = 500.0
    random_weight: float = 100.0

    # Output styling
    scanlines: int = 240
    pad_jitter: float = 1.0  # total jitter span in pixels for padded points

    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)

    def __post_init__(self):
        if self.working_width < 1:
            raise ValueError(f"working_width must be >= 1, got {self.working_width}")
        if self.scanlines < 1:
            raise ValueError(f"scanlines must be >= 1, got {self.scanlines}")


@dataclass
class PaletteConfig:
    """Configuration for palette extraction."""
    size: int = 64  # working grid is size x size
    min_alpha: int = 128
    bucket_size: int = 10
    max_distinct: int = 12
    min_distance_sq: float = 900.0  # ~30 per channel
    top_candidates: int = 6

    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)

    def __post_init__(self):
        if self.size < 1:
            raise ValueError(f"size must be >= 1, got {self.size}")
        if self.bucket_size < 1:
            raise ValueError(f"bucket_size must be >= 1, got {self.bucket_size}")
        if self.max_distinct < 1:
            raise ValueError(f"max_distinct must be >= 1, got {self.max_distinct}")


class PixelCloudError(Exception):
    """Base exception for pixelcloud errors."""
    pass


class ImageDecodeError(PixelCloudError):
    """Raised when an image cannot be fetched or decoded."""
    pass
