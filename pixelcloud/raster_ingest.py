"""Raster image ingestion into RGBA pixel buffers."""
import base64
import binascii
import io
import logging
from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote, unquote_to_bytes, urlparse

import numpy as np
import requests
from PIL import Image, ImageOps, UnidentifiedImageError

from pixelcloud.types import ImageDecodeError, PixelBuffer

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 15  # seconds

ImageSource = Union[str, Path]


def _read_source(image_url: ImageSource) -> bytes:
    """Fetch the raw encoded bytes behind an image location."""
    if isinstance(image_url, Path):
        return _read_file(image_url)

    if image_url.startswith("data:"):
        header, sep, payload = image_url.partition(",")
        if not sep:
            raise ImageDecodeError("Malformed data URI: missing ',' separator")
        try:
            if header.endswith(";base64"):
                return base64.b64decode(payload, validate=False)
            return unquote_to_bytes(payload)
        except (binascii.Error, ValueError) as e:
            raise ImageDecodeError(f"Malformed data URI payload: {e}") from e

    parsed = urlparse(image_url)
    if parsed.scheme in ("http", "https"):
        try:
            response = requests.get(image_url, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ImageDecodeError(f"Failed to fetch image {image_url}: {e}") from e
        return response.content

    if parsed.scheme == "file":
        return _read_file(Path(unquote(parsed.path)))

    return _read_file(Path(image_url))


def _read_file(path: Path) -> bytes:
    if not path.exists():
        raise ImageDecodeError(f"Image file not found: {path}")
    if not path.is_file():
        raise ImageDecodeError(f"Path is not a file: {path}")
    try:
        return path.read_bytes()
    except OSError as e:
        raise ImageDecodeError(f"Failed to read image {path}: {e}") from e


def load_image(image_url: ImageSource) -> Image.Image:
    """
    Load an image from a path, file:// URL, data URI or http(s) URL.

    Args:
        image_url: Location of the encoded image

    Returns:
        Fully loaded PIL image in RGBA mode

    Raises:
        ImageDecodeError: If the image cannot be fetched or decoded
    """
    data = _read_source(image_url)

    try:
        with Image.open(io.BytesIO(data)) as img:
            # Apply EXIF orientation transformation to handle rotation
            img = ImageOps.exif_transpose(img)
            rgba = img.convert("RGBA")
            rgba.load()
            return rgba
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Failed to decode image: {e}") from e
    except Exception as e:
        raise ImageDecodeError(f"Unexpected error decoding image: {e}") from e


def working_size(width: int, height: int, working_width: int) -> "tuple[int, int]":
    """Size for resizing to a fixed width while keeping aspect ratio."""
    if width <= 0 or height <= 0:
        raise ImageDecodeError(f"Image has no pixels ({width}x{height})")
    scaled_height = int(height / width * working_width)
    return working_width, max(1, scaled_height)


def to_pixel_buffer(image: Image.Image, width: Optional[int] = None, height: Optional[int] = None) -> PixelBuffer:
    """
    Resize a PIL image (if a size is given) and wrap it as a PixelBuffer.
    """
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    if width is not None and height is not None and image.size != (width, height):
        image = image.resize((width, height), Image.Resampling.BILINEAR)
    return PixelBuffer(pixels=np.array(image, dtype=np.uint8))


def ingest(
    image_url: ImageSource,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> PixelBuffer:
    """
    Decode an image and resize it to a working resolution.

    Args:
        image_url: Location of the encoded image
        width: Target width. With height None, height follows the aspect ratio.
        height: Target height. Ignored unless width is also given.

    Returns:
        PixelBuffer at the requested size (original size if width is None)

    Raises:
        ImageDecodeError: If the image cannot be loaded
    """
    image = load_image(image_url)
    orig_width, orig_height = image.size

    if width is not None and height is None:
        width, height = working_size(orig_width, orig_height, width)

    buffer = to_pixel_buffer(image, width, height)
    logger.info(
        f"Ingested {orig_width}x{orig_height} image at {buffer.width}x{buffer.height}"
    )
    return buffer


def ingest_from_array(image: np.ndarray) -> PixelBuffer:
    """
    Create a PixelBuffer from a numpy array.

    Args:
        image: uint8 array (H, W), (H, W, 3) or (H, W, 4)

    Returns:
        PixelBuffer; RGB and grayscale inputs get an opaque alpha channel
    """
    if image.ndim == 2:
        # Grayscale - convert to RGB
        image = np.stack([image] * 3, axis=-1)

    if image.ndim != 3:
        raise ValueError(f"Expected 2D or 3D array, got {image.ndim}D")

    if image.shape[2] == 3:
        alpha = np.full(image.shape[:2] + (1,), 255, dtype=np.uint8)
        image = np.concatenate([image.astype(np.uint8), alpha], axis=2)
    elif image.shape[2] != 4:
        raise ValueError(f"Expected 3 or 4 channels, got {image.shape[2]}")

    return PixelBuffer(pixels=np.ascontiguousarray(image, dtype=np.uint8))
