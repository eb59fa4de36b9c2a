"""Pytest configuration and fixtures."""
import base64
import io

import numpy as np
import pytest
from PIL import Image

BACKDROP = (0, 0, 60)
SUBJECT = (255, 200, 100)


def make_subject_image(size: int = 64, radius_sq: float = 0.25) -> np.ndarray:
    """RGBA image: a SUBJECT disk in the middle of a BACKDROP field."""
    ys, xs = np.mgrid[0:size, 0:size]
    nx = (xs / size - 0.5) * 2
    ny = (ys / size - 0.5) * 2
    inside = nx * nx + ny * ny < radius_sq

    image = np.zeros((size, size, 4), dtype=np.uint8)
    image[..., :3] = BACKDROP
    image[inside, :3] = SUBJECT
    image[..., 3] = 255
    return image


def encode_png(array: np.ndarray) -> bytes:
    buffer = io.BytesIO()
    Image.fromarray(array).save(buffer, format='PNG')
    return buffer.getvalue()


@pytest.fixture
def subject_image():
    """64x64 subject-on-backdrop RGBA array."""
    return make_subject_image()


@pytest.fixture
def subject_png(tmp_path, subject_image):
    """Path to the subject image saved as PNG."""
    path = tmp_path / "subject.png"
    path.write_bytes(encode_png(subject_image))
    return path


@pytest.fixture
def subject_data_uri(subject_image):
    """The subject image as a base64 data URI."""
    payload = base64.b64encode(encode_png(subject_image)).decode('ascii')
    return f"data:image/png;base64,{payload}"


@pytest.fixture
def missing_path(tmp_path):
    return tmp_path / "does_not_exist.png"
