"""Pytest configuration and fixtures."""

import numpy as np
import pytest
from PIL import Image

from lowpoly.types import PixelBuffer


def make_buffer(channel0, rgb=None) -> PixelBuffer:
    """Build an RGBA buffer whose channel 0 holds the given (H, W) values."""
    channel0 = np.asarray(channel0, dtype=np.uint8)
    h, w = channel0.shape
    data = np.zeros((h, w, 4), dtype=np.uint8)
    if rgb is not None:
        data[..., :3] = rgb
    data[..., 0] = channel0
    data[..., 3] = 255
    return PixelBuffer(data)


def circle_rgb(size: int = 64) -> np.ndarray:
    """Reddish disc on a white background."""
    img = np.full((size, size, 3), 255, dtype=np.uint8)
    yy, xx = np.mgrid[0:size, 0:size]
    center = size / 2
    radius = size * 0.3
    img[(xx - center) ** 2 + (yy - center) ** 2 < radius ** 2] = [255, 100, 100]
    return img


@pytest.fixture
def circle_buffer():
    """64x64 RGBA buffer of a disc on white."""
    rgb = circle_rgb()
    alpha = np.full(rgb.shape[:2] + (1,), 255, dtype=np.uint8)
    return PixelBuffer(np.concatenate([rgb, alpha], axis=2))


@pytest.fixture
def circle_png(tmp_path):
    """Path to the disc image saved as PNG."""
    path = tmp_path / "circle.png"
    Image.fromarray(circle_rgb()).save(path)
    return path
