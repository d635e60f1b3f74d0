"""
Shared fixtures: small synthetic RGBA images with known region layouts.
"""
import numpy as np
import pytest

from models.image import Image
from models.region import Region


def rgba(height, width, value=128):
    """Uniform opaque gray image."""
    pixels = np.full((height, width, 4), value, dtype=np.uint8)
    pixels[..., 3] = 255
    return pixels


def draw_box_outline(pixels, x1, y1, x2, y2):
    """1-pixel black outline, corners inclusive."""
    pixels[y1, x1:x2 + 1, :3] = 0
    pixels[y2, x1:x2 + 1, :3] = 0
    pixels[y1:y2 + 1, x1, :3] = 0
    pixels[y1:y2 + 1, x2, :3] = 0
    return pixels


def square_region(x, y, size):
    return Region.from_pixels((px, py) for px in range(x, x + size) for py in range(y, y + size))


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def flat_small_image():
    """30x30 flat gray: one 900-pixel uniform blob covering the whole image."""
    return Image(pixels=rgba(30, 30))


@pytest.fixture
def flat_large_image():
    """100x100 flat gray: a single 10000-pixel blob, too big to be a difference."""
    return Image(pixels=rgba(100, 100))


@pytest.fixture
def boxed_image():
    """
    100x100 gray with two outlined boxes.
    The inside of each box, minus the ring next to the outline, is a 29x29 flat area.
    """
    pixels = rgba(100, 100)
    draw_box_outline(pixels, 10, 10, 42, 42)
    draw_box_outline(pixels, 55, 55, 87, 87)
    return Image(pixels=pixels)


@pytest.fixture
def gradient_image():
    """Horizontal ramp with distinct colours per column, handy for spotting moved pixels."""
    height, width = 60, 80
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[..., 0] = np.arange(width, dtype=np.uint8)[None, :] * 3
    pixels[..., 1] = np.arange(height, dtype=np.uint8)[:, None] * 4
    pixels[..., 2] = 200
    pixels[..., 3] = 255
    return Image(pixels=pixels)
