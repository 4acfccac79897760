"""Shared synthetic fundus-like images for the test suite."""

import numpy as np
import pytest

from vesselmask import VesselExtractor

BACKGROUND_LEVEL = 40
FEATURE_LEVEL = 200
LINE_COLUMNS = slice(20, 23)          # 3-pixel-wide vertical "vessel"
SQUARE = (slice(45, 47), slice(45, 47))  # isolated 2x2 speck


@pytest.fixture
def line_and_square_image():
    """64x64 BGR image: one bright 3-px line and one 2x2 bright square."""
    img = np.full((64, 64, 3), BACKGROUND_LEVEL, dtype=np.uint8)
    img[:, LINE_COLUMNS] = FEATURE_LEVEL
    img[SQUARE] = FEATURE_LEVEL
    return img


@pytest.fixture
def random_color_image():
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, size=(96, 80, 3), dtype=np.uint8)


@pytest.fixture
def extractor():
    return VesselExtractor()


def make_block_mask(seed: int = 0, cells: int = 8, cell_size: int = 16,
                    holes: bool = False) -> np.ndarray:
    """Binary mask of non-touching solid rectangles of random size.

    Each rectangle sits inside its own grid cell with a one-pixel margin, so
    regions never merge. With ``holes`` every rectangle of at least 3x3
    pixels gets a one-pixel hole at its centre.
    """
    rng = np.random.default_rng(seed)
    size = cells * cell_size
    mask = np.zeros((size, size), dtype=np.uint8)
    for row in range(cells):
        for col in range(cells):
            h, w = rng.integers(1, cell_size - 2, size=2)
            top = row * cell_size + 1
            left = col * cell_size + 1
            mask[top:top + h, left:left + w] = 255
            if holes and h >= 3 and w >= 3:
                mask[top + h // 2, left + w // 2] = 0
    return mask


@pytest.fixture
def block_mask():
    return make_block_mask()
