"""
Test configuration and fixtures for the palette service.
"""
import io

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from main import app

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)


def encode_png(pixels: np.ndarray) -> bytes:
    """Encode an (H, W, 4) uint8 array as PNG bytes."""
    buffer = io.BytesIO()
    Image.fromarray(pixels.astype(np.uint8)).save(buffer, format="PNG")
    return buffer.getvalue()


def striped_image(colors, height=30, stripe_width=10) -> np.ndarray:
    """Vertical stripes of equal width, one per color."""
    pixels = np.zeros((height, stripe_width * len(colors), 4), dtype=np.uint8)
    for i, color in enumerate(colors):
        pixels[:, i * stripe_width:(i + 1) * stripe_width] = color
    return pixels


@pytest.fixture
def test_client():
    """Create test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def three_blocks():
    """100 red, 100 green and 100 blue samples."""
    return np.array([RED] * 100 + [GREEN] * 100 + [BLUE] * 100, dtype=np.float64)


@pytest.fixture
def striped_png():
    return encode_png(striped_image([RED, GREEN, BLUE]))
