"""Shared pytest fixtures for gridtiles tests."""

import tempfile
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from gridtiles.area_definitions import TileGrid

WORLD = (-180.0, -90.0, 180.0, 90.0)


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def world_extent():
    return WORLD


@pytest.fixture
def gradient_grid():
    """2x2 grid, 0 in the west column and 255 in the east column."""
    return np.array([0, 255, 0, 255], dtype=np.uint8)


@pytest.fixture
def geographic_tile_grid():
    """Single 256x128 tile covering the whole globe in EPSG:4326 at zoom 0."""
    return TileGrid(WORLD, tile_size=(256, 128))


@pytest.fixture
def uniform_grid():
    """Factory for a constant 2x2 uint8 grid."""
    def make(value, size=4):
        return np.full(size, value, dtype=np.uint8)
    return make


@pytest.fixture
def packed_image(temp_dir):
    """Write a 4x2 RGBA PNG; r=255, g=0, b=128, a=255 everywhere."""
    pixels = np.zeros((2, 4, 4), dtype=np.uint8)
    pixels[..., 0] = 255
    pixels[..., 2] = 128
    pixels[..., 3] = 255
    path = temp_dir / "field.png"
    Image.fromarray(pixels).save(path)
    return path
