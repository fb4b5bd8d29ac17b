"""Tests for the ColorGrid raster source and the shared sampling loop."""

import numpy as np
import pytest

from gridtiles.exceptions import GridSourceError
from gridtiles.tilers import BaseGridSource, ColorGrid


@pytest.fixture
def geographic_source(gradient_grid, world_extent, geographic_tile_grid):
    """Whole-globe gradient rendered into one 256x128 EPSG:4326 tile."""
    def make(**kwargs):
        kwargs.setdefault("spacing_factor", 1)
        return ColorGrid(gradient_grid, 2, 2, world_extent,
                         projection="EPSG:4326", data_projection="EPSG:4326",
                         tile_grid=geographic_tile_grid, **kwargs)
    return make


class TestRenderTile:
    """End-to-end tile rendering."""

    def test_buffer_size(self, geographic_source):
        buffer = geographic_source().render_tile(0, 0, 0)
        assert buffer.dtype == np.uint8
        assert buffer.shape == (256 * 128 * 4,)

    def test_gradient(self, geographic_source):
        """Every pixel is the bilinear value at its cell centre, rounded half up.

        Column i samples lon = -180 + 360 * (i + 0.5) / 256, so the west half
        blends 0 and 255 with rx = (i + 0.5) / 128 and the east half sits on
        the 255 column.
        """
        pixels = geographic_source().render_tile(0, 0, 0).reshape(128, 256, 4)
        row = pixels[0, :, 0].astype(int)

        west = np.floor(255 * (np.arange(128) + 0.5) / 128 + 0.5).astype(int)
        expected = np.concatenate([west, np.full(128, 255)])

        assert np.array_equal(row, expected)
        assert np.all(pixels[..., 3] == 255)
        assert np.all(pixels[..., 0] == pixels[0, :, 0])
        assert np.all(pixels[..., 0] == pixels[..., 1])

    def test_gradient_corners(self, geographic_source):
        pixels = geographic_source().render_tile(0, 0, 0).reshape(128, 256, 4)
        # 255 * 0.5 / 128 = 0.996 and 255 * 127.5 / 128 = 253.99
        assert tuple(pixels[0, 0]) == (1, 1, 1, 255)
        assert tuple(pixels[127, 0]) == (1, 1, 1, 255)
        assert tuple(pixels[0, 127]) == (254, 254, 254, 255)
        assert tuple(pixels[0, 255]) == (255, 255, 255, 255)
        assert tuple(pixels[127, 255]) == (255, 255, 255, 255)

    @pytest.mark.parametrize("raw, expected", [(126.5, 127), (0.5, 1), (2.5, 3), (254.49, 254)])
    def test_halves_round_up(self, geographic_source, raw, expected):
        source = geographic_source()
        source.begin_tile()
        source.emit(0, 0, [raw])
        pixels = source.end_tile()
        assert tuple(pixels[:4]) == (expected, expected, expected, 255)

    def test_block_fill(self, geographic_source):
        """Coarse spacing fills whole blocks with one value."""
        source = geographic_source(spacing_factor=5)
        assert (source.grid_step_x, source.grid_step_y) == (16, 8)
        pixels = source.render_tile(0, 0, 0).reshape(128, 256, 4)
        block = pixels[0:8, 16:32, 0]
        assert np.all(block == block[0, 0])

    def test_out_of_extent_transparent(self, uniform_grid):
        source = ColorGrid(uniform_grid(200), 2, 2, (0, 0, 10, 10), spacing_factor=1)
        pixels = source.render_tile(0, 0, 0).reshape(256, 256, 4)
        assert pixels[0, 0, 3] == 0
        assert pixels[128, 64, 3] == 0
        assert (pixels[..., 3] == 255).any()
        assert set(np.unique(pixels[pixels[..., 3] == 255][:, 0])) == {200}

    def test_antimeridian_extent(self, uniform_grid):
        source = ColorGrid(uniform_grid(200), 2, 2, (170, -10, -170, 10), spacing_factor=1)
        pixels = source.render_tile(0, 0, 0).reshape(256, 256, 4)
        assert tuple(pixels[128, 252]) == (200, 200, 200, 255)
        assert tuple(pixels[128, 3]) == (200, 200, 200, 255)
        assert pixels[128, 128, 3] == 0

    def test_nodata_skipped(self, uniform_grid, world_extent):
        source = ColorGrid(uniform_grid(0), 2, 2, world_extent, nodata=0)
        assert not source.render_tile(0, 0, 0).any()

    def test_deterministic(self, geographic_source):
        source = geographic_source(spacing_factor=3)
        assert np.array_equal(source.render_tile(0, 0, 0), source.render_tile(0, 0, 0))


class TestSpacing:
    """Tests for the spacing factor / stride selection."""

    def test_finest_samples_every_pixel(self, gradient_grid, world_extent):
        source = ColorGrid(gradient_grid, 2, 2, world_extent, spacing_factor=1)
        assert source.grid_step_x == 1
        assert len(list(source.iter_sample_points(0, 0, 0))) == 256 * 256

    def test_default_spacing(self, gradient_grid, world_extent):
        source = ColorGrid(gradient_grid, 2, 2, world_extent)
        assert source.grid_step_x == 2
        assert source.half_step_x == 1.0

    @pytest.mark.parametrize("factor, step", [(0, 1), (-3, 1), (5, 16), (99, 16)])
    def test_out_of_range_factor_clamped(self, gradient_grid, world_extent, factor, step):
        source = ColorGrid(gradient_grid, 2, 2, world_extent, spacing_factor=factor)
        assert source.grid_step_x == step

    def test_step_rounds_half_up(self, gradient_grid, world_extent):
        """100 px / 8 samples = 12.5 px, which becomes a 13 px step."""
        source = ColorGrid(gradient_grid, 2, 2, world_extent, tile_size=100,
                           divisors=(8,), spacing_factor=1)
        assert (source.grid_step_x, source.grid_step_y) == (13, 13)
        assert source.half_step_x == 6.5

    def test_coarsest_sample_count(self, gradient_grid, world_extent):
        source = ColorGrid(gradient_grid, 2, 2, world_extent, spacing_factor=99)
        assert len(list(source.iter_sample_points(0, 0, 0))) == 16 * 16


class TestValueAt:
    """Tests for the point query."""

    def test_raw_values_on_nodes(self, geographic_source):
        source = geographic_source()
        assert source.value_at((-180, 90)) == 0.0
        assert source.value_at((0, 0)) == 255.0
        assert source.value_at((180, -90)) == 255.0

    def test_dequantized(self, geographic_source):
        source = geographic_source(extremes=(-50, 50))
        assert source.value_at((-180, 0)) == pytest.approx(-50.0)
        assert source.value_at((0, 0)) == pytest.approx(50.0)
        assert source.value_at((-90, 0)) == pytest.approx(0.0)

    def test_missing_and_outside(self):
        source = ColorGrid(np.array([1.0, 2.0, np.nan, 4.0]), 2, 2, (0, 0, 10, 10),
                           projection="EPSG:4326")
        assert source.value_at((20, 5)) is None
        assert source.value_at((2.5, 2.5)) is None

    def test_webmercator_coordinate(self, gradient_grid, world_extent):
        source = ColorGrid(gradient_grid, 2, 2, world_extent)
        assert source.value_at((0.0, 0.0)) == pytest.approx(255.0)


class TestValidation:
    """Construction input is validated up front."""

    def test_wrong_buffer_length(self, world_extent):
        with pytest.raises(GridSourceError):
            ColorGrid(np.zeros(5, dtype=np.uint8), 2, 2, world_extent)

    @pytest.mark.parametrize("width, height", [(0, 2), (2, -1), (2.5, 2)])
    def test_bad_dimensions(self, world_extent, width, height):
        with pytest.raises(GridSourceError):
            ColorGrid(np.zeros(4, dtype=np.uint8), width, height, world_extent)

    def test_bad_extent(self):
        with pytest.raises(GridSourceError):
            ColorGrid(np.zeros(4, dtype=np.uint8), 2, 2, (0, 10, 10, 0))
        with pytest.raises(GridSourceError):
            ColorGrid(np.zeros(4, dtype=np.uint8), 2, 2, (0, 0, 10))

    def test_inverted_extremes(self, world_extent):
        with pytest.raises(GridSourceError):
            ColorGrid(np.zeros(4, dtype=np.uint8), 2, 2, world_extent, extremes=(5, 1))

    @pytest.mark.parametrize("tile_size", [0, -256, (256, 0), (0, 256)])
    def test_non_positive_tile_size(self, world_extent, tile_size):
        with pytest.raises(GridSourceError):
            ColorGrid(np.zeros(4, dtype=np.uint8), 2, 2, world_extent, tile_size=tile_size)

    def test_non_positive_tile_size_with_tile_grid(self, world_extent, geographic_tile_grid):
        with pytest.raises(GridSourceError):
            ColorGrid(np.zeros(4, dtype=np.uint8), 2, 2, world_extent, tile_size=(0, 128),
                      projection="EPSG:4326", tile_grid=geographic_tile_grid)

    def test_malformed_tile_size(self, world_extent):
        with pytest.raises(GridSourceError):
            ColorGrid(np.zeros(4, dtype=np.uint8), 2, 2, world_extent, tile_size=(1, 2, 3))

    def test_unknown_projection_needs_tile_grid(self, world_extent):
        with pytest.raises(GridSourceError):
            ColorGrid(np.zeros(4, dtype=np.uint8), 2, 2, world_extent, projection="EPSG:32633")

    def test_base_class_is_abstract(self, world_extent):
        """The sampling loop needs a renderer; the base class cannot be built."""
        with pytest.raises(TypeError):
            BaseGridSource([np.zeros(4, dtype=np.uint8)], 2, 2, world_extent)

    def test_is_value_error(self, world_extent):
        with pytest.raises(ValueError):
            ColorGrid(np.zeros(3, dtype=np.uint8), 2, 2, world_extent)

    def test_bytes_buffer_accepted(self, world_extent):
        source = ColorGrid(bytes([0, 255, 0, 255]), 2, 2, world_extent)
        assert source.data.dtype == np.uint8
        assert not source.data.flags.writeable
