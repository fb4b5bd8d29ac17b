"""Tests for the gridtiles.utils module."""

import math

import numpy as np
import pytest

from gridtiles.factories import InterpolationParams
from gridtiles.utils import clamp, dequantize, interpolate_grid_value, quantize, round_half_up


class TestClamp:
    """Tests for the clamp function."""

    def test_inside_range_unchanged(self):
        assert clamp(5, 0, 10) == 5

    def test_clamps_both_ends(self):
        assert clamp(-3, 0, 10) == 0
        assert clamp(42, 0, 10) == 10


class TestRoundHalfUp:
    """Tests for round_half_up."""

    @pytest.mark.parametrize("value, expected", [
        (0.5, 1), (1.5, 2), (2.5, 3), (12.5, 13), (-2.5, -2), (2.49, 2),
    ])
    def test_halves_go_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_returns_int(self):
        assert isinstance(round_half_up(3.7), int)


class TestQuantize:
    """Tests for quantize and dequantize."""

    def test_quantize_midpoint(self):
        """The middle of a symmetric range maps to half of 255."""
        assert quantize(0, (-50, 50)) == 127.5

    def test_dequantize_byte(self):
        assert dequantize(128, (-50, 50)) == pytest.approx(0.196, abs=1e-3)

    def test_range_ends(self):
        assert quantize(-50, (-50, 50)) == 0
        assert quantize(50, (-50, 50)) == 255
        assert dequantize(0, (-50, 50)) == -50
        assert dequantize(255, (-50, 50)) == 50

    @pytest.mark.parametrize("value", [-40.0, -1.5, 0.0, 3.25, 12.0, 39.9])
    def test_round_trip(self, value):
        """dequantize(quantize(v)) returns v within float tolerance."""
        value_range = (-40.0, 40.0)
        assert dequantize(quantize(value, value_range), value_range) == pytest.approx(value)

    def test_degenerate_range(self):
        """A zero span range dequantizes to its min and quantizes to 0."""
        assert dequantize(200, (5, 5)) == 5.0
        assert quantize(5, (5, 5)) == 0.0
        assert not math.isnan(dequantize(0, (5, 5)))


class TestInterpolateGridValue:
    """Tests for the bilinear grid interpolator."""

    @pytest.fixture
    def grid(self):
        return np.array([10, 20, 30, 40], dtype=np.uint8)

    def _params(self, rx, ry):
        return InterpolationParams(i11=0, i21=1, i12=2, i22=3, rx=rx, ry=ry)

    @pytest.mark.parametrize("rx, ry, expected", [
        (0, 0, 10), (1, 0, 20), (0, 1, 30), (1, 1, 40),
    ])
    def test_grid_nodes_exact(self, grid, rx, ry, expected):
        """On a grid node the blend collapses to that node's value."""
        assert interpolate_grid_value(grid, self._params(rx, ry)) == expected

    def test_cell_centre(self, grid):
        assert interpolate_grid_value(grid, self._params(0.5, 0.5)) == pytest.approx(25.0)

    def test_nan_neighbour_propagates(self):
        """A NaN neighbour gives NaN even when its weight is zero."""
        grid = np.array([1.0, 2.0, 3.0, np.nan])
        assert math.isnan(interpolate_grid_value(grid, self._params(0, 0)))

    def test_nodata_sentinel(self, grid):
        assert math.isnan(interpolate_grid_value(grid, self._params(0.5, 0.5), nodata=40))
        assert not math.isnan(interpolate_grid_value(grid, self._params(0.5, 0.5), nodata=0))
