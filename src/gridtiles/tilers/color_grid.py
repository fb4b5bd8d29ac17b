"""Grayscale raster tiles from a single grid channel."""
from typing import List, Optional

import numpy as np

from ..utils import clamp, dequantize, interpolate_grid_value, round_half_up
from .base import BaseGridSource, as_value_range

COLOR_DIVISORS = (256, 128, 64, 32, 16)


class ColorGrid(BaseGridSource):
    """Render one grid buffer as an opaque grayscale tile.

    Each sample point fills its whole ``grid_step_x * grid_step_y`` cell
    with the rounded interpolated byte value, so coarse spacing factors
    give a mosaic. Colouring the gray levels is left to the host (see
    ``gridtiles.styles.create_heatmap_style``) or to
    ``gridtiles.tile.colorize``.

    Parameters
    ----------
    data : array-like or bytes
        The grid buffer.
    data_width, data_height : int
        Grid dimensions.
    data_extent : sequence of float
        Grid extent in the data projection.
    extremes : tuple of float, optional
        (min, max) used by ``value_at`` to return physical values.
    spacing_factor : int, optional
        1 samples every pixel of a 256 pixel tile, 5 every 16th. By
        default 2.
    **kwargs
        Passed on to ``BaseGridSource``.
    """

    DEFAULT_SPACING_FACTOR = 2

    def __init__(self, data, data_width: int, data_height: int, data_extent,
                 extremes=None, **kwargs):
        if extremes is not None:
            extremes = as_value_range(extremes)
        kwargs.setdefault("divisors", COLOR_DIVISORS)
        super().__init__([data], data_width, data_height, data_extent,
                         extremes=extremes, **kwargs)
        self.data = self.channels[0]
        self._pixels = None

    def begin_tile(self):
        self._pixels = np.zeros((self.tile_h, self.tile_w, 4), dtype=np.uint8)

    def emit(self, i: int, j: int, values: List[float]) -> bool:
        value = clamp(round_half_up(values[0]), 0, 255)
        self._pixels[j:j + self.grid_step_y, i:i + self.grid_step_x] = (value, value, value, 255)
        return True

    def end_tile(self) -> np.ndarray:
        pixels, self._pixels = self._pixels, None
        return pixels.reshape(-1)

    def value_at(self, coordinate) -> Optional[float]:
        """Interpolated value at a map coordinate.

        Parameters
        ----------
        coordinate : sequence of float
            (x, y) in the map projection.

        Returns
        -------
        float or None
            The dequantized value, the raw interpolated value when no
            extremes are configured, or None for missing data and
            coordinates outside the extent.
        """
        params = self.query_params(coordinate)
        if params is None:
            return None
        raw = interpolate_grid_value(self.data, params, self.nodata)
        if np.isnan(raw):
            return None
        return dequantize(raw, self.extremes) if self.extremes else raw
