"""Base class of the grid sources.

A grid source samples one or more quantized grid buffers at the pixels of
a requested map tile. The sampling loop is shared; subclasses only decide
how one sampled point is written into the tile.
"""
import logging
import math
from abc import ABC, abstractmethod
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..area_definitions import TileGrid, tile_size_pair, xyz_grid
from ..exceptions import GridSourceError
from ..factories import (InterpolationParams, create_check_extent_func,
                         create_coordinate_calculator, create_transform_func)
from ..utils import clamp, interpolate_grid_value, round_half_up
from .. import config

settings = config.settings
logger = logging.getLogger(__name__)

FINE_DIVISORS = (16, 8, 4, 2, 1)


def as_grid_buffer(data, size: int, name: str = "data") -> np.ndarray:
    """Validate one grid buffer and return it as a flat read-only array.

    Parameters
    ----------
    data : array-like or bytes
        Row-major grid values. ``bytes`` are viewed as ``uint8``.
    size : int
        Expected number of values (width * height).
    name : str, optional
        Name used in error messages.

    Raises
    ------
    GridSourceError
        If the buffer does not hold exactly ``size`` values.
    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        array = np.frombuffer(data, dtype=np.uint8)
    else:
        array = np.asarray(data)
    array = array.reshape(-1)
    if array.size != size:
        raise GridSourceError(
            f"{name} holds {array.size} values, expected width*height = {size}")
    array.flags.writeable = False
    return array


def as_value_range(pair, name: str = "extremes") -> Tuple[float, float]:
    try:
        vmin, vmax = (float(v) for v in pair)
    except (TypeError, ValueError) as err:
        raise GridSourceError(f"{name} must be a (min, max) pair, got {pair!r}") from err
    if vmax < vmin:
        raise GridSourceError(f"{name} max {vmax} is smaller than min {vmin}")
    return vmin, vmax


def is_range_list(extremes) -> bool:
    """True when ``extremes`` holds one (min, max) pair per channel."""
    return len(extremes) > 0 and isinstance(extremes[0], (list, tuple, np.ndarray))


class BaseGridSource(ABC):
    """Sample quantized grid buffers into map tiles.

    Parameters
    ----------
    channels : list of array-like
        Grid buffers, each of ``data_width * data_height`` values.
    data_width : int
        Number of grid columns.
    data_height : int
        Number of grid rows. Row 0 is the northernmost row.
    data_extent : sequence of float
        (min_lon, min_lat, max_lon, max_lat) of the grid in the data
        projection. max_lon < min_lon marks an extent crossing the
        antimeridian.
    extremes : tuple or list of tuple, optional
        Value range(s) mapping stored bytes to physical values.
    projection : str or pyproj.CRS, optional
        Map projection of the tiles. Defaults to ``settings.projection`` or
        "EPSG:3857".
    data_projection : str or pyproj.CRS, optional
        Projection of ``data_extent``. Defaults to
        ``settings.data_projection`` or "EPSG:4326".
    tile_size : int or tuple of int, optional
        Tile size in pixels. Defaults to ``settings.tile_size`` or 256.
    tile_grid : gridtiles.area_definitions.TileGrid, optional
        Tile grid geometry. Defaults to the XYZ grid of ``projection``.
    spacing_factor : int, optional
        Sampling density, 1 (densest) to 5, clamped to ``divisors``.
    divisors : sequence of int, optional
        Number of sample points per tile axis for each spacing factor.
    nodata : float, optional
        Sentinel value marking missing data in the buffers.

    Attributes
    ----------
    grid_step_x, grid_step_y : int
        Pixels between two sample points.
    interpolation_param : InterpolationParams
        Scratch record overwritten at every sample point of a tile.
    """

    DEFAULT_SPACING_FACTOR = 1

    def __init__(self, channels: Sequence, data_width: int, data_height: int,
                 data_extent: Sequence[float], extremes=None,
                 projection=None, data_projection=None, tile_size=None,
                 tile_grid: Optional[TileGrid] = None,
                 spacing_factor: Optional[int] = None,
                 divisors: Sequence[int] = FINE_DIVISORS,
                 nodata: Optional[float] = None):
        if not isinstance(data_width, (int, np.integer)) or data_width <= 0:
            raise GridSourceError(f"data_width must be a positive integer, got {data_width!r}")
        if not isinstance(data_height, (int, np.integer)) or data_height <= 0:
            raise GridSourceError(f"data_height must be a positive integer, got {data_height!r}")
        if len(channels) == 0:
            raise GridSourceError("At least one grid buffer is required")

        self.data_width = int(data_width)
        self.data_height = int(data_height)
        size = self.data_width * self.data_height
        self.channels: List[np.ndarray] = [
            as_grid_buffer(channel, size, name=f"channel {n}")
            for n, channel in enumerate(channels)]

        if len(data_extent) != 4:
            raise GridSourceError(f"data_extent must have 4 values, got {data_extent!r}")
        self.data_extent = tuple(float(v) for v in data_extent)
        if self.data_extent[3] < self.data_extent[1]:
            raise GridSourceError(f"data_extent min_lat exceeds max_lat: {data_extent!r}")

        self.extremes = extremes
        self.nodata = nodata

        self.projection = projection or settings.get("projection", "EPSG:3857")
        self.data_projection = data_projection or settings.get("data_projection", "EPSG:4326")

        if tile_size is None:
            if tile_grid is not None:
                tile_size = tile_grid.tile_size
            else:
                tile_size = settings.get("tile_size", 256)
        try:
            self.tile_w, self.tile_h = tile_size_pair(tile_size)
        except (TypeError, ValueError) as err:
            raise GridSourceError(f"tile_size must be a size or a (width, height) pair, "
                                  f"got {tile_size!r}") from err
        if self.tile_w <= 0 or self.tile_h <= 0:
            raise GridSourceError(f"tile_size must be positive, got {tile_size!r}")

        if tile_grid is not None:
            self.tile_grid = tile_grid
        else:
            try:
                self.tile_grid = xyz_grid(self.projection, tile_size=(self.tile_w, self.tile_h))
            except ValueError as err:
                raise GridSourceError(f"{err}; pass a tile_grid") from err

        self.transform = create_transform_func(self.projection, self.data_projection)
        self.check_extent = create_check_extent_func(self.data_extent)
        self.coordinate_calculator = create_coordinate_calculator(
            self.data_width, self.data_height, self.data_extent)

        if spacing_factor is None:
            spacing_factor = self.DEFAULT_SPACING_FACTOR
        self.spacing_factor = spacing_factor
        divisor_idx = clamp(int(spacing_factor) - 1, 0, len(divisors) - 1)
        divisor = divisors[divisor_idx]

        self.grid_step_x = max(1, round_half_up(self.tile_w / divisor))
        self.grid_step_y = max(1, round_half_up(self.tile_h / divisor))
        self.half_step_x = self.grid_step_x / 2
        self.half_step_y = self.grid_step_y / 2

        self.interpolation_param = InterpolationParams()

        logger.debug(f"{type(self).__name__}: {len(self.channels)} channel(s) "
                     f"{self.data_width}x{self.data_height}, extent {self.data_extent}, "
                     f"grid step {self.grid_step_x}x{self.grid_step_y}")

    def compute_bbox(self, z: int, x: int, y: int) -> Tuple[float, float, float, float]:
        """Map-space bounding box of tile (z, x, y).

        Tile rows grow downward while map y grows upward, hence the negated
        row index.
        """
        origin_x, origin_y = self.tile_grid.get_origin(z)
        resolution = self.tile_grid.get_resolution(z)
        span_x = self.tile_w * resolution
        span_y = self.tile_h * resolution
        return (origin_x + span_x * x,
                origin_y + span_y * (-y - 1),
                origin_x + span_x * (x + 1),
                origin_y + span_y * -y)

    def iter_sample_points(self, z: int, x: int, y: int
                           ) -> Iterator[Tuple[int, int, InterpolationParams]]:
        """Yield the in-extent sample points of a tile.

        Yields
        ------
        tuple
            ``(i, j, params)``: pixel column and row of the top-left corner
            of the sample cell, and the interpolation parameters of its
            centre. ``params`` is the shared scratch record and is only
            valid until the next point is produced.
        """
        tile_w, tile_h = self.tile_w, self.tile_h
        step_x, step_y = self.grid_step_x, self.grid_step_y
        half_x, half_y = self.half_step_x, self.half_step_y
        transform = self.transform
        check_extent = self.check_extent
        calculator = self.coordinate_calculator
        scratch = self.interpolation_param

        bbox = self.compute_bbox(z, x, y)
        step_width = (bbox[2] - bbox[0]) / tile_w
        step_height = (bbox[3] - bbox[1]) / tile_h

        for i in range(0, tile_w, step_x):
            for j in range(0, tile_h, step_y):
                lon, lat = transform(bbox[0] + step_width * (i + half_x),
                                     bbox[3] - step_height * (j + half_y))
                if not check_extent(lon, lat):
                    continue
                yield i, j, calculator(lon, lat, scratch)

    def interpolate_channels(self, params: InterpolationParams) -> Optional[List[float]]:
        """Interpolate every channel, or return None if any is missing."""
        values = []
        for grid in self.channels:
            raw = interpolate_grid_value(grid, params, self.nodata)
            if math.isnan(raw):
                return None
            values.append(raw)
        return values

    def query_params(self, coordinate) -> Optional[InterpolationParams]:
        """Fresh interpolation parameters for a map coordinate.

        Returns None when the coordinate lies outside the data extent.
        """
        lon, lat = self.transform(coordinate[0], coordinate[1])
        if not self.check_extent(lon, lat):
            return None
        return self.coordinate_calculator(lon, lat)

    def render_tile(self, z: int, x: int, y: int) -> np.ndarray:
        """Render tile (z, x, y).

        Returns
        -------
        numpy.ndarray
            Flat ``uint8`` RGBA buffer of ``tile_w * tile_h * 4`` bytes,
            row-major.
        """
        self.begin_tile()
        n_points = n_emitted = 0
        for i, j, params in self.iter_sample_points(z, x, y):
            n_points += 1
            values = self.interpolate_channels(params)
            if values is None:
                continue
            if self.emit(i, j, values):
                n_emitted += 1
        logger.debug(f"Tile {z}/{x}/{y}: {n_points} points in extent, {n_emitted} drawn")
        return self.end_tile()

    @abstractmethod
    def begin_tile(self):
        """Reset the tile buffer or canvas."""

    @abstractmethod
    def emit(self, i: int, j: int, values: List[float]) -> bool:
        """Write one sample point; return True if anything was drawn."""

    @abstractmethod
    def end_tile(self) -> np.ndarray:
        """Return the finished tile as a flat RGBA ``uint8`` array."""
