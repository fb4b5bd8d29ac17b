"""Tile grid definitions.

A tile grid gives, for every zoom level, the map-space origin of tile
(0, 0) and the resolution in map units per pixel. Tile rows grow
downward from the origin, which is the top-left corner of the grid
extent.
"""
import math
from typing import Optional, Sequence, Tuple, Union

from .factories import GEOGRAPHIC, WEBMERCATOR, WEBMERCATOR_RADIUS, projection_code

TILE_SIZE = 256
DEFAULT_MAX_ZOOM = 42

WEBMERCATOR_HALF_WORLD = math.pi * WEBMERCATOR_RADIUS

PROJECTION_EXTENTS = {
    WEBMERCATOR: (-WEBMERCATOR_HALF_WORLD, -WEBMERCATOR_HALF_WORLD,
                  WEBMERCATOR_HALF_WORLD, WEBMERCATOR_HALF_WORLD),
    GEOGRAPHIC: (-180.0, -90.0, 180.0, 90.0),
}


def zoom_to_resolution_m(zoom: int, tile_size: int = TILE_SIZE) -> float:
    """Convert Web Mercator zoom level to resolution in meters per pixel.

    Parameters
    ----------
    zoom : int
        Web Mercator zoom level (slippy-map convention).
    tile_size : int, optional
        Tile edge in pixels, by default 256.

    Returns
    -------
    float
        Resolution in meters per pixel at the equator.
    """
    return (2 * math.pi * WEBMERCATOR_RADIUS) / (tile_size * 2**zoom)


def tile_size_pair(tile_size: Union[int, Sequence[int]]) -> Tuple[int, int]:
    """Return ``(width, height)`` for a square size or a size pair."""
    if isinstance(tile_size, (int, float)):
        return int(tile_size), int(tile_size)
    width, height = tile_size
    return int(width), int(height)


class TileGrid:
    """XYZ tile grid over a rectangular map extent.

    Parameters
    ----------
    extent : sequence of float
        (min_x, min_y, max_x, max_y) of the grid in map units.
    tile_size : int or tuple of int, optional
        Tile size in pixels, by default 256.
    min_zoom : int, optional
        Lowest zoom level, by default 0.
    max_zoom : int, optional
        Highest zoom level, by default 42.
    max_resolution : float, optional
        Resolution at ``min_zoom``. By default the resolution at which one
        tile covers the larger side of ``extent``.
    """

    def __init__(self, extent: Sequence[float], tile_size=TILE_SIZE,
                 min_zoom: int = 0, max_zoom: int = DEFAULT_MAX_ZOOM,
                 max_resolution: Optional[float] = None):
        self.extent = tuple(float(v) for v in extent)
        self.tile_size = tile_size_pair(tile_size)
        self.min_zoom = min_zoom
        self.max_zoom = max_zoom
        if max_resolution is None:
            tile_w, tile_h = self.tile_size
            max_resolution = max((self.extent[2] - self.extent[0]) / tile_w,
                                 (self.extent[3] - self.extent[1]) / tile_h)
        self.max_resolution = max_resolution
        self.origin = (self.extent[0], self.extent[3])

    def get_origin(self, zoom: int) -> Tuple[float, float]:
        """Top-left corner of tile (0, 0); the same for every zoom level."""
        return self.origin

    def get_resolution(self, zoom: int) -> float:
        """Map units per pixel at ``zoom``."""
        return self.max_resolution / 2 ** (zoom - self.min_zoom)

    def __repr__(self):
        return (f"TileGrid(extent={self.extent}, tile_size={self.tile_size}, "
                f"max_resolution={self.max_resolution})")


def xyz_grid(projection=WEBMERCATOR, tile_size=TILE_SIZE, extent=None,
             min_zoom=0, max_zoom=DEFAULT_MAX_ZOOM, max_resolution=None) -> TileGrid:
    """Create the standard XYZ tile grid of a projection.

    Parameters
    ----------
    projection : str or pyproj.CRS, optional
        Map projection, by default "EPSG:3857".
    tile_size : int or tuple of int, optional
        Tile size in pixels, by default 256.
    extent : sequence of float, optional
        Grid extent in map units. Required for projections other than
        EPSG:3857 and EPSG:4326.
    min_zoom, max_zoom : int, optional
        Zoom range of the grid.
    max_resolution : float, optional
        Resolution at ``min_zoom``.

    Returns
    -------
    TileGrid
        Tile grid whose zoom 0 tile covers the projection extent.

    Raises
    ------
    ValueError
        If no extent is given and none is known for ``projection``.
    """
    if extent is None:
        code = projection_code(projection)
        if code not in PROJECTION_EXTENTS:
            raise ValueError(f"No default extent known for projection {code}")
        extent = PROJECTION_EXTENTS[code]
    return TileGrid(extent, tile_size=tile_size, min_zoom=min_zoom,
                    max_zoom=max_zoom, max_resolution=max_resolution)
