"""Factories for the per-sample-point functions of a grid source.

Each factory is called once when a source is constructed and returns a
small closure that the tile loop calls for every sample point, so the
per-point work is kept to plain arithmetic.
"""
import math
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from pyproj import CRS, Transformer

from .utils import clamp

WEBMERCATOR_RADIUS = 6378137.0
GEOGRAPHIC = "EPSG:4326"
WEBMERCATOR = "EPSG:3857"


def projection_code(projection) -> str:
    """Return a comparable identifier such as ``"EPSG:3857"``.

    Parameters
    ----------
    projection : str or pyproj.CRS
        Projection identifier or CRS object.

    Returns
    -------
    str
        Upper-cased authority code when one is known, otherwise the CRS
        string as given.
    """
    if isinstance(projection, CRS):
        authority = projection.to_authority()
        if authority is not None:
            return ":".join(authority).upper()
        return projection.to_string()
    return str(projection).upper()


def _wrap_longitude(lon: float) -> float:
    if lon < -180 or lon > 180:
        return (lon + 180) % 360 - 180
    return lon


def _webmercator_to_lonlat(x: float, y: float) -> Tuple[float, float]:
    lon = math.degrees(x / WEBMERCATOR_RADIUS)
    lat = math.degrees(2 * math.atan(math.exp(y / WEBMERCATOR_RADIUS)) - math.pi / 2)
    return _wrap_longitude(lon), lat


def create_transform_func(source_projection, data_projection) -> Callable[[float, float], Tuple[float, float]]:
    """Create the map-to-data coordinate transform of a source.

    Parameters
    ----------
    source_projection : str or pyproj.CRS
        Projection of the map (tile) coordinates.
    data_projection : str or pyproj.CRS
        Projection of the grid extent.

    Returns
    -------
    callable
        ``f(x, y) -> (x', y')``. Identical projections return the pair
        unchanged; a geographic data projection returns longitudes wrapped
        into [-180, 180].
    """
    source_code = projection_code(source_projection)
    data_code = projection_code(data_projection)

    if source_code == data_code:
        return lambda x, y: (x, y)

    if data_code == GEOGRAPHIC:
        if source_code == WEBMERCATOR:
            return _webmercator_to_lonlat

        transformer = Transformer.from_crs(source_projection, GEOGRAPHIC, always_xy=True)

        def to_lonlat(x, y):
            lon, lat = transformer.transform(x, y)
            return _wrap_longitude(lon), lat

        return to_lonlat

    transformer = Transformer.from_crs(source_projection, data_projection, always_xy=True)
    return lambda x, y: transformer.transform(x, y)


def create_check_extent_func(extent: Sequence[float]) -> Callable[[float, float], bool]:
    """Create a point-in-extent predicate.

    An extent whose max longitude is smaller than its min longitude crosses
    the antimeridian; valid longitudes are then ``min_lon..180`` and
    ``-180..max_lon``.

    Parameters
    ----------
    extent : sequence of float
        (min_lon, min_lat, max_lon, max_lat).

    Returns
    -------
    callable
        ``f(lon, lat) -> bool``.
    """
    min_x, min_y, max_x, max_y = extent

    if max_x < min_x:
        return lambda lon, lat: (min_y <= lat <= max_y) and (lon >= min_x or lon <= max_x)

    return lambda lon, lat: min_x <= lon <= max_x and min_y <= lat <= max_y


@dataclass
class InterpolationParams:
    """Bilinear interpolation parameters for one sample point.

    ``i11``/``i21`` are the left/right neighbours on the lower-latitude row
    and ``i12``/``i22`` the left/right neighbours on the upper row, as flat
    buffer indices. ``rx`` and ``ry`` are the fractional offsets inside the
    cell.

    A source keeps one instance as scratch space for its tile loop; it is
    overwritten by every sample point.
    """
    i11: int = 0
    i12: int = 0
    i21: int = 0
    i22: int = 0
    rx: float = 0.0
    ry: float = 0.0


def create_coordinate_calculator(width: int, height: int, extent: Sequence[float]
                                 ) -> Callable[..., InterpolationParams]:
    """Create the interpolation parameter calculator of a grid.

    Parameters
    ----------
    width : int
        Number of grid columns.
    height : int
        Number of grid rows. Row 0 of the buffer is the northernmost row.
    extent : sequence of float
        (min_lon, min_lat, max_lon, max_lat), possibly crossing the
        antimeridian.

    Returns
    -------
    callable
        ``f(lon, lat, out=None) -> InterpolationParams``. When ``out`` is
        given it is filled in place and returned; otherwise a new record is
        created.
    """
    min_x, min_y, max_x, max_y = extent
    wraps = max_x < min_x

    dx = 180 - min_x + (180 + max_x) if wraps else abs(max_x - min_x)
    dy = abs(max_y - min_y)

    part_x = dx / width or 1
    part_y = dy / height or 1

    last_col = width - 1
    last_row = height - 1

    def calculate(lon: float, lat: float, out: Optional[InterpolationParams] = None) -> InterpolationParams:
        x = lon + 360 if wraps and lon <= max_x else lon

        x_cell = (x - min_x) / part_x
        y_cell = (lat - min_y) / part_y

        x_base = math.floor(x_cell)
        y_floor = math.floor(y_cell)
        y_ceil = math.ceil(y_cell)

        x0 = clamp(x_base, 0, last_col)
        x1 = clamp(x_base + 1, 0, last_col)

        # latitude grows upward, buffer rows grow downward
        y0 = clamp(last_row - y_ceil, 0, last_row)
        y1 = clamp(last_row - y_floor, 0, last_row)

        if out is None:
            out = InterpolationParams()
        out.i11 = x0 + y1 * width
        out.i12 = x0 + y0 * width
        out.i21 = x1 + y1 * width
        out.i22 = x1 + y0 * width
        out.rx = x_cell - x_base
        out.ry = y_cell - y_floor
        return out

    return calculate
