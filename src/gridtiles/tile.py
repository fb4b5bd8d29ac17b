"""Write slippy map tiles of a grid source to disk.

Tiles are rendered with the source's own sampling loop and saved as
``<output_dir>/<z>/<x>/<y>.png``. Grayscale raster tiles can be coloured
with a matplotlib colormap on the way.
"""
import logging
import pathlib
from typing import List, Optional, Sequence

import matplotlib
import mercantile
import numpy as np
from matplotlib.colors import Normalize
from PIL import Image
from tqdm import tqdm

from .exceptions import GridTilesError
from .factories import GEOGRAPHIC, WEBMERCATOR, projection_code
from .utils import vprint
from . import config

settings = config.settings
logger = logging.getLogger(__name__)

MERCATOR_MAX_LAT = 85.0511287798066


def tiles_for_extent(extent: Sequence[float], zoom: int) -> List[mercantile.Tile]:
    """Get all tiles that intersect with a geographic extent.

    Parameters
    ----------
    extent : sequence of float
        (min_lon, min_lat, max_lon, max_lat); min_lon > max_lon crosses the
        antimeridian.
    zoom : int
        Zoom level for tile calculation.

    Returns
    -------
    list of mercantile.Tile
        Tiles covering the extent, latitudes clipped to Web Mercator.
    """
    west, south, east, north = extent
    south = max(south, -MERCATOR_MAX_LAT)
    north = min(north, MERCATOR_MAX_LAT)
    return list(mercantile.tiles(west, south, east, north, zooms=zoom))


def colorize(buffer: np.ndarray, tile_w: int, tile_h: int, cmap="viridis",
             fill_empty=(0, 0, 0, 0)) -> np.ndarray:
    """Colour a grayscale raster tile.

    Parameters
    ----------
    buffer : numpy.ndarray
        Flat RGBA tile from ``ColorGrid.render_tile``.
    tile_w, tile_h : int
        Tile size in pixels.
    cmap : str or matplotlib.colors.Colormap, optional
        Colormap applied to the gray level, by default 'viridis'.
    fill_empty : tuple of int, optional
        RGBA colour of pixels without data, by default (0,0,0,0).

    Returns
    -------
    numpy.ndarray
        ``(tile_h, tile_w, 4)`` uint8 array.
    """
    pixels = np.asarray(buffer, dtype=np.uint8).reshape(tile_h, tile_w, 4)
    mask = pixels[..., 3] == 0
    if isinstance(cmap, str):
        cmap = matplotlib.colormaps[cmap]
    norm = Normalize(vmin=0, vmax=255)
    rgba = (cmap(norm(pixels[..., 0].astype(np.float32))) * 255).astype(np.uint8)
    rgba[mask] = np.array(fill_empty, dtype=np.uint8)
    return rgba


def render_tiles(source, output_dir=None, zoom_levels: Optional[Sequence[int]] = None,
                 cmap=None, fill_empty=(0, 0, 0, 0)) -> int:
    """Render and save every tile covering the extent of a source.

    Parameters
    ----------
    source : gridtiles.tilers.BaseGridSource
        Source with an EPSG:3857 map projection and an EPSG:4326 extent.
    output_dir : str or pathlib.Path, optional
        Output directory. Defaults to ``settings.tile_dir``.
    zoom_levels : sequence of int, optional
        Zoom levels to render. Defaults to ``settings.zoom_levels``.
    cmap : str or matplotlib.colors.Colormap, optional
        Colour the gray levels of raster tiles with this colormap.
    fill_empty : tuple of int, optional
        RGBA colour for pixels without data when colouring.

    Returns
    -------
    int
        Number of tiles written.

    Raises
    ------
    GridTilesError
        If the source is not in the Web Mercator / geographic setup the
        slippy tile scheme assumes.
    """
    if projection_code(source.projection) != WEBMERCATOR:
        raise GridTilesError(f"Slippy tiles need an {WEBMERCATOR} source, "
                             f"got {projection_code(source.projection)}")
    if projection_code(source.data_projection) != GEOGRAPHIC:
        raise GridTilesError(f"Slippy tiles need a {GEOGRAPHIC} data extent, "
                             f"got {projection_code(source.data_projection)}")

    output_path = pathlib.Path(output_dir or settings.get("tile_dir", "./tiles"))
    output_path.mkdir(parents=True, exist_ok=True)
    if zoom_levels is None:
        zoom_levels = settings.get("zoom_levels", [0, 1, 2, 3])

    tiles_by_zoom = {z: tiles_for_extent(source.data_extent, z) for z in zoom_levels}
    total_tiles = sum(len(tiles) for tiles in tiles_by_zoom.values())

    written = 0
    with tqdm(total=total_tiles, desc="Rendering tiles", unit="tile") as pbar:
        for zoom, tiles in tiles_by_zoom.items():
            vprint(f"\nGenerating tiles for zoom level {zoom}")
            vprint(f"Total tiles to generate: {len(tiles)}")
            for tile in tiles:
                path = output_path / str(tile.z) / str(tile.x)
                path.mkdir(parents=True, exist_ok=True)

                buffer = source.render_tile(tile.z, tile.x, tile.y)
                if cmap is not None:
                    rgba = colorize(buffer, source.tile_w, source.tile_h, cmap, fill_empty)
                else:
                    rgba = buffer.reshape(source.tile_h, source.tile_w, 4)
                Image.fromarray(rgba).save(path / f"{tile.y}.png")
                written += 1
                pbar.update(1)
            vprint(f"Completed zoom level {zoom}")

    logger.info(f"Wrote {written} tiles to {output_path}")
    return written
