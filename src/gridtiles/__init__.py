"""Render gridded scalar and vector fields as map tiles.

Grid sources sample quantized byte buffers at the pixels of a map tile
through a coordinate transform and bilinear interpolation, and encode the
sampled values as grayscale rasters, arrow glyphs or text labels.
"""

from .exceptions import DrawingSurfaceError, GridSourceError, GridTilesError
from .tilers import ArrowData, ArrowGrid, ArrowStyle, ColorGrid, LabelGrid, LabelStyle
from .utils import clamp, dequantize, quantize

__all__ = [
    "ArrowData",
    "ArrowGrid",
    "ArrowStyle",
    "ColorGrid",
    "DrawingSurfaceError",
    "GridSourceError",
    "GridTilesError",
    "LabelGrid",
    "LabelStyle",
    "clamp",
    "dequantize",
    "quantize",
]
