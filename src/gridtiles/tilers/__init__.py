"""Grid sources rendering map tiles.

This package contains the shared tile sampling loop and its three
renderers: grayscale rasters, arrow glyphs and text labels.
"""

from .base import BaseGridSource
from .color_grid import ColorGrid
from .arrow_grid import ArrowGrid, ArrowData, ArrowStyle
from .label_grid import LabelGrid, LabelStyle
