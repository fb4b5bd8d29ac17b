"""Text label tiles from one or more grid channels."""
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

import numpy as np

from ..exceptions import GridSourceError
from ..styles import merge_style
from ..surface import DrawingSurface
from ..utils import dequantize, interpolate_grid_value
from .base import FINE_DIVISORS, BaseGridSource, as_value_range, is_range_list


@dataclass
class LabelStyle:
    """Label drawing parameters; None means "use the default".

    ``font_size`` is a number of pixels or a CSS size string such as
    ``"12px"``. ``stroke`` is the outline colour; no outline is drawn when it
    is unset.
    """
    font_size: Optional[Union[int, float, str]] = None
    font_family: Optional[str] = None
    font_weight: Optional[Union[int, str]] = None
    font_style: Optional[str] = None
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: Optional[float] = None
    shadow_color: Optional[str] = None
    shadow_blur: Optional[float] = None
    shadow_offset_x: Optional[float] = None
    shadow_offset_y: Optional[float] = None
    text_align: Optional[str] = None
    text_baseline: Optional[str] = None


BASE_LABEL_STYLE = LabelStyle(
    font_size="10px",
    font_family="sans-serif",
    font_weight="normal",
    font_style="normal",
    fill="#000000",
    stroke=None,
    stroke_width=3,
    shadow_color="transparent",
    shadow_blur=0,
    shadow_offset_x=0,
    shadow_offset_y=0,
    text_align="center",
    text_baseline="middle",
)

LabelStyleFunction = Callable[..., Union[LabelStyle, dict]]


def default_text(*values: float) -> str:
    return " ".join(f"{value:.1f}" for value in values)


def build_font(style: LabelStyle) -> str:
    """CSS font shorthand ``"<style> <weight> <size> <family>"`` of a style."""
    size = style.font_size
    size = f"{size}px" if isinstance(size, (int, float)) else size
    return f"{style.font_style} {style.font_weight} {size} {style.font_family}"


class LabelGrid(BaseGridSource):
    """Render grid values as text labels.

    Parameters
    ----------
    data : sequence of array-like
        One grid buffer per channel.
    data_width, data_height : int
        Grid dimensions.
    data_extent : sequence of float
        Grid extent in the data projection.
    extremes : tuple or list of tuple
        One (min, max) pair shared by all channels, or one pair per
        channel.
    text : callable, optional
        ``text(*values) -> str``; an empty result draws nothing. By default
        every value with one decimal, separated by spaces.
    style : LabelStyle, dict or callable, optional
        Static style, or a function of the channel values returning a style
        for every label.
    surface : DrawingSurface, optional
        Canvas to draw on; by default a new one of the tile size.
    spacing_factor : int, optional
        1 draws 16 labels per tile axis, 5 a single label. By default 4.
    **kwargs
        Passed on to ``BaseGridSource``.
    """

    DEFAULT_SPACING_FACTOR = 4

    def __init__(self, data, data_width: int, data_height: int, data_extent,
                 extremes=None, text: Optional[Callable[..., Optional[str]]] = None,
                 style: Union[LabelStyle, dict, LabelStyleFunction, None] = None,
                 surface: Optional[DrawingSurface] = None, **kwargs):
        if extremes is None:
            raise GridSourceError("LabelGrid needs extremes to dequantize its channels")
        if is_range_list(extremes):
            if len(extremes) != len(data):
                raise GridSourceError(
                    f"{len(extremes)} extremes pairs given for {len(data)} channels")
            self.ranges = [as_value_range(pair) for pair in extremes]
        else:
            self.ranges = [as_value_range(extremes)] * len(data)

        kwargs.setdefault("divisors", FINE_DIVISORS)
        super().__init__(list(data), data_width, data_height, data_extent,
                         extremes=extremes, **kwargs)

        self.text_formatter = text or default_text
        self.base_style = BASE_LABEL_STYLE
        if callable(style):
            self.style = style
        else:
            self.style = merge_style(style, BASE_LABEL_STYLE)

        self.surface = surface or DrawingSurface(self.tile_w, self.tile_h)
        self._last_font = None

        if not callable(self.style):
            self._apply_static_style(self.style)

    def _apply_static_style(self, style: LabelStyle):
        surface = self.surface
        surface.set_text_layout(style.text_align, style.text_baseline)
        if style.stroke:
            surface.set_stroke(style.stroke, style.stroke_width)
        surface.set_shadow(style.shadow_color, style.shadow_blur,
                           style.shadow_offset_x, style.shadow_offset_y)
        surface.set_fill(style.fill)
        surface.set_font(build_font(style))

    def _apply_dynamic_style(self, style: LabelStyle) -> bool:
        surface = self.surface
        font = build_font(style)
        if font != self._last_font:
            surface.set_font(font)
            self._last_font = font

        surface.set_fill(style.fill)
        surface.set_text_layout(style.text_align, style.text_baseline)
        surface.set_shadow(style.shadow_color, style.shadow_blur,
                           style.shadow_offset_x, style.shadow_offset_y)
        if style.stroke:
            surface.set_stroke(style.stroke, style.stroke_width)
            return True
        return False

    def begin_tile(self):
        self.surface.clear()
        self._last_font = self.surface.font_string

    def emit(self, i: int, j: int, values: List[float]) -> bool:
        values = [dequantize(raw, value_range) for raw, value_range in zip(values, self.ranges)]

        label = self.text_formatter(*values)
        if not label:
            return False

        if callable(self.style):
            style = merge_style(self.style(*values), self.base_style)
            has_stroke = self._apply_dynamic_style(style)
        else:
            has_stroke = bool(self.style.stroke)

        x = i + self.half_step_x
        y = j + self.half_step_y
        if has_stroke:
            self.surface.stroke_text(label, x, y)
        self.surface.fill_text(label, x, y)
        return True

    def end_tile(self) -> np.ndarray:
        return self.surface.read_pixels()

    def values_at(self, coordinate) -> List[float]:
        """Dequantized channel values at a map coordinate.

        Missing channels are NaN; every channel is NaN outside the extent.
        """
        params = self.query_params(coordinate)
        if params is None:
            return [math.nan] * len(self.channels)
        values = []
        for grid, value_range in zip(self.channels, self.ranges):
            raw = interpolate_grid_value(grid, params, self.nodata)
            values.append(math.nan if math.isnan(raw) else dequantize(raw, value_range))
        return values
