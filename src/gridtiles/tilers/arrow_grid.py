"""Arrow glyph tiles from U/V vector components."""
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
class ArrowData:
    """Vector at one point. ``angle`` is in screen radians (y down)."""
    u: float
    v: float
    speed: float
    angle: float


@dataclass
class ArrowStyle:
    """Arrow drawing parameters; None means "use the default"."""
    color: Optional[str] = None
    length: Optional[float] = None
    head_size: Optional[float] = None
    stroke_width: Optional[float] = None
    shadow_color: Optional[str] = None
    shadow_blur: Optional[float] = None
    shadow_offset_x: Optional[float] = None
    shadow_offset_y: Optional[float] = None


DEFAULT_ARROW_STYLE = ArrowStyle(
    color="#000000",
    length=30,
    head_size=10,
    stroke_width=2,
    shadow_color="transparent",
    shadow_blur=0,
    shadow_offset_x=0,
    shadow_offset_y=0,
)

ArrowStyleFunction = Callable[[ArrowData], Union[ArrowStyle, dict]]


def arrow_data(u: float, v: float) -> ArrowData:
    # screen y points down, so north (v > 0) is a negative angle
    return ArrowData(u=u, v=v, speed=math.hypot(u, v), angle=math.atan2(-v, u))


class ArrowGrid(BaseGridSource):
    """Render U/V grid buffers as arrows pointing along the vector.

    Parameters
    ----------
    data : tuple of array-like
        (u, v) grid buffers.
    data_width, data_height : int
        Grid dimensions.
    data_extent : sequence of float
        Grid extent in the data projection.
    extremes : tuple or list of tuple
        One (min, max) pair shared by u and v, or one pair per component.
    speed_threshold : float, optional
        Vectors slower than this are not drawn, by default 0.
    style : ArrowStyle, dict or callable, optional
        Static style, or a function of ``ArrowData`` returning a style for
        every point.
    surface : DrawingSurface, optional
        Canvas to draw on; by default a new one of the tile size.
    spacing_factor : int, optional
        1 draws 16 arrows per tile axis, 5 a single arrow. By default 3.
    **kwargs
        Passed on to ``BaseGridSource``.
    """

    DEFAULT_SPACING_FACTOR = 3

    def __init__(self, data, data_width: int, data_height: int, data_extent,
                 extremes=None, speed_threshold: float = 0,
                 style: Union[ArrowStyle, dict, ArrowStyleFunction, None] = None,
                 surface: Optional[DrawingSurface] = None, **kwargs):
        if len(data) != 2:
            raise GridSourceError(f"ArrowGrid needs (u, v) buffers, got {len(data)}")
        if extremes is None:
            raise GridSourceError("ArrowGrid needs extremes to dequantize u and v")
        if is_range_list(extremes):
            if len(extremes) != 2:
                raise GridSourceError(
                    f"ArrowGrid needs one shared or two extremes pairs, got {len(extremes)}")
            self.ranges = [as_value_range(pair) for pair in extremes]
        else:
            self.ranges = [as_value_range(extremes)] * 2

        kwargs.setdefault("divisors", FINE_DIVISORS)
        super().__init__(list(data), data_width, data_height, data_extent,
                         extremes=extremes, **kwargs)

        self.speed_threshold = speed_threshold or 0
        self.default_style = DEFAULT_ARROW_STYLE
        if callable(style):
            self.style = style
        else:
            self.style = merge_style(style, DEFAULT_ARROW_STYLE)

        self.surface = surface or DrawingSurface(self.tile_w, self.tile_h)
        self._length = DEFAULT_ARROW_STYLE.length
        self._head_size = DEFAULT_ARROW_STYLE.head_size

    def _apply_style(self, style: ArrowStyle):
        surface = self.surface
        surface.set_stroke(style.color, style.stroke_width)
        surface.set_shadow(style.shadow_color, style.shadow_blur,
                           style.shadow_offset_x, style.shadow_offset_y)
        self._length = style.length
        self._head_size = style.head_size

    def begin_tile(self):
        self.surface.clear()
        if not callable(self.style):
            self._apply_style(self.style)

    def emit(self, i: int, j: int, values: List[float]) -> bool:
        u = dequantize(values[0], self.ranges[0])
        v = dequantize(values[1], self.ranges[1])
        vector = arrow_data(u, v)

        if vector.speed < self.speed_threshold:
            return False

        if callable(self.style):
            self._apply_style(merge_style(self.style(vector), self.default_style))

        half_len = self._length / 2
        head = self._head_size
        surface = self.surface
        with surface.saved():
            surface.translate(i + self.half_step_x, j + self.half_step_y)
            surface.rotate(vector.angle)
            surface.stroke_path([
                [(-half_len, 0), (half_len, 0)],
                [(half_len - head, -head / 2), (half_len, 0), (half_len - head, head / 2)],
            ])
        return True

    def end_tile(self) -> np.ndarray:
        return self.surface.read_pixels()

    def vector_at(self, coordinate) -> Optional[ArrowData]:
        """Vector at a map coordinate, or None for missing data."""
        params = self.query_params(coordinate)
        if params is None:
            return None
        u_raw = interpolate_grid_value(self.channels[0], params, self.nodata)
        v_raw = interpolate_grid_value(self.channels[1], params, self.nodata)
        if math.isnan(u_raw) or math.isnan(v_raw):
            return None
        return arrow_data(dequantize(u_raw, self.ranges[0]),
                          dequantize(v_raw, self.ranges[1]))
