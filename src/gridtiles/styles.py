"""Style helpers.

``create_heatmap_style`` builds the declarative colour ramp expression a
WebGL tile layer evaluates on the gray levels of a ``ColorGrid``.
``merge_style`` resolves the partial glyph/label style records.
"""
from dataclasses import fields, replace
from typing import List, Sequence, Tuple, Union

from .utils import clamp


def create_heatmap_style(stops: Sequence[Tuple[float, str]], range: Tuple[float, float],
                         channel: int = 0, default_color: str = "transparent") -> dict:
    """Create a colour ramp style over one band of a raster tile.

    Parameters
    ----------
    stops : sequence of (value, color)
        Colour stops in physical units.
    range : tuple of float
        (min, max) value range the band was quantized with.
    channel : int, optional
        Zero based channel index, by default 0.
    default_color : str, optional
        Colour at band value 0 (no data), by default "transparent".

    Returns
    -------
    dict
        ``{"color": ["interpolate", ["linear"], ["band", n], ...]}`` with
        stop positions normalised to [0, 1]. A zero span range puts every
        stop at 0.
    """
    vmin, vmax = range
    span = vmax - vmin

    normalized_stops: List[Union[float, str]] = []
    for value, color in stops:
        position = 0 if span == 0 else (value - vmin) / span
        normalized_stops.extend([clamp(position, 0, 1), color])

    # bands are 1-based
    band_index = channel + 1

    return {
        "color": [
            "interpolate",
            ["linear"],
            ["band", band_index],
            0,
            default_color,
            *normalized_stops,
        ],
    }


def merge_style(style, defaults):
    """Fill the unset fields of a style record from ``defaults``.

    Parameters
    ----------
    style : dataclass instance, dict or None
        Partial style. Dict keys must be field names of ``defaults``.
    defaults : dataclass instance
        Complete style record.

    Returns
    -------
    dataclass instance
        New record of the type of ``defaults``.
    """
    if style is None:
        return defaults
    if isinstance(style, dict):
        style = type(defaults)(**style)
    overrides = {f.name: getattr(style, f.name) for f in fields(style)
                 if getattr(style, f.name) is not None}
    return replace(defaults, **overrides)
