"""Numeric helpers shared by the grid sources.

Values are stored as bytes in the grid buffers; ``quantize`` and
``dequantize`` map between a physical value range and [0, 255].
"""
import math

from . import config
settings = config.settings


def vprint(text, level=0):
    """Print text if verbose mode is enabled in the settings.

    Parameters
    ----------
    text : str
        Text to print.
    level : int, optional
        Minimum ``verbose_level`` setting required to print, by default 0.
    """
    if settings.get("verbose", False) and settings.get("verbose_level", 0) >= level:
        print(text)


def clamp(value, min_value, max_value):
    """Clamp ``value`` into the closed interval [min_value, max_value]."""
    return max(min_value, min(max_value, value))


def round_half_up(value) -> int:
    """Round to the nearest integer, halves toward +infinity (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def quantize(value, value_range):
    """Map a physical value to the byte scale of ``value_range``.

    Parameters
    ----------
    value : float
        Physical value.
    value_range : tuple of float
        (min, max) of the physical range.

    Returns
    -------
    float
        Unrounded byte value, 0 at ``min`` and 255 at ``max``. A zero span
        range returns 0.0.
    """
    vmin, vmax = value_range
    span = vmax - vmin
    if span == 0:
        return 0.0
    return ((value - vmin) * 255) / span


def dequantize(byte, value_range):
    """Map a byte value back to the physical scale of ``value_range``.

    Parameters
    ----------
    byte : float
        Byte value, possibly fractional after interpolation.
    value_range : tuple of float
        (min, max) of the physical range.

    Returns
    -------
    float
        Physical value. A zero span range always returns its ``min``.
    """
    vmin, vmax = value_range
    span = vmax - vmin
    if span == 0:
        return float(vmin)
    return (byte * span) / 255 + vmin


def interpolate_grid_value(grid, params, nodata=None):
    """Bilinearly interpolate one grid buffer.

    Parameters
    ----------
    grid : numpy.ndarray
        Flat, row-major grid buffer.
    params : gridtiles.factories.InterpolationParams
        Neighbour indices and fractional offsets for the sample point.
    nodata : float, optional
        Sentinel value marking missing data in ``grid``.

    Returns
    -------
    float
        The interpolated value, or NaN when any of the four neighbours is
        missing.
    """
    q11 = float(grid[params.i11])
    q21 = float(grid[params.i21])
    q12 = float(grid[params.i12])
    q22 = float(grid[params.i22])

    if nodata is not None and nodata in (q11, q21, q12, q22):
        return math.nan

    rx = params.rx
    ry = params.ry
    r1 = (1 - rx) * q11 + rx * q21
    r2 = (1 - rx) * q12 + rx * q22

    # a NaN neighbour survives a zero weight, so holes are never blended over
    return (1 - ry) * r1 + ry * r2
