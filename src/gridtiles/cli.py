"""Command-line interface for gridtiles.

Render packed grid textures (one quantized field per image channel) as
slippy map tiles, or query the value of a field at a coordinate, using
the Typer framework.
"""
import pathlib
from typing import List, Optional

import typer

from . import config
from .exceptions import GridTilesError
from .readers import decode_image
from .tilers import ArrowGrid, ColorGrid, LabelGrid
from .tile import render_tiles

app = typer.Typer(
    help="Render gridded model fields as slippy tiles: grayscale rasters, arrows or labels.",
    no_args_is_help=True,
)

WORLD = "-180,-90,180,90"


def parse_floats(text: str, count: int, name: str):
    try:
        values = tuple(float(part) for part in text.split(","))
    except ValueError:
        raise typer.BadParameter(f"{name} must be {count} comma separated numbers, got '{text}'")
    if len(values) != count:
        raise typer.BadParameter(f"{name} must be {count} comma separated numbers, got '{text}'")
    return values


def parse_extremes(text: Optional[str]):
    """Parse ``"min,max"`` or ``"min,max;min,max;..."`` (one pair per channel)."""
    if text is None:
        return None
    pairs = [parse_floats(part, 2, "extremes") for part in text.split(";")]
    return pairs[0] if len(pairs) == 1 else pairs


def load_channels(image: pathlib.Path, channels: str):
    decoded = decode_image(image)
    try:
        buffers = [decoded.channel(name.strip()) for name in channels.split(",")]
    except ValueError as err:
        raise typer.BadParameter(str(err))
    return buffers, decoded.width, decoded.height


def _write(source, output_dir, zoom, cmap=None):
    count = render_tiles(source, output_dir, zoom_levels=zoom or None, cmap=cmap)
    typer.echo(f"Wrote {count} tiles to {output_dir}")


@app.callback()
def main(env: str = typer.Option("DEFAULT", help="Settings environment to use.")):
    """Grid data slippy tiles."""
    if env != "DEFAULT":
        config.change_env(env)


@app.command()
def color(
    image: pathlib.Path = typer.Argument(..., exists=True, help="Packed grid image."),
    output_dir: pathlib.Path = typer.Argument(..., help="Tile output directory."),
    extent: str = typer.Option(WORLD, help="Grid extent as min_lon,min_lat,max_lon,max_lat."),
    channel: str = typer.Option("r", help="Image channel holding the field."),
    zoom: Optional[List[int]] = typer.Option(None, "--zoom", "-z", help="Zoom level (repeatable)."),
    spacing: Optional[int] = typer.Option(None, help="Spacing factor 1 (dense) to 5."),
    cmap: Optional[str] = typer.Option(None, help="Matplotlib colormap for the gray levels."),
    nodata: Optional[float] = typer.Option(None, help="Byte value marking missing data."),
):
    """Render grayscale raster tiles from one image channel."""
    buffers, width, height = load_channels(image, channel)
    try:
        source = ColorGrid(buffers[0], width, height, parse_floats(extent, 4, "extent"),
                           spacing_factor=spacing, nodata=nodata)
        _write(source, output_dir, zoom, cmap=cmap)
    except GridTilesError as err:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(code=1)


@app.command()
def arrows(
    image: pathlib.Path = typer.Argument(..., exists=True, help="Packed grid image."),
    output_dir: pathlib.Path = typer.Argument(..., help="Tile output directory."),
    extremes: str = typer.Option(..., help="u/v value range 'min,max' or 'min,max;min,max'."),
    extent: str = typer.Option(WORLD, help="Grid extent as min_lon,min_lat,max_lon,max_lat."),
    channels: str = typer.Option("r,g", help="Image channels holding u and v."),
    speed_threshold: float = typer.Option(0.0, help="Do not draw slower vectors."),
    zoom: Optional[List[int]] = typer.Option(None, "--zoom", "-z", help="Zoom level (repeatable)."),
    spacing: Optional[int] = typer.Option(None, help="Spacing factor 1 (dense) to 5."),
):
    """Render arrow tiles from two image channels."""
    buffers, width, height = load_channels(image, channels)
    try:
        source = ArrowGrid(buffers, width, height, parse_floats(extent, 4, "extent"),
                           extremes=parse_extremes(extremes),
                           speed_threshold=speed_threshold, spacing_factor=spacing)
        _write(source, output_dir, zoom)
    except GridTilesError as err:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(code=1)


@app.command()
def labels(
    image: pathlib.Path = typer.Argument(..., exists=True, help="Packed grid image."),
    output_dir: pathlib.Path = typer.Argument(..., help="Tile output directory."),
    extremes: str = typer.Option(..., help="Value range 'min,max', or one per channel separated by ';'."),
    extent: str = typer.Option(WORLD, help="Grid extent as min_lon,min_lat,max_lon,max_lat."),
    channels: str = typer.Option("r", help="Image channels to label, e.g. 'r,g'."),
    zoom: Optional[List[int]] = typer.Option(None, "--zoom", "-z", help="Zoom level (repeatable)."),
    spacing: Optional[int] = typer.Option(None, help="Spacing factor 1 (dense) to 5."),
):
    """Render text label tiles from one or more image channels."""
    buffers, width, height = load_channels(image, channels)
    try:
        source = LabelGrid(buffers, width, height, parse_floats(extent, 4, "extent"),
                           extremes=parse_extremes(extremes), spacing_factor=spacing)
        _write(source, output_dir, zoom)
    except GridTilesError as err:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(code=1)


@app.command()
def query(
    image: pathlib.Path = typer.Argument(..., exists=True, help="Packed grid image."),
    lon: float = typer.Argument(..., help="Longitude in degrees."),
    lat: float = typer.Argument(..., help="Latitude in degrees."),
    extent: str = typer.Option(WORLD, help="Grid extent as min_lon,min_lat,max_lon,max_lat."),
    channels: str = typer.Option("r", help="Image channels to query, e.g. 'r,g'."),
    extremes: Optional[str] = typer.Option(None, help="Value range(s); raw bytes when omitted."),
):
    """Print the interpolated value of each channel at LON LAT."""
    buffers, width, height = load_channels(image, channels)
    ranges = parse_extremes(extremes)
    if ranges is None or not isinstance(ranges, list):
        ranges = [ranges] * len(buffers)
    if len(ranges) != len(buffers):
        raise typer.BadParameter(f"{len(ranges)} extremes pairs given for {len(buffers)} channels")
    try:
        extent_values = parse_floats(extent, 4, "extent")
        values = [
            ColorGrid(buffer, width, height, extent_values, extremes=value_range,
                      projection="EPSG:4326", data_projection="EPSG:4326").value_at((lon, lat))
            for buffer, value_range in zip(buffers, ranges)
        ]
    except GridTilesError as err:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(code=1)
    typer.echo(" ".join("nan" if value is None else f"{value:.4f}" for value in values))
