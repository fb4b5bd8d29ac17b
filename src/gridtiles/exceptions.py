"""Exceptions raised by gridtiles."""


class GridTilesError(Exception):
    pass


class GridSourceError(GridTilesError, ValueError):
    """Malformed construction input for a grid source."""
    pass


class DrawingSurfaceError(GridTilesError):
    """The drawing surface of a glyph or text source could not be created."""
    pass
