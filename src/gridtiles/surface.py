"""Pillow backed drawing surface for glyph and text tiles.

The surface mirrors the small subset of a 2D canvas API the glyph and
label sources need: pen state (stroke, fill, shadow, font), a save/restore
stack of affine transforms, path stroking, text drawing and pixel read
back.
"""
import logging
import math
import re
from contextlib import contextmanager
from functools import lru_cache
from typing import Iterable, Sequence, Tuple

import numpy as np
from PIL import Image, ImageColor, ImageDraw, ImageFilter, ImageFont

from .exceptions import DrawingSurfaceError

logger = logging.getLogger(__name__)

TRANSPARENT = (0, 0, 0, 0)
IDENTITY = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

FAMILY_FILES = {
    "sans-serif": "DejaVuSans",
    "serif": "DejaVuSerif",
    "monospace": "DejaVuSansMono",
}
BOLD_WEIGHTS = {"bold", "bolder", "600", "700", "800", "900"}
_SIZE_RE = re.compile(r"^(\d+(?:\.\d+)?)(px|pt)?$")


def parse_color(color) -> Tuple[int, int, int, int]:
    """Convert a CSS colour string or RGB(A) tuple to an RGBA tuple.

    ``None`` and ``"transparent"`` give fully transparent black.
    """
    if color is None:
        return TRANSPARENT
    if isinstance(color, str):
        if color.strip().lower() == "transparent":
            return TRANSPARENT
        return ImageColor.getcolor(color, "RGBA")
    color = tuple(int(c) for c in color)
    if len(color) == 3:
        return color + (255,)
    return color


def parse_font(font_string: str):
    """Split a CSS font shorthand into (size_px, family, bold, italic).

    Parameters
    ----------
    font_string : str
        e.g. ``"normal bold 12px sans-serif"``.
    """
    size = 10.0
    bold = italic = False
    tokens = font_string.split()
    family_tokens = []
    for n, token in enumerate(tokens):
        match = _SIZE_RE.match(token)
        if match:
            size = float(match.group(1))
            if match.group(2) == "pt":
                size = size * 4 / 3
            family_tokens = tokens[n + 1:]
            break
        if token.lower() in BOLD_WEIGHTS:
            bold = True
        elif token.lower() in ("italic", "oblique"):
            italic = True
    family = " ".join(family_tokens).split(",")[0].strip().strip("'\"") or "sans-serif"
    return size, family, bold, italic


@lru_cache(maxsize=32)
def load_font(font_string: str):
    """Load the Pillow font for a CSS font shorthand.

    Generic family names map to the DejaVu fonts; anything else is tried as
    a font file name. Falls back to Pillow's bundled default font at the
    requested size.
    """
    size, family, bold, italic = parse_font(font_string)
    base = FAMILY_FILES.get(family.lower(), family)
    suffix = "-Bold" if bold else ""
    if italic:
        suffix = suffix + "Oblique" if bold else "-Oblique"
    candidates = [f"{base}{suffix}.ttf", f"{base}.ttf", family]
    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    logger.debug(f"No font file found for '{font_string}', using Pillow default")
    return ImageFont.load_default(size=size)


class DrawingSurface:
    """RGBA canvas of one tile.

    Parameters
    ----------
    width : int
        Canvas width in pixels.
    height : int
        Canvas height in pixels.

    Raises
    ------
    DrawingSurfaceError
        If the backing image cannot be created.
    """

    def __init__(self, width: int, height: int):
        try:
            self.image = Image.new("RGBA", (width, height), TRANSPARENT)
        except (ValueError, TypeError, MemoryError) as err:
            raise DrawingSurfaceError(
                f"Cannot create a {width}x{height} drawing surface") from err
        self.width = width
        self.height = height
        self.draw = ImageDraw.Draw(self.image)

        self.stroke_color = (0, 0, 0, 255)
        self.line_width = 1.0
        self.fill_color = (0, 0, 0, 255)
        self.shadow_color = TRANSPARENT
        self.shadow_blur = 0.0
        self.shadow_offset = (0.0, 0.0)
        self.font_string = "normal normal 10px sans-serif"
        self.font = load_font(self.font_string)
        self.text_align = "center"
        self.text_baseline = "middle"

        self._matrix = IDENTITY
        self._stack = []

    # -- pen state ---------------------------------------------------------

    def set_stroke(self, color, width=None):
        self.stroke_color = parse_color(color)
        if width is not None:
            self.line_width = float(width)

    def set_fill(self, color):
        self.fill_color = parse_color(color)

    def set_shadow(self, color, blur=0, offset_x=0, offset_y=0):
        self.shadow_color = parse_color(color)
        self.shadow_blur = float(blur)
        self.shadow_offset = (float(offset_x), float(offset_y))

    def set_font(self, font_string: str):
        if font_string != self.font_string:
            self.font = load_font(font_string)
            self.font_string = font_string

    def set_text_layout(self, align="center", baseline="middle"):
        self.text_align = align
        self.text_baseline = baseline

    # -- transform stack ---------------------------------------------------

    def save(self):
        self._stack.append(self._matrix)

    def restore(self):
        if self._stack:
            self._matrix = self._stack.pop()

    @contextmanager
    def saved(self):
        """Scope transform changes to a ``with`` block."""
        self.save()
        try:
            yield self
        finally:
            self.restore()

    def translate(self, tx: float, ty: float):
        a, b, c, d, e, f = self._matrix
        self._matrix = (a, b, c, d, e + a * tx + c * ty, f + b * tx + d * ty)

    def rotate(self, angle: float):
        """Rotate the frame by ``angle`` radians, clockwise on screen."""
        cos, sin = math.cos(angle), math.sin(angle)
        a, b, c, d, e, f = self._matrix
        self._matrix = (a * cos + c * sin, b * cos + d * sin,
                        c * cos - a * sin, d * cos - b * sin, e, f)

    def apply(self, x: float, y: float) -> Tuple[float, float]:
        """Map a point of the current frame to pixel coordinates."""
        a, b, c, d, e, f = self._matrix
        return a * x + c * y + e, b * x + d * y + f

    # -- drawing -----------------------------------------------------------

    def clear(self):
        self.image.paste(TRANSPARENT, (0, 0, self.width, self.height))

    @property
    def has_shadow(self) -> bool:
        return self.shadow_color[3] > 0 and (
            self.shadow_blur > 0 or self.shadow_offset != (0.0, 0.0))

    def _paint_shadow(self, paint):
        layer = Image.new("RGBA", self.image.size, TRANSPARENT)
        paint(ImageDraw.Draw(layer), self.shadow_color, *self.shadow_offset)
        if self.shadow_blur > 0:
            layer = layer.filter(ImageFilter.GaussianBlur(self.shadow_blur / 2))
        self.image.alpha_composite(layer)

    def stroke_path(self, segments: Iterable[Sequence[Tuple[float, float]]]):
        """Stroke polylines given in the current frame.

        Parameters
        ----------
        segments : iterable of sequence of (x, y)
            Each item is one open polyline.
        """
        polylines = [[self.apply(x, y) for x, y in segment] for segment in segments]
        width = max(1, int(round(self.line_width)))

        def paint(draw, color, dx, dy):
            radius = width / 2
            for line in polylines:
                points = [(x + dx, y + dy) for x, y in line]
                draw.line(points, fill=color, width=width, joint="curve")
                if width > 2:
                    for x, y in (points[0], points[-1]):
                        draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=color)

        if self.has_shadow:
            self._paint_shadow(paint)
        paint(self.draw, self.stroke_color, 0.0, 0.0)

    def _text_origin(self, text: str, x: float, y: float) -> Tuple[float, float]:
        left, top, right, bottom = self.draw.textbbox((0, 0), text, font=self.font)
        if self.text_align in ("left", "start"):
            ox = x - left
        elif self.text_align in ("right", "end"):
            ox = x - right
        else:
            ox = x - (left + right) / 2

        if self.text_baseline in ("top", "hanging"):
            oy = y - top
        elif self.text_baseline in ("bottom", "ideographic"):
            oy = y - bottom
        elif self.text_baseline == "alphabetic" and hasattr(self.font, "getmetrics"):
            oy = y - self.font.getmetrics()[0]
        else:
            oy = y - (top + bottom) / 2
        return ox, oy

    def _draw_text(self, text, x, y, color, stroke_width=0):
        ox, oy = self._text_origin(text, *self.apply(x, y))

        def paint(draw, paint_color, dx, dy):
            draw.text((ox + dx, oy + dy), text, font=self.font, fill=paint_color,
                      stroke_width=stroke_width, stroke_fill=paint_color)

        if self.has_shadow:
            self._paint_shadow(paint)
        paint(self.draw, color, 0.0, 0.0)

    def fill_text(self, text: str, x: float, y: float):
        self._draw_text(text, x, y, self.fill_color)

    def stroke_text(self, text: str, x: float, y: float):
        # the canvas line straddles the glyph outline, half of it lies outside
        self._draw_text(text, x, y, self.stroke_color,
                        stroke_width=max(1, int(round(self.line_width / 2))))

    def read_pixels(self) -> np.ndarray:
        """Return a copy of the canvas as a flat RGBA ``uint8`` array."""
        return np.array(self.image, dtype=np.uint8).reshape(-1)
