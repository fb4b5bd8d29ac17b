"""Decode packed grid textures.

Model fields are often shipped as PNG images with one quantized field per
colour channel. ``decode_image`` splits such an image into four flat byte
buffers ready to be used as grid buffers.
"""
import io
import logging
from dataclasses import dataclass

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

CHANNELS = ("r", "g", "b", "a")


@dataclass
class ImageDecodingResult:
    """Channels of a decoded image as flat row-major ``uint8`` arrays."""
    r: np.ndarray
    g: np.ndarray
    b: np.ndarray
    a: np.ndarray
    width: int
    height: int

    def channel(self, name: str) -> np.ndarray:
        """Return the buffer of channel ``name`` ('r', 'g', 'b' or 'a')."""
        if name not in CHANNELS:
            raise ValueError(f"Unknown channel '{name}', expected one of {CHANNELS}")
        return getattr(self, name)


def decode_image(src) -> ImageDecodingResult:
    """Decode an image into its RGBA channels.

    Parameters
    ----------
    src : str, pathlib.Path, bytes or file object
        Image to decode.

    Returns
    -------
    ImageDecodingResult
        The four channels plus the image dimensions.
    """
    if isinstance(src, (bytes, bytearray)):
        src = io.BytesIO(src)
    with Image.open(src) as img:
        rgba = np.array(img.convert("RGBA"), dtype=np.uint8)
    height, width = rgba.shape[:2]
    logger.debug(f"Decoded {width}x{height} image")
    flat = rgba.reshape(-1, 4)
    return ImageDecodingResult(
        r=flat[:, 0].copy(),
        g=flat[:, 1].copy(),
        b=flat[:, 2].copy(),
        a=flat[:, 3].copy(),
        width=width,
        height=height,
    )
