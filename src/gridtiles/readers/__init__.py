"""Readers turning packed image resources into grid buffers."""

from .image import ImageDecodingResult, decode_image

__all__ = ["ImageDecodingResult", "decode_image"]
