"""Public package exports for nanobanana."""

from __future__ import annotations

from .errors import ImageOpError
from .generation import GenerationClient, GenerationError, ImageRequest
from .image_io import decode_image, encode_image, load_image, save_image
from .imaging import PixelBuffer

__all__ = [
    "GenerationClient",
    "GenerationError",
    "ImageOpError",
    "ImageRequest",
    "PixelBuffer",
    "decode_image",
    "encode_image",
    "load_image",
    "save_image",
]
