"""Immutable RGBA pixel buffer shared by every imaging operation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image

from nanobanana.constants import ALPHA_INDEX, CHANNELS, COLOR_MODE_RGBA
from nanobanana.errors import InvalidDimensionError

if TYPE_CHECKING:  # pragma: no cover
    from nanobanana.type_defs import RGBA

_NDIM = 3


@dataclass(frozen=True)
class Rectangle:
    """Pixel rectangle with origin at the top left."""

    x: int
    y: int
    width: int
    height: int

    @property
    def x1(self) -> int:
        """Exclusive right edge."""
        return self.x + self.width

    @property
    def y1(self) -> int:
        """Exclusive bottom edge."""
        return self.y + self.height

    def size(self) -> tuple[int, int]:
        """Return (width, height)."""
        return self.width, self.height

    def fits_within(self, width: int, height: int) -> bool:
        """Return True when the rectangle lies fully inside width x height."""
        return (
            self.x >= 0
            and self.y >= 0
            and self.x1 <= width
            and self.y1 <= height
        )

    def as_dict(self) -> dict[str, int]:
        """Return the rectangle as a plain mapping."""
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """
    Decoded raster image as a read-only ``(height, width, 4)`` uint8 array.

    Buffers never change after construction. Writable input arrays are
    copied and the stored array is flagged read-only, so buffers derived
    from one another may safely share memory through numpy views.
    """

    pixels: np.ndarray

    def __post_init__(self) -> None:
        arr = np.asarray(self.pixels)
        if arr.ndim != _NDIM or arr.shape[2] != CHANNELS:
            msg = f"Pixel array must have shape (H, W, 4), got {arr.shape}"
            raise ValueError(msg)
        height, width = arr.shape[:2]
        if width <= 0 or height <= 0:
            msg = f"Buffer dimensions must be positive, got {width}x{height}"
            raise InvalidDimensionError(msg, width=width, height=height)
        if arr.dtype != np.uint8 or arr.flags.writeable:
            arr = np.array(arr, dtype=np.uint8, copy=True)
            arr.flags.writeable = False
        object.__setattr__(self, "pixels", arr)

    @property
    def width(self) -> int:
        """Width in pixels."""
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        """Height in pixels."""
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        """Return (width, height)."""
        return self.width, self.height

    @property
    def alpha(self) -> np.ndarray:
        """Read-only view of the alpha channel."""
        return self.pixels[:, :, ALPHA_INDEX]

    def pixel(self, x: int, y: int) -> RGBA:
        """Return the RGBA tuple at (x, y)."""
        r, g, b, a = (int(v) for v in self.pixels[y, x])
        return r, g, b, a

    def tobytes(self) -> bytes:
        """Return row-major RGBA bytes; length is width * height * 4."""
        return self.pixels.tobytes()

    def to_image(self) -> Image.Image:
        """Return a new Pillow RGBA image holding a copy of the pixels."""
        return Image.frombytes(COLOR_MODE_RGBA, self.size, self.tobytes())

    @classmethod
    def from_image(cls, img: Image.Image) -> PixelBuffer:
        """Build a buffer from any Pillow image, converting to RGBA."""
        rgba = img if img.mode == COLOR_MODE_RGBA else img.convert(
            COLOR_MODE_RGBA)
        return cls(np.asarray(rgba, dtype=np.uint8))

    @classmethod
    def from_bytes(cls, data: bytes, width: int, height: int) -> PixelBuffer:
        """Build a buffer from raw row-major RGBA bytes."""
        expected = width * height * CHANNELS
        if width <= 0 or height <= 0:
            msg = f"Buffer dimensions must be positive, got {width}x{height}"
            raise InvalidDimensionError(msg, width=width, height=height)
        if len(data) != expected:
            msg = (f"Expected {expected} bytes for {width}x{height} RGBA, "
                   f"got {len(data)}")
            raise ValueError(msg)
        arr = np.frombuffer(data, dtype=np.uint8).reshape(height, width,
                                                          CHANNELS)
        return cls(arr)

    @classmethod
    def solid(cls, width: int, height: int, color: RGBA) -> PixelBuffer:
        """Build a buffer filled with a single RGBA color."""
        if width <= 0 or height <= 0:
            msg = f"Buffer dimensions must be positive, got {width}x{height}"
            raise InvalidDimensionError(msg, width=width, height=height)
        arr = np.empty((height, width, CHANNELS), dtype=np.uint8)
        arr[:, :] = color
        arr.flags.writeable = False
        return cls(arr)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return bool(np.array_equal(self.pixels, other.pixels))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height})"
