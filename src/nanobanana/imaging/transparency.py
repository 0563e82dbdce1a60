"""
Alpha channel analysis and color-keyed background removal.

Color distance is the Euclidean distance between RGB triples, scaled so
that black-to-white is 100. A pixel is keyed out when its distance to
the reference color is at most the tolerance. Keying is a pure per-pixel
classification with no flood fill.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from nanobanana.constants import (
    ALPHA_INDEX,
    ALPHA_OPAQUE,
    ALPHA_TRANSPARENT,
    MAX_RGB_DISTANCE,
    TOLERANCE_MAX,
    TOLERANCE_WARN_THRESHOLD,
)
from nanobanana.errors import EmptyInputError
from nanobanana.imaging.buffer import PixelBuffer, Rectangle
from nanobanana.imaging.color import ColorReference, format_color
from nanobanana.logging_utils import logger

if TYPE_CHECKING:  # pragma: no cover
    from nanobanana.type_defs import RGB


@dataclass(frozen=True)
class AlphaReport:
    """Alpha statistics for a buffer; ``bounding_box`` is None when empty."""

    width: int
    height: int
    opaque_count: int
    transparent_count: int
    semi_transparent_count: int
    bounding_box: Rectangle | None

    @property
    def total(self) -> int:
        """Total number of pixels."""
        return self.width * self.height

    @property
    def has_transparency(self) -> bool:
        """True when any pixel is not fully opaque."""
        return self.opaque_count < self.total

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation of the report."""
        return {
            "width": self.width,
            "height": self.height,
            "total_pixels": self.total,
            "opaque": self.opaque_count,
            "transparent": self.transparent_count,
            "semi_transparent": self.semi_transparent_count,
            "has_transparency": self.has_transparency,
            "bounding_box": (
                self.bounding_box.as_dict() if self.bounding_box else None
            ),
        }


def _alpha_bounds(alpha: np.ndarray) -> Rectangle | None:
    """Return the bounding box of pixels with alpha > 0, if any."""
    visible = alpha > ALPHA_TRANSPARENT
    rows = np.flatnonzero(visible.any(axis=1))
    if rows.size == 0:
        return None
    cols = np.flatnonzero(visible.any(axis=0))
    y0, y1 = int(rows[0]), int(rows[-1]) + 1
    x0, x1 = int(cols[0]), int(cols[-1]) + 1
    return Rectangle(x0, y0, x1 - x0, y1 - y0)


def inspect(buffer: PixelBuffer) -> AlphaReport:
    """Count opaque, transparent, and semi-transparent pixels."""
    alpha = buffer.alpha
    opaque = int(np.count_nonzero(alpha == ALPHA_OPAQUE))
    transparent = int(np.count_nonzero(alpha == ALPHA_TRANSPARENT))
    return AlphaReport(
        width=buffer.width,
        height=buffer.height,
        opaque_count=opaque,
        transparent_count=transparent,
        semi_transparent_count=alpha.size - opaque - transparent,
        bounding_box=_alpha_bounds(alpha),
    )


def color_distance(a: RGB, b: RGB) -> float:
    """Return the 0-100 scaled Euclidean distance between two RGB colors."""
    diff = np.subtract(a, b, dtype=np.float64)
    return float(np.sqrt(np.dot(diff, diff)) / MAX_RGB_DISTANCE * 100)


def distance_map(buffer: PixelBuffer, rgb: RGB) -> np.ndarray:
    """Return per-pixel 0-100 distances from ``rgb`` as a float array."""
    diff = buffer.pixels[:, :, :ALPHA_INDEX].astype(np.int32) - np.asarray(
        rgb, dtype=np.int32)
    squared = np.einsum("ijk,ijk->ij", diff, diff)
    return np.sqrt(squared) / MAX_RGB_DISTANCE * 100


def detect_background(buffer: PixelBuffer) -> RGB:
    """
    Guess the background color from the four corner pixels.

    Returns the RGB appearing in the most corners. Ties go to whichever
    color comes first in top-left, top-right, bottom-left, bottom-right
    order, so four different corners yield the top-left color.
    """
    last_x, last_y = buffer.width - 1, buffer.height - 1
    corners = [
        buffer.pixel(0, 0)[:3],
        buffer.pixel(last_x, 0)[:3],
        buffer.pixel(0, last_y)[:3],
        buffer.pixel(last_x, last_y)[:3],
    ]
    # Counter keeps insertion order among equal counts
    color, _ = Counter(corners).most_common(1)[0]
    return color[0], color[1], color[2]


def _warn_extreme_tolerance(tolerance: float) -> None:
    if tolerance >= TOLERANCE_MAX:
        logger.warning(
            "Tolerance %g covers the whole color space; every pixel will "
            "become transparent.",
            tolerance,
        )
    elif tolerance >= TOLERANCE_WARN_THRESHOLD:
        logger.warning(
            "Tolerance %g is very high and may remove foreground pixels.",
            tolerance,
        )


def make_transparent(
    buffer: PixelBuffer,
    color_ref: ColorReference | None = None,
    *,
    auto_tolerance: float | None = None,
) -> PixelBuffer:
    """
    Clear alpha on every pixel within tolerance of a reference color.

    Pixels farther away keep their existing alpha, so already transparent
    pixels stay transparent. When ``color_ref`` is None the reference is
    taken from :func:`detect_background` with ``auto_tolerance``.
    """
    if color_ref is None:
        if auto_tolerance is None:
            msg = "auto_tolerance is required when color_ref is None"
            raise ValueError(msg)
        color_ref = ColorReference(detect_background(buffer), auto_tolerance)
        logger.info(
            "Detected background color %s", format_color(color_ref.rgb),
        )

    _warn_extreme_tolerance(color_ref.tolerance)
    keyed = distance_map(buffer, color_ref.rgb) <= color_ref.tolerance

    out = buffer.pixels.copy()
    out[keyed, ALPHA_INDEX] = ALPHA_TRANSPARENT
    logger.debug(
        "Keyed %d of %d pixels against %s (tolerance %g)",
        int(np.count_nonzero(keyed)),
        keyed.size,
        format_color(color_ref.rgb),
        color_ref.tolerance,
    )
    out.flags.writeable = False
    return PixelBuffer(out)


def trim_transparent(buffer: PixelBuffer) -> PixelBuffer:
    """Crop away fully transparent borders around the visible content."""
    bounds = _alpha_bounds(buffer.alpha)
    if bounds is None:
        msg = "Image is fully transparent; nothing left to trim to"
        raise EmptyInputError(msg, width=buffer.width, height=buffer.height)
    if bounds.size() == buffer.size:
        return buffer
    return PixelBuffer(
        buffer.pixels[bounds.y:bounds.y1, bounds.x:bounds.x1],
    )
