"""
Geometric transforms over pixel buffers: resize, crop, rotate, and flip.

Every function validates its parameters before touching pixels and
returns a new buffer. Right-angle rotations and flips are exact pixel
permutations. Resizing is deterministic: area averaging (BOX) when no
axis grows, Lanczos when any axis grows. Pillow resamples RGBA images on
premultiplied alpha, so fully transparent pixels never bleed color into
their neighbors.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image, ImageOps

from nanobanana.constants import FULL_TURN, RIGHT_ANGLES
from nanobanana.errors import (
    InvalidDimensionError,
    RectOutOfBoundsError,
    UnsupportedRotationError,
)
from nanobanana.imaging.buffer import PixelBuffer, Rectangle
from nanobanana.logging_utils import logger

if TYPE_CHECKING:  # pragma: no cover
    from nanobanana.type_defs import RGBA, ResizeMode

_RIGHT_ANGLE = 90


@dataclass(frozen=True)
class ResizeSpec:
    """
    Requested output geometry for :func:`resize`.

    Use the named constructors rather than filling fields by hand:
    ``absolute`` stretches to exactly WxH, ``percentage`` scales both
    axes, ``fit`` keeps aspect inside a WxH box, and ``fill`` keeps
    aspect while covering a WxH box and center-cropping the overflow.
    """

    mode: ResizeMode
    width: int = 0
    height: int = 0
    percent: float = 0.0

    @classmethod
    def absolute(cls, width: int, height: int) -> ResizeSpec:
        """Stretch to exactly width x height."""
        return cls("absolute", width=width, height=height)

    @classmethod
    def percentage(cls, percent: float) -> ResizeSpec:
        """Scale both axes by percent / 100."""
        return cls("percent", percent=percent)

    @classmethod
    def fit(cls, width: int, height: int) -> ResizeSpec:
        """Scale to fit inside width x height, preserving aspect."""
        return cls("fit", width=width, height=height)

    @classmethod
    def fill(cls, width: int, height: int) -> ResizeSpec:
        """Scale to cover width x height, then center crop to it."""
        return cls("fill", width=width, height=height)


@dataclass(frozen=True)
class TransformSpec:
    """Chain of optional transforms applied by :func:`apply_transforms`."""

    resize: ResizeSpec | None = None
    crop: Rectangle | None = None
    rotate: float | None = None
    rotate_fill: RGBA | None = None
    flip_horizontal: bool = False
    flip_vertical: bool = False


def _round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return math.floor(value + 0.5)


def _require_positive_box(width: int, height: int, spec: ResizeSpec) -> None:
    if width <= 0 or height <= 0:
        msg = f"Resize target must be at least 1x1, got {width}x{height}"
        raise InvalidDimensionError(
            msg, mode=spec.mode, width=width, height=height,
        )


def resize_dimensions(
    size: tuple[int, int],
    spec: ResizeSpec,
) -> tuple[int, int]:
    """
    Return the output size ``resize`` would produce for a source size.

    Raises InvalidDimensionError when the result would be smaller than
    1x1 or the ResizeSpec itself is degenerate. Does no pixel work, so callers
    can validate a whole chain up front.
    """
    src_w, src_h = size
    if spec.mode == "percent":
        if not math.isfinite(spec.percent) or spec.percent <= 0:
            msg = ("Resize percentage must be positive and finite, "
                   f"got {spec.percent:g}")
            raise InvalidDimensionError(msg, percent=spec.percent)
        new_w = _round_half_up(src_w * spec.percent / 100)
        new_h = _round_half_up(src_h * spec.percent / 100)
        if new_w < 1 or new_h < 1:
            msg = (f"Resizing {src_w}x{src_h} by {spec.percent:g}% gives "
                   f"{new_w}x{new_h}; output must be at least 1x1")
            raise InvalidDimensionError(
                msg, percent=spec.percent, width=new_w, height=new_h,
            )
        return new_w, new_h

    _require_positive_box(spec.width, spec.height, spec)
    if spec.mode == "fit":
        scale = min(spec.width / src_w, spec.height / src_h)
        return (
            max(1, _round_half_up(src_w * scale)),
            max(1, _round_half_up(src_h * scale)),
        )
    # absolute and fill both land exactly on the requested box
    return spec.width, spec.height


def _resample_filter(
    src: tuple[int, int],
    dst: tuple[int, int],
) -> Image.Resampling:
    """Pick area averaging for shrinking and Lanczos for enlarging."""
    if dst[0] <= src[0] and dst[1] <= src[1]:
        return Image.Resampling.BOX
    return Image.Resampling.LANCZOS


def resize(buffer: PixelBuffer, spec: ResizeSpec) -> PixelBuffer:
    """
    Resize a buffer according to ``spec``.

    Returns the input unchanged when the target equals the source size,
    which makes ``resize(b, ResizeSpec.percentage(100))`` an identity.
    """
    target = resize_dimensions(buffer.size, spec)
    if target == buffer.size:
        return buffer

    img = buffer.to_image()
    if spec.mode == "fill":
        scale = max(target[0] / buffer.width, target[1] / buffer.height)
        method = (
            Image.Resampling.BOX if scale <= 1 else Image.Resampling.LANCZOS
        )
        out = ImageOps.fit(img, target, method=method, centering=(0.5, 0.5))
    else:
        out = img.resize(target, _resample_filter(buffer.size, target))

    logger.debug(
        "Resized %dx%d -> %dx%d (%s)",
        buffer.width, buffer.height, target[0], target[1], spec.mode,
    )
    return PixelBuffer.from_image(out)


def validate_crop(size: tuple[int, int], rect: Rectangle) -> None:
    """Raise if ``rect`` is degenerate or not inside a source of ``size``."""
    if rect.width <= 0 or rect.height <= 0:
        msg = f"Crop size must be at least 1x1, got {rect.width}x{rect.height}"
        raise InvalidDimensionError(msg, **rect.as_dict())
    if not rect.fits_within(*size):
        msg = (
            f"Crop rectangle {rect.width}x{rect.height}+{rect.x}+{rect.y} "
            f"exceeds source bounds {size[0]}x{size[1]}"
        )
        raise RectOutOfBoundsError(
            msg,
            **rect.as_dict(),
            source_width=size[0],
            source_height=size[1],
        )


def crop(buffer: PixelBuffer, rect: Rectangle) -> PixelBuffer:
    """Return the pixels inside ``rect``; output size is exactly rect size."""
    validate_crop(buffer.size, rect)
    return PixelBuffer(buffer.pixels[rect.y:rect.y1, rect.x:rect.x1])


def normalize_rotation(degrees: float, fill: RGBA | None) -> float:
    """
    Validate a clockwise rotation angle and reduce it into [0, 360).

    Right angles are always allowed. Any other angle needs interpolation
    and a ``fill`` color for the exposed corners; without one it raises
    UnsupportedRotationError.
    """
    if not math.isfinite(degrees):
        msg = f"Rotation angle must be finite, got {degrees!r}"
        raise UnsupportedRotationError(msg, degrees=degrees)
    turn = degrees % FULL_TURN
    if turn == 0 or turn in RIGHT_ANGLES:
        return turn
    if fill is None:
        msg = (f"Rotation by {degrees:g} degrees is not a multiple of 90; "
               "provide a fill color to rotate by arbitrary angles")
        raise UnsupportedRotationError(msg, degrees=degrees)
    return turn


def rotate(
    buffer: PixelBuffer,
    degrees: float,
    *,
    fill: RGBA | None = None,
) -> PixelBuffer:
    """
    Rotate clockwise by ``degrees``.

    Multiples of 90 are exact permutations and swap width and height for
    90 and 270. Other angles use bicubic interpolation on an expanded
    canvas whose uncovered corners are painted with ``fill``.
    """
    turn = normalize_rotation(degrees, fill)
    if turn == 0:
        return buffer
    if turn in RIGHT_ANGLES:
        # np.rot90 turns counter-clockwise for positive k
        quarter_turns = int(turn) // _RIGHT_ANGLE
        return PixelBuffer(np.rot90(buffer.pixels, k=-quarter_turns))

    # Pillow rotates counter-clockwise for positive angles
    out = buffer.to_image().rotate(
        -turn,
        resample=Image.Resampling.BICUBIC,
        expand=True,
        fillcolor=fill,
    )
    logger.debug("Rotated by %g degrees to %dx%d", turn, *out.size)
    return PixelBuffer.from_image(out)


def flip(
    buffer: PixelBuffer,
    *,
    horizontal: bool = False,
    vertical: bool = False,
) -> PixelBuffer:
    """
    Mirror a buffer left-right (horizontal) and/or top-bottom (vertical).

    Both flags together match a 180 degree rotation pixel for pixel.
    """
    if not horizontal and not vertical:
        return buffer
    pixels = buffer.pixels
    if horizontal:
        pixels = pixels[:, ::-1]
    if vertical:
        pixels = pixels[::-1, :]
    return PixelBuffer(pixels)


def plan_transforms(
    size: tuple[int, int],
    spec: TransformSpec,
) -> tuple[int, int]:
    """
    Validate a transform chain against a source size without pixel work.

    Returns the size after resize and crop. Rotation by a right angle
    swaps the axes; arbitrary angles are validated but their expanded
    size is only known after rendering, so the pre-rotation size is
    returned for them.
    """
    width, height = size
    if spec.resize is not None:
        width, height = resize_dimensions((width, height), spec.resize)
    if spec.crop is not None:
        validate_crop((width, height), spec.crop)
        width, height = spec.crop.size()
    if spec.rotate is not None:
        turn = normalize_rotation(spec.rotate, spec.rotate_fill)
        if turn in (90, 270):
            width, height = height, width
    return width, height


def apply_transforms(buffer: PixelBuffer, spec: TransformSpec) -> PixelBuffer:
    """
    Run a transform chain in the fixed order resize, crop, rotate, flip.

    The order never depends on how the caller listed the options. The
    whole chain is validated before any pixels are processed, so a bad
    crop after a resize fails without doing the resize first.
    """
    plan_transforms(buffer.size, spec)

    out = buffer
    if spec.resize is not None:
        out = resize(out, spec.resize)
    if spec.crop is not None:
        out = crop(out, spec.crop)
    if spec.rotate is not None:
        out = rotate(out, spec.rotate, fill=spec.rotate_fill)
    return flip(
        out,
        horizontal=spec.flip_horizontal,
        vertical=spec.flip_vertical,
    )
