"""
Multi-image composition into strips and grids.

Every layout allocates one canvas pre-filled with the background color
and copies each input in place, alpha included. Inputs are not blended
over the background, so transparent sprites stay transparent in sheets.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from nanobanana.constants import CHANNELS, COLOR_TRANSPARENT
from nanobanana.errors import EmptyInputError, InvalidDimensionError
from nanobanana.imaging.buffer import PixelBuffer
from nanobanana.logging_utils import logger
from nanobanana.type_defs import DIRECTIONS

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Sequence

    from nanobanana.type_defs import RGBA, Direction


@dataclass(frozen=True)
class LayoutSpec:
    """Parameters for :func:`combine`; ``columns`` only matters for grids."""

    direction: Direction = "horizontal"
    gap: int = 0
    columns: int = 1
    background: RGBA = COLOR_TRANSPARENT

    def __post_init__(self) -> None:
        if self.direction not in DIRECTIONS:
            msg = (f"direction must be one of {', '.join(DIRECTIONS)}, "
                   f"got {self.direction!r}")
            raise ValueError(msg)
        if self.gap < 0:
            msg = f"gap must be non-negative, got {self.gap}"
            raise InvalidDimensionError(msg, gap=self.gap)
        if self.columns < 1:
            msg = f"columns must be at least 1, got {self.columns}"
            raise InvalidDimensionError(msg, columns=self.columns)


@dataclass(frozen=True)
class Placement:
    """Top-left position of one input on the output canvas."""

    index: int
    x: int
    y: int


def auto_columns(count: int) -> int:
    """Return a near-square column count for ``count`` grid cells."""
    return max(1, math.ceil(math.sqrt(count)))


def _strip_layout(
    sizes: list[tuple[int, int]],
    gap: int,
    *,
    horizontal: bool,
) -> tuple[tuple[int, int], list[Placement]]:
    """Lay inputs along one axis, centered on the other."""
    along = 0 if horizontal else 1
    across = 1 - along
    span = max(size[across] for size in sizes)
    placements: list[Placement] = []
    offset = 0
    for idx, size in enumerate(sizes):
        center = (span - size[across]) // 2
        x, y = (offset, center) if horizontal else (center, offset)
        placements.append(Placement(idx, x, y))
        offset += size[along] + gap
    length = offset - gap
    canvas = (length, span) if horizontal else (span, length)
    return canvas, placements


def _grid_layout(
    sizes: list[tuple[int, int]],
    gap: int,
    columns: int,
) -> tuple[tuple[int, int], list[Placement]]:
    """Place inputs row-major into uniform cells sized to the largest input."""
    cell_w = max(w for w, _ in sizes)
    cell_h = max(h for _, h in sizes)
    rows = math.ceil(len(sizes) / columns)
    placements: list[Placement] = []
    for idx, (w, h) in enumerate(sizes):
        row, col = divmod(idx, columns)
        x = col * (cell_w + gap) + (cell_w - w) // 2
        y = row * (cell_h + gap) + (cell_h - h) // 2
        placements.append(Placement(idx, x, y))
    canvas = (
        columns * cell_w + gap * (columns - 1),
        rows * cell_h + gap * (rows - 1),
    )
    return canvas, placements


def plan_layout(
    sizes: Sequence[tuple[int, int]],
    spec: LayoutSpec,
) -> tuple[tuple[int, int], list[Placement]]:
    """
    Compute the canvas size and input placements without pixel work.

    Raises EmptyInputError when ``sizes`` is empty.
    """
    size_list = list(sizes)
    if not size_list:
        msg = "combine needs at least one image"
        raise EmptyInputError(msg, direction=spec.direction)
    if spec.direction == "grid":
        return _grid_layout(size_list, spec.gap, spec.columns)
    return _strip_layout(
        size_list, spec.gap, horizontal=spec.direction == "horizontal",
    )


def combine(buffers: Sequence[PixelBuffer], spec: LayoutSpec) -> PixelBuffer:
    """
    Combine buffers into a single image following ``spec``.

    Horizontal strips center each input vertically, vertical strips
    center horizontally, and grids center each input in a uniform cell.
    Gaps and unfilled cells keep the background color.
    """
    (canvas_w, canvas_h), placements = plan_layout(
        [buf.size for buf in buffers], spec,
    )

    canvas = np.empty((canvas_h, canvas_w, CHANNELS), dtype=np.uint8)
    canvas[:, :] = spec.background
    for place in placements:
        src = buffers[place.index]
        canvas[place.y:place.y + src.height,
               place.x:place.x + src.width] = src.pixels

    logger.debug(
        "Combined %d images (%s, gap %d) into %dx%d",
        len(placements), spec.direction, spec.gap, canvas_w, canvas_h,
    )
    # hand ownership over without a second copy
    canvas.flags.writeable = False
    return PixelBuffer(canvas)
