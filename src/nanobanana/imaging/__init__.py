"""
Pure in-memory image operations split by concern.

Buffers, geometry, transparency, composition, and icon batching are
separate modules; the most commonly used entry points are re-exported
here so callers can import from ``nanobanana.imaging`` directly.
"""

from __future__ import annotations

from . import buffer, color, composition, geometry, icons, transparency
from .buffer import PixelBuffer, Rectangle
from .color import ColorReference, format_color, parse_color, parse_rgb
from .composition import LayoutSpec, auto_columns, combine, plan_layout
from .geometry import (
    ResizeSpec,
    TransformSpec,
    apply_transforms,
    crop,
    flip,
    resize,
    rotate,
)
from .icons import IconBatchResult, IconFailure, IconOutput, generate_sizes
from .transparency import (
    AlphaReport,
    detect_background,
    inspect,
    make_transparent,
    trim_transparent,
)

__all__ = [
    "AlphaReport",
    "ColorReference",
    "IconBatchResult",
    "IconFailure",
    "IconOutput",
    "LayoutSpec",
    "PixelBuffer",
    "Rectangle",
    "ResizeSpec",
    "TransformSpec",
    "apply_transforms",
    "auto_columns",
    "buffer",
    "color",
    "combine",
    "composition",
    "crop",
    "detect_background",
    "flip",
    "format_color",
    "generate_sizes",
    "geometry",
    "icons",
    "inspect",
    "make_transparent",
    "parse_color",
    "parse_rgb",
    "plan_layout",
    "resize",
    "rotate",
    "transparency",
    "trim_transparent",
]
