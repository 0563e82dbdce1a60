"""Color parsing and the reference color used for transparency keying."""

from __future__ import annotations

from dataclasses import dataclass
from string import hexdigits
from typing import TYPE_CHECKING

from PIL import ImageColor

from nanobanana.constants import ALPHA_OPAQUE, TOLERANCE_MAX, TOLERANCE_MIN

if TYPE_CHECKING:  # pragma: no cover
    from nanobanana.type_defs import RGB, RGBA

_HEX_RGBA_LENGTH = 8
_HEX_RGB_LENGTHS = (3, 6)
_RGB_CHANNELS = 3


def parse_color(text: str) -> RGBA:
    """
    Parse a color string into an RGBA tuple.

    Accepts ``#rgb``, ``#rrggbb``, ``#rrggbbaa``, CSS color names such as
    ``white``, and ``transparent``. Colors without an alpha component are
    fully opaque.
    """
    stripped = text.strip()
    if not stripped:
        msg = "color must not be empty"
        raise ValueError(msg)
    if stripped.lower() == "transparent":
        return 0, 0, 0, 0
    bare = stripped.lstrip("#")
    is_hex = all(c in hexdigits for c in bare)
    if is_hex and len(bare) == _HEX_RGBA_LENGTH:
        red, green, blue, alpha = (
            int(bare[i:i + 2], 16) for i in range(0, _HEX_RGBA_LENGTH, 2)
        )
        return red, green, blue, alpha
    if is_hex and len(bare) in _HEX_RGB_LENGTHS:
        stripped = f"#{bare}"
    try:
        rgb = ImageColor.getrgb(stripped)
    except ValueError as exc:
        msg = f"unknown color: {text!r}"
        raise ValueError(msg) from exc
    if len(rgb) == 4:  # noqa: PLR2004
        return rgb[0], rgb[1], rgb[2], rgb[3]
    return rgb[0], rgb[1], rgb[2], ALPHA_OPAQUE


def parse_rgb(text: str) -> RGB:
    """Parse a color string and drop any alpha component."""
    red, green, blue, _ = parse_color(text)
    return red, green, blue


def format_color(color: RGB | RGBA) -> str:
    """Render a color as ``#rrggbb`` or ``#rrggbbaa``."""
    return "#" + "".join(f"{int(c):02x}" for c in color)


@dataclass(frozen=True)
class ColorReference:
    """
    Reference color plus tolerance for background keying.

    Tolerance is on a 0-100 scale, where 0 keys only exact matches and
    100 keys the whole RGB color space.
    """

    rgb: RGB
    tolerance: float

    def __post_init__(self) -> None:
        channels_ok = len(self.rgb) == _RGB_CHANNELS and all(
            0 <= int(c) <= ALPHA_OPAQUE for c in self.rgb
        )
        if not channels_ok:
            msg = f"rgb must be three 0-255 channels, got {self.rgb!r}"
            raise ValueError(msg)
        if not TOLERANCE_MIN <= self.tolerance <= TOLERANCE_MAX:
            msg = (f"tolerance must be between {TOLERANCE_MIN:g} and "
                   f"{TOLERANCE_MAX:g}, got {self.tolerance:g}")
            raise ValueError(msg)
