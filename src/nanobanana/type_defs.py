"""
Defines shared type aliases for nanobanana.

Centralizes reusable type hints to improve consistency and readability.
"""
from __future__ import annotations

from typing import Literal

Direction = Literal["horizontal", "vertical", "grid"]
ResizeMode = Literal["absolute", "percent", "fit", "fill"]
ImageFormat = Literal["png", "jpeg", "webp"]
RGB = tuple[int, int, int]
RGBA = tuple[int, int, int, int]

DIRECTIONS: tuple[Direction, ...] = ("horizontal", "vertical", "grid")
