"""
Test configuration and shared fixtures for nanobanana.

This module defines reusable pytest fixtures for building pixel buffers,
writing sample images to disk, and faking the Gemini SDK client. These
fixtures support all test modules in the test suite.

Note:
    This file is automatically loaded by pytest and should not be
    renamed.

"""
from __future__ import annotations

import io
from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import pytest
from PIL import Image

from nanobanana.config import NanobananaConfig
from nanobanana.constants import COLOR_MODE_RGBA
from nanobanana.imaging import PixelBuffer
from nanobanana.logging_utils import logger

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)
CLEAR = (0, 0, 0, 0)


@pytest.fixture
def solid_buffer() -> Callable[..., PixelBuffer]:
    """Factory for single-color buffers."""

    def _build(
        width: int = 4,
        height: int = 4,
        color: tuple[int, int, int, int] = RED,
    ) -> PixelBuffer:
        return PixelBuffer.solid(width, height, color)

    return _build


@pytest.fixture
def gradient_buffer() -> Callable[..., PixelBuffer]:
    """
    Factory for buffers whose every pixel is distinct.

    Red encodes x, green encodes y, and blue mixes both, so any pixel
    permutation (rotation, flip) is detectable.
    """

    def _build(width: int = 6, height: int = 4) -> PixelBuffer:
        ys, xs = np.mgrid[0:height, 0:width]
        pixels = np.zeros((height, width, 4), dtype=np.uint8)
        pixels[..., 0] = xs * 10
        pixels[..., 1] = ys * 10
        pixels[..., 2] = (xs + ys * width) % 256
        pixels[..., 3] = 255
        return PixelBuffer(pixels)

    return _build


@pytest.fixture
def framed_buffer() -> PixelBuffer:
    """10x8 transparent buffer with an opaque red 4x3 block at (3, 2)."""
    pixels = np.zeros((8, 10, 4), dtype=np.uint8)
    pixels[2:5, 3:7] = RED
    return PixelBuffer(pixels)


@pytest.fixture
def sample_image() -> Image.Image:
    """Create a sample 32x24 blue RGBA PIL image."""
    return Image.new(COLOR_MODE_RGBA, (32, 24), color=BLUE)


@pytest.fixture
def write_image(tmp_path: Path) -> Callable[..., Path]:
    """Factory that saves a solid-color PNG under tmp_path."""

    def _write(
        name: str = "input.png",
        size: tuple[int, int] = (32, 24),
        color: tuple[int, int, int, int] = BLUE,
    ) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new(COLOR_MODE_RGBA, size, color=color).save(path)
        return path

    return _write


@pytest.fixture
def default_config() -> NanobananaConfig:
    """Configuration populated entirely from defaults."""
    return NanobananaConfig()


def png_bytes(
    size: tuple[int, int] = (8, 8),
    color: tuple[int, int, int, int] = GREEN,
) -> bytes:
    """Encode a solid-color PNG in memory."""
    out = io.BytesIO()
    Image.new(COLOR_MODE_RGBA, size, color=color).save(out, "PNG")
    return out.getvalue()


@dataclass
class FakeInlineData:
    data: bytes
    mime_type: str = "image/png"


@dataclass
class FakePart:
    inline_data: FakeInlineData | None = None
    text: str | None = None


@dataclass
class FakeContent:
    parts: list[FakePart] = field(default_factory=list)


@dataclass
class FakeCandidate:
    content: FakeContent | None
    finish_reason: str | None = "STOP"


@dataclass
class FakePromptFeedback:
    block_reason: str | None = None


@dataclass
class FakeResponse:
    candidates: list[FakeCandidate] = field(default_factory=list)
    prompt_feedback: FakePromptFeedback | None = None


def image_response(data: bytes | None = None) -> FakeResponse:
    """Build a response carrying one inline PNG."""
    part = FakePart(inline_data=FakeInlineData(data or png_bytes()))
    return FakeResponse(candidates=[FakeCandidate(FakeContent([part]))])


class FakeModels:
    """Stands in for ``client.models``; replays queued responses."""

    def __init__(self, responses: list[Any]) -> None:
        self._responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    def generate_content(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        result = self._responses.pop(0) if self._responses else (
            image_response())
        if isinstance(result, Exception):
            raise result
        return result


class FakeGenaiClient:
    """Minimal ``genai.Client`` double exposing ``models``."""

    def __init__(self, responses: list[Any] | None = None) -> None:
        self.models = FakeModels(responses or [])


@pytest.fixture
def fake_genai_client() -> Callable[..., FakeGenaiClient]:
    """Factory for fake SDK clients with queued responses or errors."""
    return FakeGenaiClient


@pytest.fixture
def make_png_bytes() -> Callable[..., bytes]:
    """Factory for in-memory solid-color PNGs."""
    return png_bytes


@pytest.fixture
def make_image_response() -> Callable[..., FakeResponse]:
    """Factory for SDK responses carrying one inline image."""
    return image_response


@pytest.fixture
def make_response() -> type[FakeResponse]:
    """The fake response type, for hand-built responses."""
    return FakeResponse


@pytest.fixture
def response_parts() -> dict[str, type]:
    """Building blocks for hand-built SDK responses."""
    return {
        "candidate": FakeCandidate,
        "content": FakeContent,
        "part": FakePart,
        "inline": FakeInlineData,
        "feedback": FakePromptFeedback,
    }


@pytest.fixture(autouse=True)
def enable_logger_propagation(
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[None, None, None]:
    """Enable propagation for the nanobanana logger so caplog works."""
    monkeypatch.setattr(logger, "propagate", True)
    level = logger.level
    yield
    # CLI tests change verbosity; restore it for the next test
    logger.setLevel(level)


@pytest.fixture(autouse=True)
def isolate_api_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real API keys out of tests."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
