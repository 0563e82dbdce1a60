"""Tests for the immutable PixelBuffer and Rectangle types."""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
import pytest
from PIL import Image

from nanobanana.errors import InvalidDimensionError
from nanobanana.imaging import PixelBuffer, Rectangle


class TestPixelBuffer:
    def test_from_bytes_round_trips_raw_rgba(self) -> None:
        """Raw RGBA bytes come back unchanged from tobytes()."""
        data = bytes(range(2 * 3 * 4))
        buf = PixelBuffer.from_bytes(data, 2, 3)
        assert buf.size == (2, 3)
        assert buf.tobytes() == data
        assert buf.pixel(1, 0) == (4, 5, 6, 7)

    def test_from_bytes_rejects_wrong_length(self) -> None:
        with pytest.raises(ValueError, match="Expected 16 bytes"):
            PixelBuffer.from_bytes(b"\x00" * 15, 2, 2)

    @pytest.mark.parametrize(("width", "height"), [(0, 4), (4, 0), (-1, 2)])
    def test_solid_rejects_non_positive_dimensions(
        self, width: int, height: int,
    ) -> None:
        with pytest.raises(InvalidDimensionError) as exc_info:
            PixelBuffer.solid(width, height, (0, 0, 0, 255))
        assert exc_info.value.code == "INVALID_DIMENSION"

    def test_rejects_wrong_channel_count(self) -> None:
        with pytest.raises(ValueError, match=r"\(H, W, 4\)"):
            PixelBuffer(np.zeros((2, 2, 3), dtype=np.uint8))

    def test_pixels_are_read_only(
        self, solid_buffer: Callable[..., PixelBuffer],
    ) -> None:
        buf = solid_buffer()
        assert not buf.pixels.flags.writeable
        with pytest.raises(ValueError, match="read-only"):
            buf.pixels[0, 0, 0] = 1

    def test_source_array_is_copied(self) -> None:
        """Mutating the caller's array afterwards does not leak in."""
        source = np.zeros((2, 2, 4), dtype=np.uint8)
        buf = PixelBuffer(source)
        source[0, 0] = (9, 9, 9, 9)
        assert buf.pixel(0, 0) == (0, 0, 0, 0)

    def test_equality_compares_pixels(
        self, solid_buffer: Callable[..., PixelBuffer],
    ) -> None:
        assert solid_buffer(3, 3) == solid_buffer(3, 3)
        assert solid_buffer(3, 3) != solid_buffer(3, 4)
        assert solid_buffer(color=(1, 2, 3, 4)) != solid_buffer()

    def test_buffers_are_unhashable(
        self, solid_buffer: Callable[..., PixelBuffer],
    ) -> None:
        with pytest.raises(TypeError):
            hash(solid_buffer())

    def test_image_round_trip(self, sample_image: Image.Image) -> None:
        buf = PixelBuffer.from_image(sample_image)
        assert buf.size == sample_image.size
        out = buf.to_image()
        assert out.mode == "RGBA"
        assert out.tobytes() == sample_image.tobytes()

    def test_from_image_converts_rgb(self) -> None:
        """RGB sources gain an opaque alpha channel."""
        img = Image.new("RGB", (3, 2), color=(10, 20, 30))
        buf = PixelBuffer.from_image(img)
        assert buf.pixel(2, 1) == (10, 20, 30, 255)

    def test_repr_shows_size(
        self, solid_buffer: Callable[..., PixelBuffer],
    ) -> None:
        assert repr(solid_buffer(5, 7)) == "PixelBuffer(5x7)"


class TestRectangle:
    def test_edges_and_size(self) -> None:
        rect = Rectangle(2, 3, 4, 5)
        assert (rect.x1, rect.y1) == (6, 8)
        assert rect.size() == (4, 5)

    @pytest.mark.parametrize(
        ("rect", "expected"),
        [
            (Rectangle(0, 0, 10, 10), True),
            (Rectangle(5, 5, 5, 5), True),
            (Rectangle(5, 5, 6, 5), False),
            (Rectangle(-1, 0, 2, 2), False),
        ],
    )
    def test_fits_within(self, rect: Rectangle, *, expected: bool) -> None:
        assert rect.fits_within(10, 10) is expected

    def test_as_dict(self) -> None:
        assert Rectangle(1, 2, 3, 4).as_dict() == {
            "x": 1, "y": 2, "width": 3, "height": 4,
        }
