"""Tests for batch icon resizing."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

import pytest

from nanobanana.errors import EmptyInputError, InvalidDimensionError
from nanobanana.imaging import PixelBuffer, generate_sizes

BufferFactory = Callable[..., PixelBuffer]


def test_failed_size_does_not_abort_batch(
    solid_buffer: BufferFactory,
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING):
        result = generate_sizes(solid_buffer(32, 32), [64, 0, 128])
    assert not result.ok
    assert result.succeeded_sizes == [64, 128]
    assert result.failed_sizes == [0]
    failure = result.failures[0]
    assert failure.index == 1
    assert isinstance(failure.error, InvalidDimensionError)
    assert [out.buffer.size for out in result.outputs] == [
        (64, 64), (128, 128),
    ]
    assert "Icon size 0 failed" in caplog.text


def test_failure_to_dict(solid_buffer: BufferFactory) -> None:
    result = generate_sizes(solid_buffer(), [-4])
    data = result.failures[0].to_dict()
    assert data["size"] == -4  # noqa: PLR2004
    assert data["code"] == "INVALID_DIMENSION"


def test_order_and_duplicates_preserved(
    solid_buffer: BufferFactory,
) -> None:
    result = generate_sizes(solid_buffer(), [32, 16, 32], max_workers=2)
    assert result.ok
    assert result.succeeded_sizes == [32, 16, 32]
    assert [out.index for out in result.outputs] == [0, 1, 2]


def test_source_size_is_returned_unchanged(
    solid_buffer: BufferFactory,
) -> None:
    buf = solid_buffer(16, 16)
    result = generate_sizes(buf, [16], max_workers=1)
    assert result.outputs[0].buffer is buf


def test_empty_sizes_raise(solid_buffer: BufferFactory) -> None:
    with pytest.raises(EmptyInputError):
        generate_sizes(solid_buffer(), [])


def test_progress_wraps_results(solid_buffer: BufferFactory) -> None:
    seen: list[Any] = []

    def progress(records: Iterable[Any]) -> Iterable[Any]:
        for record in records:
            seen.append(record)
            yield record

    result = generate_sizes(solid_buffer(), [8, 0, 4], progress=progress)
    assert len(seen) == 3  # noqa: PLR2004
    assert result.succeeded_sizes == [8, 4]
