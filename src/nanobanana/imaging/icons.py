"""
Batch square resizing for icon sets.

Each requested size is an independent ``resize`` call against the same
immutable source, so sizes run on a bounded thread pool. A failing size
is recorded alongside the successes instead of aborting the batch.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from nanobanana.constants import ICON_WORKERS_MAX
from nanobanana.errors import EmptyInputError, ImageOpError
from nanobanana.imaging.geometry import ResizeSpec, resize
from nanobanana.logging_utils import logger

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable, Iterable, Sequence

    from nanobanana.imaging.buffer import PixelBuffer


@dataclass(frozen=True)
class IconOutput:
    """One successfully rendered size; ``index`` is its request position."""

    index: int
    size: int
    buffer: PixelBuffer


@dataclass(frozen=True)
class IconFailure:
    """One size that could not be rendered."""

    index: int
    size: int
    error: ImageOpError

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation of the failure."""
        return {"size": self.size, **self.error.to_dict()}


@dataclass
class IconBatchResult:
    """Aggregate outcome of :func:`generate_sizes` in request order."""

    outputs: list[IconOutput] = field(default_factory=list)
    failures: list[IconFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when every requested size succeeded."""
        return not self.failures

    @property
    def succeeded_sizes(self) -> list[int]:
        """Sizes that rendered, in request order."""
        return [out.size for out in self.outputs]

    @property
    def failed_sizes(self) -> list[int]:
        """Sizes that failed, in request order."""
        return [fail.size for fail in self.failures]


def _render_one(
    buffer: PixelBuffer,
    index: int,
    size: int,
) -> IconOutput | IconFailure:
    """Resize to size x size, turning image errors into a failure record."""
    try:
        out = resize(buffer, ResizeSpec.absolute(size, size))
    except ImageOpError as exc:
        logger.warning("Icon size %d failed: %s", size, exc)
        return IconFailure(index=index, size=size, error=exc)
    return IconOutput(index=index, size=size, buffer=out)


def generate_sizes(
    buffer: PixelBuffer,
    sizes: Sequence[int],
    *,
    max_workers: int | None = None,
    progress: Callable[[Iterable[Any]], Iterable[Any]] | None = None,
) -> IconBatchResult:
    """
    Render ``buffer`` as a square icon at every size in ``sizes``.

    Duplicate sizes are rendered and reported separately. Raises
    EmptyInputError only when ``sizes`` is empty; per-size problems such
    as a non-positive size land in ``IconBatchResult.failures``.

    Args:
        buffer: Source image, shared read-only across workers.
        sizes: Target edge lengths in pixels.
        max_workers: Thread pool bound; defaults to one worker per size,
            capped at ICON_WORKERS_MAX.
        progress: Optional wrapper around the result iterator, e.g. tqdm.

    Returns:
        Successes and failures, each in request order.

    """
    requested = list(sizes)
    if not requested:
        msg = "At least one icon size is required"
        raise EmptyInputError(msg, sizes=requested)

    workers = max_workers or min(len(requested), ICON_WORKERS_MAX)
    workers = max(1, min(workers, ICON_WORKERS_MAX))

    result = IconBatchResult()
    with ThreadPoolExecutor(max_workers=workers) as pool:
        records: Iterable[IconOutput | IconFailure] = pool.map(
            lambda item: _render_one(buffer, *item),
            enumerate(requested),
        )
        if progress is not None:
            records = progress(records)
        for record in records:
            if isinstance(record, IconFailure):
                result.failures.append(record)
            else:
                result.outputs.append(record)

    logger.debug(
        "Icon batch finished: %d ok, %d failed",
        len(result.outputs), len(result.failures),
    )
    return result
