"""Input validation helpers for command execution."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterable


def validate_input_paths(paths: Iterable[str | Path]) -> list[Path]:
    """Ensure every input path points to a file; return them as Paths."""
    checked: list[Path] = []
    for path in paths:
        candidate = Path(path)
        if not candidate.is_file():
            msg = f"Input image not found: {path}"
            raise FileNotFoundError(msg)
        checked.append(candidate)
    return checked


def validate_output_paths(
    paths: Iterable[str | Path],
    *,
    overwrite: bool,
) -> None:
    """
    Fail early when any output already exists and overwriting is off.

    Checked before expensive work (such as an API call) so a refusal to
    overwrite does not waste it.
    """
    if overwrite:
        return
    for path in paths:
        if Path(path).exists():
            msg = f"Output file already exists: {path}"
            raise FileExistsError(msg)
