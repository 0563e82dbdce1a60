"""Helpers for managing output locations and persisted artifacts."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING

from nanobanana.config_defaults import DEFAULT_ICON_PREFIX
from nanobanana.logging_utils import logger

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable, Sequence


def setup_output_directory(
    output_path: str | Path,
    path_factory: Callable[[str], Path] = Path,
) -> Path:
    """
    Create the output directory if needed and return its path.

    OSError propagates when the directory cannot be created.
    """
    resolved_path = path_factory(str(output_path))
    if not resolved_path.exists():
        resolved_path.mkdir(parents=True, exist_ok=True)
        logger.info("Created output directory: %s", resolved_path)
    return resolved_path


def variant_paths(
    output_path: str | Path,
    count: int,
    suffix: str | None = None,
) -> list[Path]:
    """
    Return one output path per generated variant.

    A single variant is written to ``output_path`` itself. Several are
    numbered from 1 as ``name_1.ext``, ``name_2.ext``, and so on. When
    ``suffix`` is given and ``output_path`` has none, it is appended.
    """
    base = Path(output_path)
    if suffix and not base.suffix:
        base = base.with_suffix(suffix)
    if count <= 1:
        return [base]
    return [
        base.with_name(f"{base.stem}_{index}{base.suffix}")
        for index in range(1, count + 1)
    ]


def icon_output_paths(
    output_dir: str | Path,
    sizes: Sequence[int],
    prefix: str = DEFAULT_ICON_PREFIX,
) -> list[Path]:
    """
    Return ``<prefix>_<size>.png`` paths for each requested size.

    Repeated sizes get a counter so no two entries collide: the second
    64 becomes ``icon_64_2.png``.
    """
    out_dir = Path(output_dir)
    seen: Counter[int] = Counter()
    paths: list[Path] = []
    for size in sizes:
        seen[size] += 1
        occurrence = seen[size]
        name = f"{prefix}_{size}"
        if occurrence > 1:
            name = f"{name}_{occurrence}"
        paths.append(out_dir / f"{name}.png")
    return paths
