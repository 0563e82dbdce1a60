"""Helpers for accessing the installed package version."""

from __future__ import annotations

import tomllib
from importlib import metadata as importlib_metadata
from pathlib import Path

from nanobanana.logging_utils import logger

_DISTRIBUTION_NAME = "nanobanana"
_FALLBACK_VERSION = "0.0.0"


def resolve_project_version() -> str:
    """
    Return the best-guess project version.

    Checks the installed distribution first, then walks up from this file
    looking for a pyproject.toml with a project.version entry, and falls
    back to "0.0.0" for development checkouts.
    """
    try:
        return importlib_metadata.version(_DISTRIBUTION_NAME)
    except importlib_metadata.PackageNotFoundError:
        pass

    for parent in Path(__file__).resolve().parents:
        pyproject_path = parent / "pyproject.toml"
        if not pyproject_path.is_file():
            continue
        try:
            with pyproject_path.open("rb") as handle:
                data = tomllib.load(handle)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            logger.warning("Error reading %s: %s", pyproject_path, exc)
            break
        version = data.get("project", {}).get("version")
        if isinstance(version, str) and version.strip():
            return version.strip()

    return _FALLBACK_VERSION
