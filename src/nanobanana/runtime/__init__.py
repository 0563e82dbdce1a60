"""Runtime utilities for output paths, validation, and version helpers."""

from .output import icon_output_paths, setup_output_directory, variant_paths
from .validation import validate_input_paths, validate_output_paths
from .version import resolve_project_version

__all__ = [
    "icon_output_paths",
    "resolve_project_version",
    "setup_output_directory",
    "validate_input_paths",
    "validate_output_paths",
    "variant_paths",
]
