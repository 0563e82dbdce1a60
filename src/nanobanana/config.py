"""
Configuration schema and loader for nanobanana.

Defines Pydantic models representing structured configuration sections
and a TOML-based config loader with validation support.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from pydantic import BaseModel, Field, field_validator

from nanobanana.config_defaults import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_BACKGROUND,
    DEFAULT_COUNT,
    DEFAULT_DIRECTION,
    DEFAULT_GAP,
    DEFAULT_ICON_PREFIX,
    DEFAULT_ICON_SIZES,
    DEFAULT_ICON_WORKERS,
    DEFAULT_JPEG_BACKGROUND,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_MODEL,
    DEFAULT_OVERWRITE,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_TOLERANCE,
)
from nanobanana.constants import (
    ASPECT_RATIOS,
    COUNT_MAX,
    COUNT_MIN,
    ICON_WORKERS_MAX,
    JPEG_QUALITY_MAX,
    JPEG_QUALITY_MIN,
    RESOLUTIONS,
    TOLERANCE_MAX,
    TOLERANCE_MIN,
)
from nanobanana.imaging.color import parse_color
from nanobanana.type_defs import Direction


def _check_color(value: str) -> str:
    parse_color(value)
    return value


class TransparencyConfig(BaseModel):
    """Control background keying."""

    tolerance: float = Field(
        DEFAULT_TOLERANCE, ge=TOLERANCE_MIN, le=TOLERANCE_MAX,
    )


class CombineConfig(BaseModel):
    """Control multi-image layout; ``columns`` None means near-square."""

    direction: Direction = Field(DEFAULT_DIRECTION)
    gap: int = Field(DEFAULT_GAP, ge=0)
    columns: int | None = Field(None, ge=1)
    background: str = Field(DEFAULT_BACKGROUND)

    @field_validator("background")
    @classmethod
    def _known_background(cls, value: str) -> str:
        return _check_color(value)


class IconConfig(BaseModel):
    """Control icon set rendering."""

    sizes: list[int] = Field(
        default_factory=lambda: list(DEFAULT_ICON_SIZES), min_length=1,
    )
    workers: int = Field(DEFAULT_ICON_WORKERS, ge=1, le=ICON_WORKERS_MAX)
    prefix: str = Field(DEFAULT_ICON_PREFIX, min_length=1)


class GenerationConfig(BaseModel):
    """Control requests sent to the image model."""

    model: str = Field(DEFAULT_MODEL, min_length=1)
    aspect_ratio: str = Field(DEFAULT_ASPECT_RATIO)
    resolution: str | None = None
    count: int = Field(DEFAULT_COUNT, ge=COUNT_MIN, le=COUNT_MAX)
    timeout_seconds: float = Field(DEFAULT_TIMEOUT_SECONDS, gt=0)

    @field_validator("aspect_ratio")
    @classmethod
    def _known_aspect_ratio(cls, value: str) -> str:
        if value not in ASPECT_RATIOS:
            msg = f"must be one of {', '.join(ASPECT_RATIOS)}"
            raise ValueError(msg)
        return value

    @field_validator("resolution")
    @classmethod
    def _known_resolution(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.upper()
        if normalized not in RESOLUTIONS:
            msg = f"must be one of {', '.join(RESOLUTIONS)}"
            raise ValueError(msg)
        return normalized


class OutputConfig(BaseModel):
    """Control how results are written."""

    overwrite: bool = DEFAULT_OVERWRITE
    jpeg_background: str = Field(DEFAULT_JPEG_BACKGROUND)
    jpeg_quality: int = Field(
        DEFAULT_JPEG_QUALITY,
        ge=JPEG_QUALITY_MIN,
        le=JPEG_QUALITY_MAX,
    )

    @field_validator("jpeg_background")
    @classmethod
    def _known_jpeg_background(cls, value: str) -> str:
        return _check_color(value)


class NanobananaConfig(BaseModel):
    """
    Root configuration object combining all supported sections.

    Mirrors the structure of config.toml, grouping related parameters
    under one table per command family.
    """

    # model_validate({}) populates every section from its Field defaults
    transparency: TransparencyConfig = Field(
        default_factory=lambda: TransparencyConfig.model_validate({}),
    )
    combine: CombineConfig = Field(
        default_factory=lambda: CombineConfig.model_validate({}),
    )
    icon: IconConfig = Field(
        default_factory=lambda: IconConfig.model_validate({}),
    )
    generation: GenerationConfig = Field(
        default_factory=lambda: GenerationConfig.model_validate({}),
    )
    output: OutputConfig = Field(
        default_factory=lambda: OutputConfig.model_validate({}),
    )


class ConfigLoader:
    """
    Loads and parses a TOML configuration file into a typed config object.

    Falls back to defaults for any missing subsections or fields.
    """

    @staticmethod
    def load(path: str | Path) -> NanobananaConfig:
        """
        Load a nanobanana configuration from a TOML file.

        Returns a validated NanobananaConfig instance based on the file
        contents.
        """
        config_path = Path(path)
        if not config_path.is_file():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)

        with config_path.open("r", encoding="utf-8") as f:
            doc = tomlkit.load(f)

        return NanobananaConfig.model_validate(doc.unwrap())


# CLI destination name -> (config section, field)
CLI_FIELD_MAP: dict[str, tuple[str, str]] = {
    "tolerance": ("transparency", "tolerance"),
    "direction": ("combine", "direction"),
    "gap": ("combine", "gap"),
    "columns": ("combine", "columns"),
    "background": ("combine", "background"),
    "sizes": ("icon", "sizes"),
    "workers": ("icon", "workers"),
    "prefix": ("icon", "prefix"),
    "model": ("generation", "model"),
    "aspect_ratio": ("generation", "aspect_ratio"),
    "resolution": ("generation", "resolution"),
    "count": ("generation", "count"),
    "timeout": ("generation", "timeout_seconds"),
    "jpeg_background": ("output", "jpeg_background"),
    "jpeg_quality": ("output", "jpeg_quality"),
}


def build_config_from_cli(
    args: dict[str, Any],
    base_config: NanobananaConfig | None = None,
) -> NanobananaConfig:
    """
    Overlay explicitly supplied CLI values onto a base configuration.

    Only keys present in ``args`` with a non-None value override the base,
    so flags left at ``argparse.SUPPRESS`` keep config file values. The
    merged result is validated again, so bad CLI values raise
    ``pydantic.ValidationError`` just like bad file values.
    """
    base = base_config or NanobananaConfig()
    data = base.model_dump()

    for key, (section, field) in CLI_FIELD_MAP.items():
        value = args.get(key)
        if value is not None:
            data[section][field] = value

    if args.get("no_overwrite"):
        data["output"]["overwrite"] = False

    return NanobananaConfig.model_validate(data)
