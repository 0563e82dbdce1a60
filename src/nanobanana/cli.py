"""CLI argument parsing and main entry point."""

from __future__ import annotations

import argparse
import math
import sys
from typing import TYPE_CHECKING, TypeVar

from pydantic import ValidationError

import nanobanana.config as nb_config
import nanobanana.main as nb_main
from nanobanana.config_defaults import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_DIRECTION,
    DEFAULT_ICON_SIZES,
    DEFAULT_ICON_WORKERS,
    DEFAULT_JPEG_BACKGROUND,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_MODEL,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_TOLERANCE,
)
from nanobanana.constants import (
    ASPECT_RATIOS,
    RESOLUTIONS,
    TOLERANCE_MAX,
    TOLERANCE_MIN,
)
from nanobanana.errors import ImageOpError
from nanobanana.generation import GenerationError
from nanobanana.imaging import Rectangle, ResizeSpec, parse_color
from nanobanana.logging_utils import logger, set_verbosity
from nanobanana.reporting import Reporter
from nanobanana.runtime import resolve_project_version
from nanobanana.type_defs import DIRECTIONS

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable, Sequence

    from nanobanana.type_defs import RGBA

_SIZE_PARTS = 2
_CROP_PARTS = 4
_PERCENT_SUFFIX = "%"

EXIT_OK = 0
EXIT_FAILURE = 1


def positive_int(text: str) -> int:
    """Argparse-style validator that enforces a strictly positive integer."""
    try:
        value = int(text)
    except ValueError as exc:
        msg = "must be an integer"
        raise ValueError(msg) from exc
    if value <= 0:
        msg = "must be positive"
        raise ValueError(msg)
    return value


def non_negative_int(text: str) -> int:
    """Validator for integers that may be zero, such as gaps."""
    try:
        value = int(text)
    except ValueError as exc:
        msg = "must be an integer"
        raise ValueError(msg) from exc
    if value < 0:
        msg = "must not be negative"
        raise ValueError(msg)
    return value


def positive_float(text: str) -> float:
    """Validator for finite, strictly positive numbers such as timeouts."""
    try:
        value = float(text)
    except ValueError as exc:
        msg = "must be a number"
        raise ValueError(msg) from exc
    if not math.isfinite(value) or value <= 0:
        msg = "must be a positive finite number"
        raise ValueError(msg)
    return value


def size_2d(text: str) -> tuple[int, int]:
    """Parse ``WxH`` strings into integer tuples and validate positivity."""
    parts = text.lower().split("x")
    if len(parts) != _SIZE_PARTS:
        msg = "must look like WxH, e.g., 800x600"
        raise ValueError(msg)
    try:
        width, height = int(parts[0]), int(parts[1])
    except ValueError as exc:
        msg = "width and height must be integers"
        raise ValueError(msg) from exc
    if width <= 0 or height <= 0:
        msg = "width and height must be positive"
        raise ValueError(msg)
    return width, height


def resize_arg(text: str) -> ResizeSpec:
    """Parse ``--resize`` as ``WxH`` or a percentage like ``50%``."""
    stripped = text.strip()
    if stripped.endswith(_PERCENT_SUFFIX):
        try:
            percent = float(stripped[:-1])
        except ValueError as exc:
            msg = "percentage must be a number, e.g., 50%"
            raise ValueError(msg) from exc
        if not math.isfinite(percent) or percent <= 0:
            msg = "percentage must be a positive finite number"
            raise ValueError(msg)
        return ResizeSpec.percentage(percent)
    return ResizeSpec.absolute(*size_2d(stripped))


def fit_arg(text: str) -> ResizeSpec:
    """Parse ``--fit WxH``."""
    return ResizeSpec.fit(*size_2d(text))


def fill_arg(text: str) -> ResizeSpec:
    """Parse ``--fill WxH``."""
    return ResizeSpec.fill(*size_2d(text))


def crop_arg(text: str) -> Rectangle:
    """Parse ``X,Y,W,H`` into a rectangle; bounds are checked later."""
    parts = [part.strip() for part in text.split(",")]
    if len(parts) != _CROP_PARTS:
        msg = "must look like X,Y,W,H, e.g., 10,10,200,100"
        raise ValueError(msg)
    try:
        x, y, width, height = (int(part) for part in parts)
    except ValueError as exc:
        msg = "crop values must be integers"
        raise ValueError(msg) from exc
    return Rectangle(x, y, width, height)


def sizes_arg(text: str) -> list[int]:
    """
    Parse a comma-separated list of icon sizes.

    Only integer syntax is checked here; sizes the renderer cannot
    produce are reported per size rather than rejected up front.
    """
    parts = [part.strip() for part in text.split(",") if part.strip()]
    if not parts:
        msg = "must list at least one size, e.g., 64,128"
        raise ValueError(msg)
    try:
        return [int(part) for part in parts]
    except ValueError as exc:
        msg = "sizes must be integers"
        raise ValueError(msg) from exc


def tolerance_arg(text: str) -> float:
    """Parse a 0-100 tolerance value."""
    try:
        value = float(text)
    except ValueError as exc:
        msg = "must be a number"
        raise ValueError(msg) from exc
    if not TOLERANCE_MIN <= value <= TOLERANCE_MAX:
        msg = f"must be between {TOLERANCE_MIN:g} and {TOLERANCE_MAX:g}"
        raise ValueError(msg)
    return value


def color_arg(text: str) -> RGBA:
    """Parse a color for flags that take one."""
    return parse_color(text)


T = TypeVar("T")


def _wrap_validator(
    validator: Callable[[str], T],
    error_cls: type[argparse.ArgumentTypeError] = argparse.ArgumentTypeError,
) -> Callable[[str], T]:
    """Convert ``ValueError`` from a validator into ``ArgumentTypeError``."""

    def wrapper(text: str) -> T:
        try:
            return validator(text)
        except ValueError as exc:
            raise error_cls(str(exc)) from exc

    return wrapper


def _add_output_arg(
    parser: argparse.ArgumentParser,
    help_text: str = "Output image path (.png, .jpg, .webp)",
) -> None:
    parser.add_argument("-o", "--output", required=True, help=help_text)


def _add_generate_parser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> None:
    p = subparsers.add_parser(
        "generate",
        help="Generate images from a text prompt",
        description=(
            "Generate images from a text prompt, or edit an existing image "
            "with -i. The prompt may be given as words, with -p FILE, or on "
            "stdin (pass '-' or pipe it in)."
        ),
    )
    p.add_argument("prompt", nargs="*", help="Prompt words, or '-' for stdin")
    _add_output_arg(p)
    p.add_argument(
        "-p", "--prompt-file", help="Read the prompt from a file")
    p.add_argument(
        "-i", "--input", help="Source image to edit instead of generating")
    p.add_argument(
        "-c", "--count", type=_wrap_validator(positive_int),
        help="Number of variants to generate (1-10)",
        default=argparse.SUPPRESS)
    p.add_argument(
        "--aspect-ratio", choices=list(ASPECT_RATIOS),
        help=f"Aspect ratio (default: {DEFAULT_ASPECT_RATIO})",
        default=argparse.SUPPRESS)
    p.add_argument(
        "--resolution", type=str.upper, choices=list(RESOLUTIONS),
        help="Output resolution; 4K needs the pro model",
        default=argparse.SUPPRESS)
    p.add_argument(
        "--no-overwrite", action="store_true",
        help="Fail if an output file already exists")
    p.set_defaults(handler=nb_main.run_generate)


def _add_icon_parser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> None:
    p = subparsers.add_parser(
        "icon",
        help="Render a square icon set",
        description=(
            "Resize one image to every requested square size. The source "
            "is an existing image (-i) or is generated from the prompt."
        ),
    )
    p.add_argument("prompt", nargs="*", help="Prompt used when -i is absent")
    p.add_argument("-i", "--input", help="Existing image to resize")
    p.add_argument(
        "-o", "--output", default="icons",
        help="Directory for the icon files (default: icons)")
    p.add_argument(
        "--sizes", type=_wrap_validator(sizes_arg),
        help=("Comma-separated edge lengths (default: "
              f"{','.join(map(str, DEFAULT_ICON_SIZES))})"),
        default=argparse.SUPPRESS)
    p.add_argument(
        "--workers", type=_wrap_validator(positive_int),
        help=f"Parallel resize workers (default: {DEFAULT_ICON_WORKERS})",
        default=argparse.SUPPRESS)
    p.add_argument(
        "--prefix", help="File name prefix (default: icon)",
        default=argparse.SUPPRESS)
    p.add_argument(
        "--no-overwrite", action="store_true",
        help="Fail if an icon file already exists")
    p.set_defaults(handler=nb_main.run_icon)


def _add_transform_parser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> None:
    p = subparsers.add_parser(
        "transform",
        help="Resize, crop, rotate, and flip an image",
        description=(
            "Apply transforms in the fixed order resize, crop, rotate, "
            "flip, regardless of the order flags are given in."
        ),
    )
    p.add_argument("input", help="Input image")
    _add_output_arg(p)
    sizing = p.add_mutually_exclusive_group()
    sizing.add_argument(
        "--resize", dest="resize", type=_wrap_validator(resize_arg),
        help="Stretch to WxH or scale by P%%")
    sizing.add_argument(
        "--fit", dest="resize", type=_wrap_validator(fit_arg),
        help="Scale to fit inside WxH, keeping aspect")
    sizing.add_argument(
        "--fill", dest="resize", type=_wrap_validator(fill_arg),
        help="Scale to cover WxH and center crop, keeping aspect")
    p.add_argument(
        "--crop", type=_wrap_validator(crop_arg),
        help="Crop rectangle X,Y,W,H (applied after resize)")
    p.add_argument(
        "--rotate", type=float,
        help="Clockwise degrees; non right angles need --rotate-fill")
    p.add_argument(
        "--rotate-fill", type=_wrap_validator(color_arg),
        help="Corner color for arbitrary rotations, e.g. transparent")
    p.add_argument(
        "--flip", action="store_true", help="Mirror top to bottom")
    p.add_argument(
        "--flop", action="store_true", help="Mirror left to right")
    p.add_argument(
        "--no-overwrite", action="store_true",
        help="Fail if the output file already exists")
    p.set_defaults(handler=nb_main.run_transform)


def _add_transparent_parser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> None:
    p = subparsers.add_parser(
        "transparent", help="Inspect or create transparency")
    actions = p.add_subparsers(dest="transparent_command", required=True)

    inspect_p = actions.add_parser(
        "inspect", help="Report alpha statistics")
    inspect_p.add_argument("input", help="Input image")
    inspect_p.set_defaults(handler=nb_main.run_transparent_inspect)

    make_p = actions.add_parser(
        "make", help="Make a background color transparent")
    make_p.add_argument("input", help="Input image")
    _add_output_arg(make_p)
    make_p.add_argument(
        "--color",
        help="Color to remove; detected from the corners when omitted")
    make_p.add_argument(
        "--tolerance", type=_wrap_validator(tolerance_arg),
        help=f"Match tolerance 0-100 (default: {DEFAULT_TOLERANCE:g})",
        default=argparse.SUPPRESS)
    make_p.add_argument(
        "--no-overwrite", action="store_true",
        help="Fail if the output file already exists")
    make_p.set_defaults(handler=nb_main.run_transparent_make)

    trim_p = actions.add_parser(
        "trim", help="Crop away fully transparent borders")
    trim_p.add_argument("input", help="Input image")
    _add_output_arg(trim_p)
    trim_p.add_argument(
        "--no-overwrite", action="store_true",
        help="Fail if the output file already exists")
    trim_p.set_defaults(handler=nb_main.run_transparent_trim)


def _add_combine_parser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> None:
    p = subparsers.add_parser(
        "combine",
        help="Combine images into a strip or grid",
        description=(
            "Place images side by side, stacked, or in a grid. Inputs are "
            "copied onto the canvas as-is, alpha included."
        ),
    )
    p.add_argument("inputs", nargs="+", help="Input images, in order")
    _add_output_arg(p)
    p.add_argument(
        "--direction", choices=list(DIRECTIONS),
        help=f"Layout direction (default: {DEFAULT_DIRECTION})",
        default=argparse.SUPPRESS)
    p.add_argument(
        "--gap", type=_wrap_validator(non_negative_int),
        help="Pixels between images (default: 0)",
        default=argparse.SUPPRESS)
    p.add_argument(
        "--columns", type=_wrap_validator(positive_int),
        help="Grid columns (default: ceil(sqrt(n)))",
        default=argparse.SUPPRESS)
    p.add_argument(
        "--background",
        help="Canvas color for gaps and empty cells (default: transparent)",
        default=argparse.SUPPRESS)
    p.add_argument(
        "--no-overwrite", action="store_true",
        help="Fail if the output file already exists")
    p.set_defaults(handler=nb_main.run_combine)


def build_arg_parser() -> argparse.ArgumentParser:
    """Construct the argument parser for the command-line interface."""
    p = argparse.ArgumentParser(
        prog="nanobanana",
        description="Generate and edit images with Gemini and local tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  nanobanana generate \"a sunset over mountains\" -o sunset.png\n"
            "  nanobanana icon -i logo.png -o icons --sizes 16,32,64\n"
            "  nanobanana transform in.png -o out.png --resize 50% --flop\n"
            "  nanobanana transparent make sprite.png -o clean.png\n"
            "  nanobanana combine a.png b.png c.png -o sheet.png "
            "--direction grid"
        ),
    )
    p.add_argument(
        "--version", action="version",
        version=f"%(prog)s {resolve_project_version()}")

    out = p.add_argument_group("output")
    out.add_argument(
        "--json", action="store_true",
        help="Write a single JSON result document to stdout")
    verbosity = out.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging")
    verbosity.add_argument(
        "-q", "--quiet", action="store_true",
        help="Only log warnings and errors")

    gen = p.add_argument_group("generation")
    gen.add_argument(
        "--api-key",
        help="Gemini API key (default: GEMINI_API_KEY or GOOGLE_API_KEY)")
    gen.add_argument(
        "-m", "--model",
        help=f"Model alias (flash, pro) or full id (default: {DEFAULT_MODEL})",
        default=argparse.SUPPRESS)
    gen.add_argument(
        "--timeout", type=_wrap_validator(positive_float),
        metavar="SECONDS",
        help=f"Request timeout (default: {DEFAULT_TIMEOUT_SECONDS:g})",
        default=argparse.SUPPRESS)

    enc = p.add_argument_group("encoding")
    enc.add_argument(
        "--jpeg-quality", type=_wrap_validator(positive_int),
        metavar="Q",
        help=f"JPEG quality, 1-95 (default: {DEFAULT_JPEG_QUALITY})",
        default=argparse.SUPPRESS)
    enc.add_argument(
        "--jpeg-background", metavar="COLOR",
        help="Color JPEG output is flattened over "
             f"(default: {DEFAULT_JPEG_BACKGROUND})",
        default=argparse.SUPPRESS)

    cfg = p.add_argument_group("config")
    cfg.add_argument(
        "--config", type=str,
        help="Path to config.toml file")
    cfg.add_argument(
        "--validate-config-only", action="store_true",
        help="Validate config file and exit without running a command")

    subparsers = p.add_subparsers(dest="command", metavar="COMMAND")
    _add_generate_parser(subparsers)
    _add_icon_parser(subparsers)
    _add_transform_parser(subparsers)
    _add_transparent_parser(subparsers)
    _add_combine_parser(subparsers)
    return p


def command_name(args: argparse.Namespace) -> str:
    """Return the reported command name, e.g. ``transparent make``."""
    command = getattr(args, "command", None) or "config"
    sub = getattr(args, "transparent_command", None)
    return f"{command} {sub}" if sub else command


def _report_failure(
    reporter: Reporter,
    command: str,
    exc: Exception,
) -> int:
    """Map a known exception onto an error envelope and exit status."""
    if isinstance(exc, GenerationError):
        reporter.error(command, exc.code, exc.message, exc.hint)
    elif isinstance(exc, ImageOpError):
        reporter.error(command, exc.code, exc.message, details=exc.details)
    elif isinstance(exc, ValidationError):
        reporter.error(
            command, "INVALID_CONFIG", str(exc),
            "Check the config file and flag values",
        )
    elif isinstance(exc, FileExistsError):
        reporter.error(
            command, "FILE_EXISTS", str(exc),
            "Use a different output path or remove --no-overwrite",
        )
    elif isinstance(exc, FileNotFoundError):
        reporter.error(command, "FILE_NOT_FOUND", str(exc))
    elif isinstance(exc, OSError):
        reporter.error(
            command, "FILE_ERROR", str(exc),
            "Check that the path is a writable file, not a directory",
        )
    else:
        reporter.error(command, "INVALID_ARGUMENT", str(exc))
    return EXIT_FAILURE


def run_from_args(
    args: argparse.Namespace,
    reporter: Reporter | None = None,
) -> int:
    """Run the selected command and return the process exit status."""
    set_verbosity(verbose=args.verbose, quiet=args.quiet)
    reporter = reporter or Reporter(json_mode=args.json)
    command = command_name(args)

    try:
        base_cfg: nb_config.NanobananaConfig | None = None
        if args.config:
            base_cfg = nb_config.ConfigLoader.load(args.config)
            logger.debug("Loaded config from: %s", args.config)
        if args.validate_config_only:
            if not args.config:
                msg = "--validate-config-only requires --config"
                raise ValueError(msg)
            logger.info("Config %s validated successfully.", args.config)
            reporter.success(
                "config",
                {"config": args.config, "valid": True},
                [f"Config {args.config} is valid"],
            )
            return EXIT_OK

        cfg = nb_config.build_config_from_cli(vars(args), base_config=base_cfg)
        return args.handler(args, cfg, reporter)
    except (GenerationError, ValueError, OSError) as exc:
        logger.debug("Command %s failed", command, exc_info=True)
        return _report_failure(reporter, command, exc)


def main(argv: Sequence[str] | None = None) -> None:
    """Run the command-line interface and exit with its status."""
    arg_parser = build_arg_parser()
    args = arg_parser.parse_args(argv)
    if args.command is None and not args.validate_config_only:
        arg_parser.error("a command is required")
    sys.exit(run_from_args(args))


if __name__ == "__main__":  # pragma: no cover
    main()
