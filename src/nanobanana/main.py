"""Top-level orchestration for each nanobanana command."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

from tqdm import tqdm

import nanobanana.image_io as nb_image_io
import nanobanana.runtime as nb_runtime
from nanobanana.generation import (
    GenerationClient,
    ImageRequest,
    resolve_api_key,
)
from nanobanana.imaging import (
    ColorReference,
    LayoutSpec,
    TransformSpec,
    apply_transforms,
    auto_columns,
    combine,
    format_color,
    generate_sizes,
    inspect,
    make_transparent,
    parse_color,
    parse_rgb,
    trim_transparent,
)
from nanobanana.logging_utils import logger

if TYPE_CHECKING:  # pragma: no cover
    import argparse
    from collections.abc import Sequence

    from nanobanana.config import NanobananaConfig
    from nanobanana.generation import GeneratedImage
    from nanobanana.imaging import PixelBuffer
    from nanobanana.reporting import Reporter

_STDIN_MARKER = "-"


def read_prompt(
    words: Sequence[str],
    prompt_file: str | None = None,
    stdin: TextIO | None = None,
) -> str:
    """
    Resolve the prompt from a file, stdin, or positional words.

    A prompt file wins, then a lone ``-`` (or piped stdin with no words),
    then the words joined by spaces. Raises ValueError when the result
    is empty.
    """
    source = sys.stdin if stdin is None else stdin
    if prompt_file:
        try:
            text = Path(prompt_file).read_text(encoding="utf-8")
        except FileNotFoundError as e:
            msg = f"Prompt file not found: {prompt_file}"
            raise FileNotFoundError(msg) from e
    elif list(words) == [_STDIN_MARKER] or (not words and not source.isatty()):
        text = source.read()
    else:
        text = " ".join(words)

    prompt = text.strip()
    if not prompt:
        msg = "Prompt cannot be empty; pass it as arguments, -p FILE, or stdin"
        raise ValueError(msg)
    return prompt


def _save_kwargs(config: NanobananaConfig) -> dict[str, Any]:
    """Shared encoder options taken from the [output] section."""
    return {
        "overwrite": config.output.overwrite,
        "background": parse_rgb(config.output.jpeg_background),
        "quality": config.output.jpeg_quality,
    }


def _image_entry(path: Path, buffer: PixelBuffer) -> dict[str, Any]:
    return {
        "path": str(path),
        "width": buffer.width,
        "height": buffer.height,
        "format": nb_image_io.format_for_path(path),
    }


def _save_and_report(
    buffer: PixelBuffer,
    path: Path | str,
    config: NanobananaConfig,
    reporter: Reporter,
) -> dict[str, Any]:
    saved = nb_image_io.save_image(buffer, path, **_save_kwargs(config))
    reporter.image_saved(saved, buffer.width, buffer.height)
    return _image_entry(saved, buffer)


def _make_client(
    args: argparse.Namespace,
    config: NanobananaConfig,
) -> GenerationClient:
    return GenerationClient(
        resolve_api_key(getattr(args, "api_key", None)),
        config.generation.model,
        timeout_seconds=config.generation.timeout_seconds,
    )


def _generate_images(
    client: GenerationClient,
    request: ImageRequest,
    reporter: Reporter,
) -> list[GeneratedImage]:
    reporter.progress("Generating image with %s...", client.model)
    return client.generate(request)


def run_generate(
    args: argparse.Namespace,
    config: NanobananaConfig,
    reporter: Reporter,
) -> int:
    """Generate (or edit) images and save every variant."""
    prompt = read_prompt(args.prompt, args.prompt_file)
    source_bytes: bytes | None = None
    if args.input:
        (input_path,) = nb_runtime.validate_input_paths([args.input])
        reporter.progress("Editing image: %s", input_path)
        source_bytes = input_path.read_bytes()

    gen = config.generation
    request = ImageRequest(
        prompt=prompt,
        aspect_ratio=gen.aspect_ratio,
        resolution=gen.resolution,
        count=gen.count,
        source_image=source_bytes,
    )
    paths = nb_runtime.variant_paths(args.output, request.count, ".png")
    nb_runtime.validate_output_paths(paths, overwrite=config.output.overwrite)

    client = _make_client(args, config)
    images = _generate_images(client, request, reporter)

    saved = [
        _save_and_report(image.to_buffer(), path, config, reporter)
        for path, image in zip(paths, images, strict=True)
    ]
    reporter.success(
        "generate",
        {"prompt": prompt, "model": client.model, "images": saved},
    )
    return 0


def run_icon(
    args: argparse.Namespace,
    config: NanobananaConfig,
    reporter: Reporter,
) -> int:
    """Render a square icon set from an input image or a fresh generation."""
    if args.input:
        source = nb_image_io.load_image(args.input)
    else:
        prompt = read_prompt(args.prompt)
        client = _make_client(args, config)
        request = ImageRequest(
            prompt=prompt,
            aspect_ratio="1:1",
            resolution=config.generation.resolution,
        )
        source = _generate_images(client, request, reporter)[0].to_buffer()

    sizes = config.icon.sizes
    out_dir = nb_runtime.setup_output_directory(args.output)
    paths = nb_runtime.icon_output_paths(out_dir, sizes, config.icon.prefix)
    nb_runtime.validate_output_paths(paths, overwrite=config.output.overwrite)

    def progress(records: Any) -> Any:
        return tqdm(
            records,
            total=len(sizes),
            desc="Icons",
            unit="icon",
            file=sys.stderr,
            disable=reporter.json_mode or args.quiet,
        )

    result = generate_sizes(
        source, sizes, max_workers=config.icon.workers, progress=progress,
    )
    icons = []
    for output in result.outputs:
        entry = _save_and_report(
            output.buffer, paths[output.index], config, reporter,
        )
        icons.append({"size": output.size, **entry})

    failures = [failure.to_dict() for failure in result.failures]
    lines = [
        f"Failed size {failure['size']}: {failure['message']}"
        for failure in failures
    ]
    reporter.success(
        "icon",
        {"output_dir": str(out_dir), "icons": icons, "failures": failures},
        lines,
        ok=result.ok,
    )
    return 0 if result.ok else 1


def run_transform(
    args: argparse.Namespace,
    config: NanobananaConfig,
    reporter: Reporter,
) -> int:
    """Apply resize, crop, rotate, and flip in their fixed order."""
    source = nb_image_io.load_image(args.input)
    spec = TransformSpec(
        resize=args.resize,
        crop=args.crop,
        rotate=args.rotate,
        rotate_fill=args.rotate_fill,
        flip_horizontal=args.flop,
        flip_vertical=args.flip,
    )
    result = apply_transforms(source, spec)
    entry = _save_and_report(result, args.output, config, reporter)
    reporter.success(
        "transform",
        {
            "input": str(args.input),
            "source_size": {"width": source.width, "height": source.height},
            "output": entry,
        },
    )
    return 0


def run_transparent_inspect(
    args: argparse.Namespace,
    config: NanobananaConfig,  # noqa: ARG001
    reporter: Reporter,
) -> int:
    """Print alpha statistics for one image."""
    report = inspect(nb_image_io.load_image(args.input))
    data = {"input": str(args.input), **report.to_dict()}
    lines = [
        f"{args.input}: {report.width}x{report.height}",
        f"  opaque: {report.opaque_count}",
        f"  transparent: {report.transparent_count}",
        f"  semi-transparent: {report.semi_transparent_count}",
    ]
    if report.bounding_box is not None:
        box = report.bounding_box
        lines.append(
            f"  content bounds: {box.width}x{box.height}+{box.x}+{box.y}",
        )
    reporter.success("transparent inspect", data, lines)
    return 0


def run_transparent_make(
    args: argparse.Namespace,
    config: NanobananaConfig,
    reporter: Reporter,
) -> int:
    """Key out a background color, detecting it when none is given."""
    source = nb_image_io.load_image(args.input)
    tolerance = config.transparency.tolerance
    if args.color:
        color_ref = ColorReference(parse_rgb(args.color), tolerance)
        result = make_transparent(source, color_ref)
        color = format_color(color_ref.rgb)
    else:
        result = make_transparent(source, auto_tolerance=tolerance)
        color = None
    entry = _save_and_report(result, args.output, config, reporter)
    report = inspect(result)
    reporter.success(
        "transparent make",
        {
            "input": str(args.input),
            "color": color or "auto",
            "tolerance": tolerance,
            "transparent_pixels": report.transparent_count,
            "output": entry,
        },
    )
    return 0


def run_transparent_trim(
    args: argparse.Namespace,
    config: NanobananaConfig,
    reporter: Reporter,
) -> int:
    """Crop fully transparent borders."""
    source = nb_image_io.load_image(args.input)
    result = trim_transparent(source)
    entry = _save_and_report(result, args.output, config, reporter)
    reporter.success(
        "transparent trim",
        {
            "input": str(args.input),
            "source_size": {"width": source.width, "height": source.height},
            "output": entry,
        },
    )
    return 0


def run_combine(
    args: argparse.Namespace,
    config: NanobananaConfig,
    reporter: Reporter,
) -> int:
    """Combine several images into a strip or grid."""
    paths = nb_runtime.validate_input_paths(args.inputs)
    buffers = [nb_image_io.load_image(path) for path in paths]
    cfg = config.combine
    columns = cfg.columns or auto_columns(len(buffers))
    spec = LayoutSpec(
        direction=cfg.direction,
        gap=cfg.gap,
        columns=columns,
        background=parse_color(cfg.background),
    )
    result = combine(buffers, spec)
    entry = _save_and_report(result, args.output, config, reporter)
    logger.debug("Combined inputs: %s", ", ".join(map(str, paths)))
    reporter.success(
        "combine",
        {
            "inputs": [str(path) for path in paths],
            "direction": cfg.direction,
            "gap": cfg.gap,
            "columns": columns if cfg.direction == "grid" else None,
            "output": entry,
        },
    )
    return 0
