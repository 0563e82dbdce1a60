"""Image decoding, encoding, and file persistence around PixelBuffer."""
from __future__ import annotations

import io
from pathlib import Path
from typing import TYPE_CHECKING

from PIL import Image, ImageOps, UnidentifiedImageError

from nanobanana.config_defaults import DEFAULT_JPEG_QUALITY
from nanobanana.constants import (
    ALPHA_OPAQUE,
    COLOR_MODE_RGB,
    COLOR_MODE_RGBA,
    COLOR_WHITE,
    FORMAT_JPEG,
    FORMAT_PNG,
    FORMAT_WEBP,
    JPEG_QUALITY_MAX,
    JPEG_QUALITY_MIN,
    SUFFIX_FORMATS,
)
from nanobanana.errors import DecodeError, EncodeError
from nanobanana.imaging.buffer import PixelBuffer
from nanobanana.logging_utils import logger

if TYPE_CHECKING:  # pragma: no cover
    from nanobanana.type_defs import RGB, ImageFormat

_PIL_FORMATS = {
    FORMAT_PNG: "PNG",
    FORMAT_JPEG: "JPEG",
    FORMAT_WEBP: "WEBP",
}


def format_for_path(path: Path | str) -> ImageFormat:
    """
    Return the codec format implied by a file suffix.

    Raises:
        EncodeError: If the suffix is not a supported image format.

    """
    suffix = Path(path).suffix.lower()
    fmt = SUFFIX_FORMATS.get(suffix)
    if fmt is None:
        supported = ", ".join(sorted(SUFFIX_FORMATS))
        msg = f"Unsupported output format {suffix or '(none)'!r}; "
        msg += f"use one of {supported}"
        raise EncodeError(msg, path=str(path), suffix=suffix)
    return fmt  # type: ignore[return-value]


def flatten(img: Image.Image, *, background: RGB) -> Image.Image:
    """Alpha composite an RGBA image over an opaque background color."""
    if img.mode == COLOR_MODE_RGB:
        return img
    bg = Image.new(COLOR_MODE_RGBA, img.size, (*background, ALPHA_OPAQUE))
    comp = Image.alpha_composite(bg, img.convert(COLOR_MODE_RGBA))
    return comp.convert(COLOR_MODE_RGB)


def decode_image(data: bytes) -> PixelBuffer:
    """
    Decode encoded image bytes into an RGBA pixel buffer.

    EXIF orientation is applied so the buffer matches what viewers show.

    Raises:
        DecodeError: If the bytes are empty, corrupt, or not an image
            format Pillow understands.

    """
    if not data:
        msg = "Cannot decode an empty byte string"
        raise DecodeError(msg, length=0)
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            oriented = ImageOps.exif_transpose(img)
            return PixelBuffer.from_image(oriented)
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        msg = f"Could not decode image data: {exc!s}"
        raise DecodeError(msg, length=len(data)) from exc


def sniff_mime_type(data: bytes) -> str:
    """Return the MIME type of encoded image bytes, e.g. ``image/png``."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError) as exc:
        msg = f"Could not identify image data: {exc!s}"
        raise DecodeError(msg, length=len(data)) from exc
    mime = Image.MIME.get(fmt or "")
    if mime is None:
        msg = f"Image format {fmt!r} has no known MIME type"
        raise DecodeError(msg, format=fmt)
    return mime


def encode_image(
    buffer: PixelBuffer,
    fmt: ImageFormat = FORMAT_PNG,
    *,
    background: RGB = COLOR_WHITE,
    quality: int = DEFAULT_JPEG_QUALITY,
) -> bytes:
    """
    Encode a pixel buffer as PNG, JPEG, or WebP bytes.

    PNG and WebP keep the alpha channel losslessly. JPEG has no alpha,
    so the buffer is flattened over ``background`` first.

    Args:
        buffer: Pixels to encode.
        fmt: Target format name.
        background: Matte color for formats without alpha.
        quality: JPEG quality (1-95); ignored by lossless formats.

    Returns:
        Encoded image bytes.

    Raises:
        EncodeError: If the format is unknown, the quality is out of
            range, or Pillow fails to encode.

    """
    pil_format = _PIL_FORMATS.get(fmt)
    if pil_format is None:
        msg = f"Unsupported image format {fmt!r}"
        raise EncodeError(msg, format=fmt)
    if not JPEG_QUALITY_MIN <= quality <= JPEG_QUALITY_MAX:
        msg = (f"JPEG quality must be between {JPEG_QUALITY_MIN} and "
               f"{JPEG_QUALITY_MAX}, got {quality}")
        raise EncodeError(msg, quality=quality)

    img = buffer.to_image()
    out = io.BytesIO()
    try:
        if fmt == FORMAT_JPEG:
            flatten(img, background=background).save(
                out, pil_format, quality=quality)
        elif fmt == FORMAT_WEBP:
            img.save(out, pil_format, lossless=True)
        else:
            img.save(out, pil_format)
    except (OSError, ValueError) as exc:
        msg = f"Could not encode image as {fmt}: {exc!s}"
        raise EncodeError(msg, format=fmt) from exc
    return out.getvalue()


def load_image(path: Path | str) -> PixelBuffer:
    """
    Load an image file into a pixel buffer.

    Raises:
        FileNotFoundError: If the image file does not exist.
        DecodeError: If the file cannot be decoded.

    """
    file_path = Path(path)
    try:
        data = file_path.read_bytes()
    except FileNotFoundError as e:
        msg = f"Image file not found: '{path}'"
        raise FileNotFoundError(msg) from e
    except IsADirectoryError as e:
        msg = f"Expected an image file but got a directory: '{path}'"
        raise FileNotFoundError(msg) from e
    try:
        buffer = decode_image(data)
    except DecodeError as e:
        msg = f"Error loading image '{path}': {e.message}"
        raise DecodeError(msg, path=str(path)) from e
    logger.debug("Loaded %s (%dx%d)", file_path, buffer.width, buffer.height)
    return buffer


def save_image(
    buffer: PixelBuffer,
    path: Path | str,
    *,
    overwrite: bool = True,
    background: RGB = COLOR_WHITE,
    quality: int = DEFAULT_JPEG_QUALITY,
) -> Path:
    """
    Encode ``buffer`` in the format implied by ``path`` and write it.

    Missing parent directories are created. Returns the written path.

    Raises:
        FileExistsError: If ``overwrite`` is False and ``path`` exists.
        EncodeError: If the suffix is unsupported or encoding fails.

    """
    out_path = Path(path)
    fmt = format_for_path(out_path)
    if not overwrite and out_path.exists():
        msg = f"Output file already exists: {out_path}"
        raise FileExistsError(msg)

    data = encode_image(buffer, fmt, background=background, quality=quality)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(data)
    logger.debug("Saved %s (%d bytes)", out_path, len(data))
    return out_path
