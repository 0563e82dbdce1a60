"""
Error types raised by the imaging core and the codec boundary.

Every error is a local validation failure on caller input, so none of
them are retryable. Each carries a stable ``code`` for structured
output and the offending parameter values in ``details``.
"""

from __future__ import annotations

from typing import Any


class ImageOpError(ValueError):
    """Base class for all image operation failures."""

    code = "IMAGE_ERROR"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation of the error."""
        return {
            "code": self.code,
            "message": self.message,
            "details": dict(self.details),
        }


class InvalidDimensionError(ImageOpError):
    """A requested output dimension would be smaller than 1x1."""

    code = "INVALID_DIMENSION"


class RectOutOfBoundsError(ImageOpError):
    """A crop rectangle does not lie fully within the source buffer."""

    code = "RECT_OUT_OF_BOUNDS"


class UnsupportedRotationError(ImageOpError):
    """A rotation angle cannot be honored with the given parameters."""

    code = "UNSUPPORTED_ROTATION"


class EmptyInputError(ImageOpError):
    """An operation received nothing to work on."""

    code = "EMPTY_INPUT"


class DecodeError(ImageOpError):
    """Encoded bytes could not be decoded into a pixel buffer."""

    code = "DECODE_ERROR"


class EncodeError(ImageOpError):
    """A pixel buffer could not be encoded in the requested format."""

    code = "ENCODE_ERROR"


__all__ = [
    "DecodeError",
    "EmptyInputError",
    "EncodeError",
    "ImageOpError",
    "InvalidDimensionError",
    "RectOutOfBoundsError",
    "UnsupportedRotationError",
]
