"""Image generation through the Gemini API."""

from .client import (
    GeneratedImage,
    GenerationClient,
    GenerationError,
    ImageRequest,
    classify_api_error,
    extract_images,
    resolve_api_key,
    resolve_model_name,
)

__all__ = [
    "GeneratedImage",
    "GenerationClient",
    "GenerationError",
    "ImageRequest",
    "classify_api_error",
    "extract_images",
    "resolve_api_key",
    "resolve_model_name",
]
