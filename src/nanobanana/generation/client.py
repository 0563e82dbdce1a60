"""
Thin wrapper around the Gemini image generation API.

Requests go through ``google.genai``; responses are reduced to the
inline image parts they carry. Every SDK failure is translated into a
:class:`GenerationError` with a stable code and a short user hint.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from dotenv import find_dotenv, load_dotenv
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from nanobanana.config_defaults import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_COUNT,
    DEFAULT_MODEL,
    DEFAULT_TIMEOUT_SECONDS,
)
from nanobanana.constants import (
    API_KEY_ENV_VARS,
    ASPECT_RATIOS,
    COUNT_MAX,
    COUNT_MIN,
    MODEL_ALIASES,
    PRO_ONLY_RESOLUTIONS,
    RESOLUTIONS,
)
from nanobanana.image_io import decode_image, sniff_mime_type
from nanobanana.logging_utils import logger

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Mapping

    from nanobanana.imaging.buffer import PixelBuffer

# Error codes surfaced to the CLI
INVALID_API_KEY = "INVALID_API_KEY"
MISSING_API_KEY = "MISSING_API_KEY"
QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
SAFETY_BLOCKED = "SAFETY_BLOCKED"
NO_IMAGE = "NO_IMAGE"
GENERATION_FAILED = "GENERATION_FAILED"

HINTS = {
    INVALID_API_KEY: (
        "Check your API key at https://aistudio.google.com/apikey"
    ),
    MISSING_API_KEY: (
        "Set GEMINI_API_KEY (or GOOGLE_API_KEY) or pass --api-key"
    ),
    QUOTA_EXCEEDED: "Wait before retrying or check your quota",
    SAFETY_BLOCKED: "Try rephrasing your prompt",
}

_AUTH_STATUSES = (401, 403)
_QUOTA_STATUS = 429
_SAFETY_REASONS = frozenset(
    {"SAFETY", "IMAGE_SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST"},
)


class GenerationError(Exception):
    """A generation request failed; ``code`` is stable across releases."""

    def __init__(
        self,
        code: str,
        message: str,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.hint = HINTS.get(code, "") if hint is None else hint

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation of the error."""
        return {"code": self.code, "message": self.message, "hint": self.hint}


def resolve_model_name(name: str) -> str:
    """Map ``flash`` and ``pro`` to model ids; pass anything else through."""
    return MODEL_ALIASES.get(name.strip().lower(), name.strip())


def resolve_api_key(
    explicit: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    load_env_file: bool = True,
) -> str | None:
    """
    Find an API key from the flag value or the environment.

    A ``.env`` file in the working directory is loaded first without
    overriding variables that are already set. Returns None when no key
    is found.
    """
    if explicit:
        return explicit
    if load_env_file:
        load_dotenv(find_dotenv(usecwd=True), override=False)
    env = os.environ if environ is None else environ
    for name in API_KEY_ENV_VARS:
        value = env.get(name, "").strip()
        if value:
            logger.debug("Using API key from %s", name)
            return value
    return None


@dataclass(frozen=True)
class ImageRequest:
    """
    One generation or edit request.

    Setting ``source_image`` to encoded image bytes switches the request
    to edit mode; the prompt then describes the change to make.
    """

    prompt: str
    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    resolution: str | None = None
    count: int = DEFAULT_COUNT
    source_image: bytes | None = None

    def __post_init__(self) -> None:
        if not self.prompt.strip():
            msg = "Prompt cannot be empty"
            raise ValueError(msg)
        if self.aspect_ratio not in ASPECT_RATIOS:
            msg = (f"Invalid aspect ratio {self.aspect_ratio!r}; valid "
                   f"ratios: {', '.join(ASPECT_RATIOS)}")
            raise ValueError(msg)
        if self.resolution is not None and self.resolution not in RESOLUTIONS:
            msg = (f"Invalid resolution {self.resolution!r}; valid "
                   f"resolutions: {', '.join(RESOLUTIONS)}")
            raise ValueError(msg)
        if not COUNT_MIN <= self.count <= COUNT_MAX:
            msg = (f"Count must be between {COUNT_MIN} and {COUNT_MAX}, "
                   f"got {self.count}")
            raise ValueError(msg)

    @property
    def is_edit(self) -> bool:
        """True when the request modifies a source image."""
        return self.source_image is not None


@dataclass(frozen=True)
class GeneratedImage:
    """Encoded image bytes returned by the model."""

    data: bytes
    mime_type: str

    def to_buffer(self) -> PixelBuffer:
        """Decode the image into a pixel buffer."""
        return decode_image(self.data)


def classify_api_error(status: int | None, message: str) -> GenerationError:
    """Translate an HTTP status and SDK message into a GenerationError."""
    lowered = message.lower()
    if status in _AUTH_STATUSES or "api key not valid" in lowered:
        return GenerationError(INVALID_API_KEY, f"Invalid API key: {message}")
    if status == _QUOTA_STATUS or "resource_exhausted" in lowered:
        return GenerationError(QUOTA_EXCEEDED, f"Quota exceeded: {message}")
    return GenerationError(
        GENERATION_FAILED, f"Generation failed: {message}", hint="",
    )


def _reason_name(reason: object) -> str:
    """Return an enum member's name, or the string form of anything else."""
    return str(getattr(reason, "name", reason) or "")


def extract_images(response: Any) -> list[GeneratedImage]:
    """
    Collect the inline image parts of a ``generate_content`` response.

    Raises:
        GenerationError: SAFETY_BLOCKED when the prompt or the candidate
            was blocked, NO_IMAGE when no inline image came back.

    """
    feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None)
    if block_reason:
        msg = f"Prompt blocked: {_reason_name(block_reason)}"
        raise GenerationError(SAFETY_BLOCKED, msg)

    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        msg = "No candidates returned from API"
        raise GenerationError(NO_IMAGE, msg, hint="")

    images: list[GeneratedImage] = []
    finish_reasons: list[str] = []
    for candidate in candidates:
        finish_reasons.append(
            _reason_name(getattr(candidate, "finish_reason", None)),
        )
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                images.append(
                    GeneratedImage(
                        data=inline.data,
                        mime_type=inline.mime_type or "image/png",
                    ),
                )

    if images:
        return images
    if any(reason in _SAFETY_REASONS for reason in finish_reasons):
        msg = f"Generation blocked by safety filters: {finish_reasons[0]}"
        raise GenerationError(SAFETY_BLOCKED, msg)
    msg = "No inline image data found in response"
    raise GenerationError(NO_IMAGE, msg, hint="Try rephrasing your prompt")


class GenerationClient:
    """
    Issue image generation and edit requests against one model.

    Pass ``client`` to supply a pre-built (or fake) SDK client; otherwise
    one is created from ``api_key``.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: Any | None = None,
    ) -> None:
        self.model = resolve_model_name(model)
        if client is None:
            if not api_key:
                msg = "No API key provided"
                raise GenerationError(MISSING_API_KEY, msg)
            client = genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(
                    timeout=int(timeout_seconds * 1000),
                ),
            )
        self._client = client

    @property
    def is_pro(self) -> bool:
        """True when the configured model supports pro-only resolutions."""
        return self.model == MODEL_ALIASES["pro"]

    def _check_resolution(self, request: ImageRequest) -> None:
        if request.resolution in PRO_ONLY_RESOLUTIONS and not self.is_pro:
            msg = (f"Resolution {request.resolution} requires the pro model "
                   f"({MODEL_ALIASES['pro']}), not {self.model}")
            raise ValueError(msg)

    def build_config(
        self,
        request: ImageRequest,
    ) -> types.GenerateContentConfig:
        """Build the SDK request config for ``request``."""
        image_options: dict[str, str] = {"aspect_ratio": request.aspect_ratio}
        if request.resolution is not None:
            image_options["image_size"] = request.resolution
        return types.GenerateContentConfig(
            response_modalities=["IMAGE"],
            image_config=types.ImageConfig(**image_options),
        )

    def build_contents(self, request: ImageRequest) -> list[Any]:
        """Build the content parts: source image first in edit mode."""
        parts: list[Any] = []
        if request.source_image is not None:
            parts.append(
                types.Part.from_bytes(
                    data=request.source_image,
                    mime_type=sniff_mime_type(request.source_image),
                ),
            )
        parts.append(types.Part.from_text(text=request.prompt))
        return parts

    def _call(self, contents: list[Any], config: Any) -> Any:
        try:
            return self._client.models.generate_content(
                model=self.model, contents=contents, config=config,
            )
        except genai_errors.APIError as exc:
            raise classify_api_error(
                getattr(exc, "code", None), str(exc),
            ) from exc
        except (OSError, TimeoutError) as exc:
            msg = f"Generation request failed: {exc!s}"
            raise GenerationError(GENERATION_FAILED, msg, hint="") from exc

    def generate(self, request: ImageRequest) -> list[GeneratedImage]:
        """
        Run ``request`` once per requested variant.

        Returns one image per variant, in order. Raises GenerationError on
        the first failing call and ValueError for a resolution the model
        does not support.
        """
        self._check_resolution(request)
        contents = self.build_contents(request)
        config = self.build_config(request)
        mode = "Editing" if request.is_edit else "Generating"
        logger.info(
            "%s %d image(s) with %s", mode, request.count, self.model,
        )

        images: list[GeneratedImage] = []
        for variant in range(1, request.count + 1):
            response = self._call(contents, config)
            images.append(extract_images(response)[0])
            logger.debug("Variant %d/%d received", variant, request.count)
        return images
