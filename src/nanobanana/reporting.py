"""
Command result reporting for humans and machines.

In JSON mode each command writes exactly one document to stdout:

    {"success": true, "command": "...", "data": {...},
     "timing": {"total_ms": 12}}

or, on failure, ``"error": {"code", "message", "hint"}`` in place of
``data``. Human mode prints short lines instead. Progress messages go
through the shared logger (stderr) in both modes.
"""

from __future__ import annotations

import json
import sys
import time
from typing import IO, TYPE_CHECKING, Any

from nanobanana.logging_utils import logger

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable
    from pathlib import Path


class Reporter:
    """Collects timing for one command and renders its outcome."""

    def __init__(
        self,
        *,
        json_mode: bool = False,
        stream: IO[str] | None = None,
        err_stream: IO[str] | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.json_mode = json_mode
        self._stream = stream
        self._err_stream = err_stream
        self._clock = clock
        self._started = clock()

    @property
    def stream(self) -> IO[str]:
        """Destination for results; resolved lazily so capsys works."""
        return self._stream if self._stream is not None else sys.stdout

    @property
    def err_stream(self) -> IO[str]:
        """Destination for human-readable errors."""
        return self._err_stream if self._err_stream is not None else (
            sys.stderr)

    def elapsed_ms(self) -> int:
        """Milliseconds since the reporter was created."""
        return int((self._clock() - self._started) * 1000)

    def progress(self, message: str, *args: object) -> None:
        """Log a progress line."""
        logger.info(message, *args)

    def image_saved(self, path: Path, width: int, height: int) -> None:
        """Announce a written image in human mode."""
        if not self.json_mode:
            print(f"Saved: {path} ({width}x{height})", file=self.stream)

    def _emit(self, document: dict[str, Any]) -> None:
        json.dump(document, self.stream, indent=2, default=str)
        self.stream.write("\n")

    def success(
        self,
        command: str,
        data: dict[str, Any],
        lines: list[str] | None = None,
        *,
        ok: bool = True,
    ) -> None:
        """
        Report a completed command.

        Args:
            command: Command name, e.g. ``transform``.
            data: Structured result for JSON mode.
            lines: Extra human-mode lines printed after any saved images.
            ok: False when the command finished with partial failures.

        """
        if self.json_mode:
            self._emit({
                "success": ok,
                "command": command,
                "data": data,
                "timing": {"total_ms": self.elapsed_ms()},
            })
            return
        for line in lines or []:
            print(line, file=self.stream)

    def error(
        self,
        command: str,
        code: str,
        message: str,
        hint: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        """Report a failed command."""
        if self.json_mode:
            error: dict[str, Any] = {"code": code, "message": message}
            if hint:
                error["hint"] = hint
            if details:
                error["details"] = details
            self._emit({
                "success": False,
                "command": command,
                "error": error,
                "timing": {"total_ms": self.elapsed_ms()},
            })
            return
        print(f"Error [{code}]: {message}", file=self.err_stream)
        if hint:
            print(f"Hint: {hint}", file=self.err_stream)
