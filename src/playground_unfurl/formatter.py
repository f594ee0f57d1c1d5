from __future__ import annotations

import asyncio
import logging
import shlex
from typing import Protocol

logger = logging.getLogger(__name__)

PRETTIER_STYLE_ARGS = (
    "--parser",
    "typescript",
    "--print-width",
    "55",
    "--tab-width",
    "2",
    "--no-semi",
    "--no-bracket-spacing",
    "--arrow-parens",
    "avoid",
)


class FormatterError(Exception):
    pass


class CodeFormatter(Protocol):
    async def format_range(self, text: str, *, range_start: int, range_end: int) -> str:
        """Reformat ``text[range_start:range_end]`` and return the whole text."""
        ...


class PrettierFormatter:
    def __init__(self, *, command: str = "prettier", timeout_seconds: float = 10.0) -> None:
        self._command = tuple(shlex.split(command)) or ("prettier",)
        self._timeout_seconds = timeout_seconds

    def build_args(self, *, range_start: int, range_end: int) -> list[str]:
        return [
            *self._command,
            *PRETTIER_STYLE_ARGS,
            "--range-start",
            str(range_start),
            "--range-end",
            str(range_end),
        ]

    async def format_range(self, text: str, *, range_start: int, range_end: int) -> str:
        args = self.build_args(range_start=range_start, range_end=range_end)
        logger.debug(
            "formatter_run range_start=%d range_end=%d text_length=%d",
            range_start,
            range_end,
            len(text),
        )
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as exc:
            raise FormatterError(f"Formatter command unavailable: {args[0]}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(text.encode("utf-8")),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            raise FormatterError("Formatter timed out.") from exc

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip() or "No error detail"
            if len(detail) > 240:
                detail = f"{detail[:240]}..."
            raise FormatterError(f"Formatter failed ({process.returncode}): {detail}")

        return stdout.decode("utf-8")
