from __future__ import annotations

import re

CODEBLOCK = "```"
LANGUAGE_TAG = "ts"
DISPLAY_MAX = 2048
TRUNCATION_MARKER = "…"
ZERO_WIDTH_SPACE = "\u200b"
MAX_CODE_LENGTH = DISPLAY_MAX - len(f"{CODEBLOCK}{LANGUAGE_TAG}\n{CODEBLOCK}")

_BACKTICK_RUN_RE = re.compile(r"`(?=`)")


def make_code_block(code: str) -> str:
    escaped = escape_code(code)
    if len(escaped) > MAX_CODE_LENGTH:
        escaped = escaped[: MAX_CODE_LENGTH - 1] + TRUNCATION_MARKER
    return f"{CODEBLOCK}{LANGUAGE_TAG}\n{escaped}{CODEBLOCK}"


def escape_code(code: str) -> str:
    # Discord markdown has no usable backtick escape; a zero width space after
    # every backtick that precedes another keeps runs from closing the fence.
    return _BACKTICK_RUN_RE.sub(f"`{ZERO_WIDTH_SPACE}", code)
