from __future__ import annotations

import logging
from dataclasses import dataclass

from playground_unfurl.formatter import CodeFormatter, FormatterError
from playground_unfurl.selection import Selection

logger = logging.getLogger(__name__)

DEFAULT_LENGTH = 256
MAX_LENGTH = 512


@dataclass(frozen=True)
class CharRange:
    start: int
    end: int


def line_offsets(text: str) -> list[int]:
    """Offset of the start of every line, followed by the end of the text."""
    offsets = [0]
    for line in text.split("\n"):
        offsets.append(offsets[-1] + len(line) + 1)
    # the last line has no newline after it
    offsets[-1] -= 1
    return offsets


def resolve_char_range(
    offsets: list[int],
    selection: Selection,
    *,
    text_length: int,
    default_length: int = DEFAULT_LENGTH,
) -> CharRange:
    last = offsets[-1]
    start_line = selection.start_line if selection.start_line is not None else 0
    start = offsets[min(start_line, len(offsets) - 1)]

    # an end line that is not past the start line selects nothing, so it
    # falls back to the default window
    if selection.end_line is not None and selection.end_line > start_line:
        end = offsets[min(selection.end_line, len(offsets) - 1)]
    else:
        cutoff = min(start + default_length, text_length)
        end = next((offset for offset in offsets if offset > cutoff), last)
    return CharRange(start=start, end=end)


async def extract_snippet(
    code: str,
    selection: Selection,
    formatter: CodeFormatter,
    *,
    default_length: int = DEFAULT_LENGTH,
    max_length: int = MAX_LENGTH,
) -> str:
    """Format the selected lines of ``code`` and return at most ``max_length``
    characters of them.

    The whole text goes to the formatter so constructs that need surrounding
    context still parse; only the selected range is reformatted. The end of
    the range in the formatted text is recovered by assuming everything after
    it kept its length, which is only approximate when the formatter touches
    text outside the range.
    """
    offsets = line_offsets(code)
    char_range = resolve_char_range(
        offsets,
        selection,
        text_length=len(code),
        default_length=default_length,
    )

    try:
        pretty = await formatter.format_range(
            code,
            range_start=char_range.start,
            range_end=char_range.end,
        )
    except FormatterError as exc:
        logger.warning("formatter_failed_using_raw_text detail=%s", exc)
        pretty = code

    pretty_end = len(pretty) - (len(code) - char_range.end)
    max_end = max(char_range.start, min(pretty_end, char_range.start + max_length))
    extract = pretty[char_range.start : max_end]

    logger.debug(
        "snippet_extracted selection=%s start_char=%d end_char=%d "
        "code_length=%d pretty_length=%d extract_length=%d",
        selection,
        char_range.start,
        char_range.end,
        len(code),
        len(pretty),
        len(extract),
    )
    return extract
