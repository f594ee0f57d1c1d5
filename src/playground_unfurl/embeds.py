from __future__ import annotations

from dataclasses import replace

from playground_unfurl.code_blocks import make_code_block
from playground_unfurl.compression import compress_code, decompress_code
from playground_unfurl.extract import PlaygroundLink
from playground_unfurl.formatter import CodeFormatter
from playground_unfurl.selection import get_selection_from_query
from playground_unfurl.snippet import DEFAULT_LENGTH, MAX_LENGTH, extract_snippet
from playground_unfurl.types import Author, Embed

TS_BLUE = 0x3178C6
PLAYGROUND_BASE_URL = "https://www.typescriptlang.org/play/#code/"
SHORTENED_TITLE = "Shortened Playground Link"
VIEW_TITLE = "View in Playground"
SELECTION_HINT = (
    "You can choose specific lines to embed by selecting them before copying "
    "the link."
)


def make_view_embed(
    code: str, *, base_url: str = PLAYGROUND_BASE_URL, color: int = TS_BLUE
) -> Embed:
    return Embed(
        title=VIEW_TITLE,
        url=base_url + compress_code(code),
        color=color,
    )


async def create_playground_embed(
    author: Author,
    link: PlaygroundLink,
    formatter: CodeFormatter,
    *,
    url: str | None = None,
    color: int = TS_BLUE,
    default_length: int = DEFAULT_LENGTH,
    max_length: int = MAX_LENGTH,
) -> Embed:
    embed = Embed(
        title=SHORTENED_TITLE,
        url=url or link.url,
        color=color,
        author_name=author.tag,
        author_icon_url=author.avatar_url,
        footer=SELECTION_HINT,
    )

    code = decompress_code(link.payload)
    if code is None:
        return embed

    extract = await extract_snippet(
        code,
        get_selection_from_query(link.query),
        formatter,
        default_length=default_length,
        max_length=max_length,
    )
    return replace(embed, description=make_code_block(extract))
