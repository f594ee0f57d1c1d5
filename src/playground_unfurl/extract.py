from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from playground_unfurl.compression import decompress_code
from playground_unfurl.types import IncomingMessage

HISTORY_LIMIT = 10

CODEBLOCK_RE = re.compile(r"```(?:ts|typescript)?\n([\s\S]+)```")

PLAYGROUND_RE = re.compile(
    r"https?://(?:www\.)?typescriptlang\.org/(?:play|dev/bug-workbench)"
    r"(?:/index\.html)?/?"
    r"(\??(?:\w+=[^\s#&]+)?(?:&\w+=[^\s#&]+)*)"
    r"#code/([\w\-+_]+={0,4})",
    re.ASCII,
)


@dataclass(frozen=True)
class PlaygroundLink:
    url: str
    query: str
    payload: str

    def is_entire(self, text: str | None) -> bool:
        """True when ``text`` is exactly this link and nothing else."""
        return text == self.url


class MessageHistoryClient(Protocol):
    async def fetch_recent_messages(
        self, channel_id: str, *, limit: int
    ) -> list[IncomingMessage]: ...


def match_playground_link(text: str | None) -> PlaygroundLink | None:
    if not text:
        return None
    match = PLAYGROUND_RE.search(text)
    if match is None:
        return None
    return PlaygroundLink(url=match.group(0), query=match.group(1), payload=match.group(2))


def match_codeblock(text: str | None) -> str | None:
    if not text:
        return None
    match = CODEBLOCK_RE.search(text)
    if match is None or not match.group(1):
        return None
    return match.group(1)


def find_code_in_messages(
    messages: Iterable[IncomingMessage], *, ignore_latest: bool = False
) -> str | None:
    """Return the code from the newest message that carries some.

    ``messages`` is ordered newest first. Code blocks only count from human
    authors; playground links count from anyone, since the bot itself reposts
    shortened links.
    """
    candidates = list(messages)
    if ignore_latest:
        candidates = candidates[1:]

    for message in candidates:
        if message.author is not None and not message.author.bot:
            code = match_codeblock(message.content)
            if code is not None:
                return code

        link = match_playground_link(message.content)
        if link is None:
            for url in message.embed_urls:
                link = match_playground_link(url)
                if link is not None:
                    break
        if link is None:
            continue

        code = decompress_code(link.payload)
        if code is not None:
            return code

    return None


async def find_code_from_channel(
    client: MessageHistoryClient,
    channel_id: str,
    *,
    ignore_latest: bool = False,
    limit: int = HISTORY_LIMIT,
) -> str | None:
    messages = await client.fetch_recent_messages(channel_id, limit=limit)
    return find_code_in_messages(messages, ignore_latest=ignore_latest)
