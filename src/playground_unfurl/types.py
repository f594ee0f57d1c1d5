from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from playground_unfurl.parsing import (
    as_dict,
    as_list,
    coerce_snowflake,
    first_non_empty_str,
    first_str,
)

DEFAULT_AVATAR_URL = "https://cdn.discordapp.com/embed/avatars/0.png"


@dataclass(frozen=True)
class Author:
    id: str
    tag: str
    avatar_url: str
    bot: bool = False

    @property
    def mention(self) -> str:
        return f"<@{self.id}>"


@dataclass(frozen=True)
class Attachment:
    name: str
    url: str


@dataclass(frozen=True)
class IncomingMessage:
    id: str
    channel_id: str
    author: Author | None
    content: str | None
    attachments: tuple[Attachment, ...] = ()
    embed_urls: tuple[str, ...] = ()

    @property
    def partial(self) -> bool:
        return self.author is None or self.content is None


@dataclass(frozen=True)
class SentMessage:
    channel_id: str
    message_id: str


@dataclass(frozen=True)
class Embed:
    title: str | None = None
    url: str | None = None
    color: int | None = None
    author_name: str | None = None
    author_icon_url: str | None = None
    footer: str | None = None
    description: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.title is not None:
            payload["title"] = self.title
        if self.url is not None:
            payload["url"] = self.url
        if self.color is not None:
            payload["color"] = self.color
        if self.author_name is not None:
            author: dict[str, str] = {"name": self.author_name}
            if self.author_icon_url:
                author["icon_url"] = self.author_icon_url
            payload["author"] = author
        if self.footer is not None:
            payload["footer"] = {"text": self.footer}
        if self.description is not None:
            payload["description"] = self.description
        return payload


def parse_discord_message(payload: dict[str, Any]) -> IncomingMessage | None:
    """Parse a Discord message object (REST or gateway dispatch shape).

    Update events may omit the author and content; those fields are left as
    ``None`` so the caller can re-fetch the full message.
    """
    data = as_dict(payload)
    dispatch = as_dict(data.get("d"))
    if dispatch:
        data = dispatch

    message_id = coerce_snowflake(data.get("id"))
    channel_id = coerce_snowflake(data.get("channel_id"))
    if message_id is None or channel_id is None:
        return None

    return IncomingMessage(
        id=message_id,
        channel_id=channel_id,
        author=_parse_author(data.get("author")),
        content=first_str(data, "content"),
        attachments=_parse_attachments(data.get("attachments")),
        embed_urls=_parse_embed_urls(data.get("embeds")),
    )


def _parse_author(value: object) -> Author | None:
    author = as_dict(value)
    author_id = coerce_snowflake(author.get("id"))
    if author_id is None:
        return None

    username = first_non_empty_str(author, "username") or author_id
    discriminator = first_non_empty_str(author, "discriminator")
    if discriminator and discriminator != "0":
        tag = f"{username}#{discriminator}"
    else:
        tag = username

    avatar = first_non_empty_str(author, "avatar")
    avatar_url = (
        f"https://cdn.discordapp.com/avatars/{author_id}/{avatar}.png"
        if avatar
        else DEFAULT_AVATAR_URL
    )
    return Author(
        id=author_id,
        tag=tag,
        avatar_url=avatar_url,
        bot=author.get("bot") is True,
    )


def _parse_attachments(value: object) -> tuple[Attachment, ...]:
    attachments: list[Attachment] = []
    for raw in as_list(value):
        item = as_dict(raw)
        name = first_non_empty_str(item, "filename", "name")
        url = first_non_empty_str(item, "url")
        if name is None or url is None:
            continue
        attachments.append(Attachment(name=name, url=url))
    return tuple(attachments)


def _parse_embed_urls(value: object) -> tuple[str, ...]:
    urls: list[str] = []
    for raw in as_list(value):
        url = first_non_empty_str(as_dict(raw), "url")
        if url is not None:
            urls.append(url)
    return tuple(urls)
