from __future__ import annotations

import logging
from typing import Protocol

from playground_unfurl.bounded_cache import BoundedCache
from playground_unfurl.config import Settings
from playground_unfurl.embeds import create_playground_embed, make_view_embed
from playground_unfurl.extract import (
    find_code_from_channel,
    match_codeblock,
    match_playground_link,
)
from playground_unfurl.formatter import CodeFormatter
from playground_unfurl.messaging import ChatClient, MessageSendError
from playground_unfurl.shortener import ShortenerError
from playground_unfurl.types import IncomingMessage, SentMessage

logger = logging.getLogger(__name__)

PASTE_ATTACHMENT_NAME = "message.txt"
NO_CODEBLOCK_WARNING = ":warning: couldn't find a codeblock!"
SHORTENED_NOTICE = (
    "Here's a shortened URL of your playground link! "
    "You can remove the full link from your message."
)


class LinkShortener(Protocol):
    async def shorten(self, url: str) -> str: ...


class ReplyTracker:
    """Replies to playground links and remembers follow-ups for retraction.

    ``replies`` maps an original message id to the follow-up the bot sent for
    it, so the follow-up can be cleared once the author edits the long link
    out of their message.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        chat_client: ChatClient,
        shortener: LinkShortener,
        formatter: CodeFormatter,
        replies: BoundedCache[str, SentMessage] | None = None,
    ) -> None:
        self._settings = settings
        self._chat_client = chat_client
        self._shortener = shortener
        self._formatter = formatter
        if replies is None:
            replies = BoundedCache(settings.bot_reply_cache_size)
        self._replies = replies

    @property
    def replies(self) -> BoundedCache[str, SentMessage]:
        return self._replies

    async def on_playground_link(self, message: IncomingMessage) -> None:
        try:
            await self._reply_to_link(message)
        except MessageSendError:
            logger.exception(
                "discord_send_error channel_id=%s message_id=%s",
                message.channel_id,
                message.id,
            )
        except Exception:
            logger.exception("unexpected_link_error message_id=%s", message.id)

    async def on_paste_attachment(self, message: IncomingMessage) -> None:
        try:
            await self._reply_to_attachment(message)
        except ShortenerError as exc:
            logger.warning(
                "shortener_error channel_id=%s message_id=%s detail=%s",
                message.channel_id,
                message.id,
                exc,
            )
        except MessageSendError:
            logger.exception(
                "discord_send_error channel_id=%s message_id=%s",
                message.channel_id,
                message.id,
            )
        except Exception:
            logger.exception("unexpected_attachment_error message_id=%s", message.id)

    async def on_message_edit(self, message: IncomingMessage) -> None:
        try:
            await self._retract_if_fixed(message)
        except MessageSendError:
            logger.exception(
                "discord_edit_error channel_id=%s message_id=%s",
                message.channel_id,
                message.id,
            )
        except Exception:
            logger.exception("unexpected_edit_error message_id=%s", message.id)

    async def on_playground_command(
        self, message: IncomingMessage, code: str | None
    ) -> None:
        try:
            await self._reply_to_command(message, code)
        except MessageSendError:
            logger.exception(
                "discord_send_error channel_id=%s message_id=%s",
                message.channel_id,
                message.id,
            )
        except Exception:
            logger.exception("unexpected_command_error message_id=%s", message.id)

    async def _reply_to_link(self, message: IncomingMessage) -> None:
        author = message.author
        if author is None or author.bot:
            return
        link = match_playground_link(message.content)
        if link is None:
            return

        embed = await create_playground_embed(
            author,
            link,
            self._formatter,
            color=self._settings.bot_embed_color,
        )
        if link.is_entire(message.content):
            await self._chat_client.send_message(message.channel_id, embed=embed)
            await self._chat_client.delete_message(message.channel_id, message.id)
            logger.info(
                "playground_link_replaced channel_id=%s message_id=%s",
                message.channel_id,
                message.id,
            )
            return

        reply = await self._chat_client.send_message(
            message.channel_id,
            content=f"{author.mention} {SHORTENED_NOTICE}",
            embed=embed,
        )
        self._replies.set(message.id, reply)
        logger.info(
            "playground_link_followup channel_id=%s message_id=%s reply_id=%s",
            message.channel_id,
            message.id,
            reply.message_id,
        )

    async def _reply_to_attachment(self, message: IncomingMessage) -> None:
        author = message.author
        if author is None or author.bot:
            return
        attachment = next(
            (a for a in message.attachments if a.name == PASTE_ATTACHMENT_NAME), None
        )
        if attachment is None:
            return

        content = await self._chat_client.fetch_attachment_text(attachment.url)
        link = match_playground_link(content)
        # A long paste lands in message.txt while any typed text stays in the
        # message body, so the attachment must be exactly the link.
        if link is None or not link.is_entire(content):
            return

        shortened_url = await self._shortener.shorten(link.url)
        embed = await create_playground_embed(
            author,
            link,
            self._formatter,
            url=shortened_url,
            color=self._settings.bot_embed_color,
        )
        await self._chat_client.send_message(message.channel_id, embed=embed)
        if not message.content:
            await self._chat_client.delete_message(message.channel_id, message.id)
        logger.info(
            "playground_attachment_shortened channel_id=%s message_id=%s",
            message.channel_id,
            message.id,
        )

    async def _retract_if_fixed(self, message: IncomingMessage) -> None:
        if message.partial:
            fetched = await self._chat_client.fetch_message(
                message.channel_id, message.id
            )
            if fetched is None:
                return
            message = fetched

        if message.author is None or message.author.bot:
            return
        if not self._replies.has(message.id):
            return
        if match_playground_link(message.content) is not None:
            return

        reply = self._replies.get(message.id)
        if reply is not None:
            await self._chat_client.edit_message(reply, content="")
        self._replies.delete(message.id)
        logger.info(
            "playground_followup_cleared channel_id=%s message_id=%s",
            message.channel_id,
            message.id,
        )

    async def _reply_to_command(
        self, message: IncomingMessage, code: str | None
    ) -> None:
        if code:
            code = match_codeblock(code) or code
        else:
            code = await find_code_from_channel(
                self._chat_client,
                message.channel_id,
                ignore_latest=True,
                limit=self._settings.bot_history_limit,
            )
        if not code:
            await self._chat_client.send_message(
                message.channel_id, content=NO_CODEBLOCK_WARNING
            )
            return

        embed = make_view_embed(
            code,
            base_url=self._settings.playground_base_url,
            color=self._settings.bot_embed_color,
        )
        await self._chat_client.send_message(message.channel_id, embed=embed)
