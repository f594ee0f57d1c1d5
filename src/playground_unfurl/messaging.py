from __future__ import annotations

from typing import Protocol

from playground_unfurl.types import Embed, IncomingMessage, SentMessage


class MessageSendError(Exception):
    pass


class ChatClient(Protocol):
    async def fetch_recent_messages(
        self, channel_id: str, *, limit: int
    ) -> list[IncomingMessage]: ...

    async def fetch_message(
        self, channel_id: str, message_id: str
    ) -> IncomingMessage | None: ...

    async def send_message(
        self,
        channel_id: str,
        *,
        content: str | None = None,
        embed: Embed | None = None,
    ) -> SentMessage: ...

    async def edit_message(self, message: SentMessage, *, content: str) -> None: ...

    async def delete_message(self, channel_id: str, message_id: str) -> None: ...

    async def fetch_attachment_text(self, url: str) -> str: ...
