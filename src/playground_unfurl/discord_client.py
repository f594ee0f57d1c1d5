from __future__ import annotations

import logging
from typing import Any

import httpx

from playground_unfurl.messaging import MessageSendError
from playground_unfurl.parsing import as_dict, coerce_snowflake
from playground_unfurl.types import (
    Embed,
    IncomingMessage,
    SentMessage,
    parse_discord_message,
)

logger = logging.getLogger(__name__)


class DiscordApiError(MessageSendError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DiscordClient:
    def __init__(
        self,
        *,
        bot_token: str,
        http_client: httpx.AsyncClient,
        base_url: str = "https://discord.com/api/v10",
        timeout_seconds: float = 30.0,
    ) -> None:
        self._http_client = http_client
        self._base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Bot {bot_token.strip()}"}
        self._timeout_seconds = timeout_seconds

    async def fetch_recent_messages(
        self, channel_id: str, *, limit: int = 10
    ) -> list[IncomingMessage]:
        response = await self._request(
            "GET",
            f"/channels/{channel_id}/messages",
            params={"limit": max(1, min(limit, 100))},
        )
        body = _json_body(response)
        if not isinstance(body, list):
            raise DiscordApiError("Unexpected message history payload from Discord.")

        messages: list[IncomingMessage] = []
        for item in body:
            parsed = parse_discord_message(as_dict(item))
            if parsed is not None:
                messages.append(parsed)
        return messages

    async def fetch_message(
        self, channel_id: str, message_id: str
    ) -> IncomingMessage | None:
        try:
            response = await self._request(
                "GET", f"/channels/{channel_id}/messages/{message_id}"
            )
        except DiscordApiError as exc:
            if exc.status_code == 404:
                return None
            raise
        return parse_discord_message(as_dict(_json_body(response)))

    async def send_message(
        self,
        channel_id: str,
        *,
        content: str | None = None,
        embed: Embed | None = None,
    ) -> SentMessage:
        payload: dict[str, object] = {}
        if content is not None:
            payload["content"] = content
        if embed is not None:
            payload["embeds"] = [embed.to_payload()]

        response = await self._request(
            "POST", f"/channels/{channel_id}/messages", json=payload
        )
        message_id = coerce_snowflake(as_dict(_json_body(response)).get("id"))
        if message_id is None:
            raise DiscordApiError("Discord did not return the sent message id.")
        return SentMessage(channel_id=channel_id, message_id=message_id)

    async def edit_message(self, message: SentMessage, *, content: str) -> None:
        await self._request(
            "PATCH",
            f"/channels/{message.channel_id}/messages/{message.message_id}",
            json={"content": content},
        )

    async def delete_message(self, channel_id: str, message_id: str) -> None:
        await self._request("DELETE", f"/channels/{channel_id}/messages/{message_id}")

    async def fetch_attachment_text(self, url: str) -> str:
        try:
            response = await self._http_client.get(url, timeout=self._timeout_seconds)
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            raise DiscordApiError(
                "Attachment download failed due to network error."
            ) from exc

        _raise_for_discord_error(response)
        return response.text

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, object] | None = None,
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            response = await self._http_client.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers,
                timeout=self._timeout_seconds,
            )
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            raise DiscordApiError(
                f"Discord {method} {path} failed due to network error."
            ) from exc

        _raise_for_discord_error(response)
        return response


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise DiscordApiError("Discord returned a non-JSON response.") from exc


def _raise_for_discord_error(response: httpx.Response) -> None:
    if response.status_code < 400:
        return
    detail = response.text.strip() or "No error detail"
    if len(detail) > 240:
        detail = f"{detail[:240]}..."
    logger.debug("discord_api_error status=%d", response.status_code)
    raise DiscordApiError(
        f"Discord API request failed ({response.status_code}): {detail}",
        status_code=response.status_code,
    )
