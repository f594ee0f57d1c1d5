from __future__ import annotations

import hmac
import logging
import re

from fastapi import APIRouter, BackgroundTasks, Header

from playground_unfurl.config import Settings
from playground_unfurl.extract import match_playground_link
from playground_unfurl.replies import PASTE_ATTACHMENT_NAME, ReplyTracker
from playground_unfurl.types import IncomingMessage, parse_discord_message

logger = logging.getLogger(__name__)

COMMAND_NAMES = ("playground", "pg", "playg")


class WebhookHandler:
    def __init__(self, *, settings: Settings, tracker: ReplyTracker) -> None:
        self._settings = settings
        self._tracker = tracker

    def handle_message(
        self,
        payload: dict[str, object],
        background_tasks: BackgroundTasks,
        relay_secret: str | None = None,
    ) -> dict[str, str]:
        if not is_authorized_relay(relay_secret, self._settings):
            logger.info("ignoring_unauthorized_relay event=message")
            return {"status": "ignored", "reason": "unauthorized"}

        parsed = parse_discord_message(payload)
        if parsed is None or parsed.partial:
            logger.debug("unsupported_event top_level_key_count=%d", len(payload))
            return {"status": "ignored", "reason": "unsupported_event"}

        if parsed.author is not None and parsed.author.bot:
            return {"status": "ignored", "reason": "bot_author"}

        queued: list[str] = []
        code = parse_playground_command(
            parsed.content or "", self._settings.bot_command_prefix
        )
        if code is not None:
            background_tasks.add_task(
                self._tracker.on_playground_command, parsed, code or None
            )
            queued.append("command")

        if match_playground_link(parsed.content) is not None:
            background_tasks.add_task(self._tracker.on_playground_link, parsed)
            queued.append("link")
        if has_paste_attachment(parsed):
            background_tasks.add_task(self._tracker.on_paste_attachment, parsed)
            queued.append("attachment")

        if not queued:
            return {"status": "ignored", "reason": "no_playground_link"}
        return {"status": "accepted", "reason": f"{'_'.join(queued)}_queued"}

    def handle_message_update(
        self,
        payload: dict[str, object],
        background_tasks: BackgroundTasks,
        relay_secret: str | None = None,
    ) -> dict[str, str]:
        if not is_authorized_relay(relay_secret, self._settings):
            logger.info("ignoring_unauthorized_relay event=message_update")
            return {"status": "ignored", "reason": "unauthorized"}

        parsed = parse_discord_message(payload)
        if parsed is None:
            logger.debug("unsupported_event top_level_key_count=%d", len(payload))
            return {"status": "ignored", "reason": "unsupported_event"}

        if not self._tracker.replies.has(parsed.id):
            return {"status": "ignored", "reason": "untracked"}

        background_tasks.add_task(self._tracker.on_message_edit, parsed)
        return {"status": "accepted", "reason": "edit_queued"}


def parse_playground_command(text: str, prefix: str) -> str | None:
    """Return the command argument ("" when absent), or None for other text."""
    stripped = text.strip()
    if not prefix or not stripped.startswith(prefix):
        return None

    body = stripped[len(prefix) :]
    match = _command_pattern().match(body)
    if match is None:
        return None
    return body[match.end() :].strip()


def has_paste_attachment(message: IncomingMessage) -> bool:
    return any(a.name == PASTE_ATTACHMENT_NAME for a in message.attachments)


def is_authorized_relay(relay_secret: str | None, settings: Settings) -> bool:
    expected = settings.bot_relay_secret
    if expected is None:
        return True
    if relay_secret is None:
        return False
    return hmac.compare_digest(relay_secret.encode("utf-8"), expected.encode("utf-8"))


def _command_pattern() -> re.Pattern[str]:
    names = "|".join(re.escape(name) for name in COMMAND_NAMES)
    return re.compile(rf"(?:{names})(?=$|\s)", re.IGNORECASE)


def build_router(handler: WebhookHandler) -> APIRouter:
    router = APIRouter()

    @router.post("/events/message")
    async def message_event(
        payload: dict[str, object],
        background_tasks: BackgroundTasks,
        x_relay_secret: str | None = Header(default=None),
    ) -> dict[str, str]:
        return handler.handle_message(payload, background_tasks, x_relay_secret)

    @router.post("/events/message-update")
    async def message_update_event(
        payload: dict[str, object],
        background_tasks: BackgroundTasks,
        x_relay_secret: str | None = Header(default=None),
    ) -> dict[str, str]:
        return handler.handle_message_update(payload, background_tasks, x_relay_secret)

    return router
