from __future__ import annotations

import httpx
import pytest
from fakes import FakeChatClient, FakeShortener, IdentityFormatter
from fastapi import BackgroundTasks, FastAPI

from playground_unfurl.compression import compress_code
from playground_unfurl.config import Settings
from playground_unfurl.replies import ReplyTracker
from playground_unfurl.types import SentMessage
from playground_unfurl.webhook import (
    WebhookHandler,
    build_router,
    is_authorized_relay,
    parse_playground_command,
)

LINK = f"https://www.typescriptlang.org/play#code/{compress_code('let a = 1')}"


def _settings(*, relay_secret: str | None = None) -> Settings:
    return Settings(discord_bot_token="token", bot_relay_secret=relay_secret)


def _handler(
    chat: FakeChatClient | None = None, *, relay_secret: str | None = None
) -> tuple[WebhookHandler, ReplyTracker]:
    settings = _settings(relay_secret=relay_secret)
    tracker = ReplyTracker(
        settings=settings,
        chat_client=chat or FakeChatClient(),
        shortener=FakeShortener(),
        formatter=IdentityFormatter(),
    )
    return WebhookHandler(settings=settings, tracker=tracker), tracker


def _payload(content: str, **extra: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": "100",
        "channel_id": "chan",
        "content": content,
        "author": {"id": "42", "username": "alice"},
    }
    payload.update(extra)
    return payload


def test_parse_playground_command_variants() -> None:
    assert parse_playground_command("!playground let x = 1", "!") == "let x = 1"
    assert parse_playground_command("!pg", "!") == ""
    assert parse_playground_command("  !PLAYG   ", "!") == ""
    assert parse_playground_command("!pg\n```ts\nlet y\n```", "!") == "```ts\nlet y\n```"


def test_parse_playground_command_non_command() -> None:
    assert parse_playground_command("hello", "!") is None
    assert parse_playground_command("!pgx", "!") is None
    assert parse_playground_command("pg something", "!") is None


def test_is_authorized_relay() -> None:
    assert is_authorized_relay(None, _settings()) is True
    assert is_authorized_relay("abc", _settings(relay_secret="abc")) is True
    assert is_authorized_relay("nope", _settings(relay_secret="abc")) is False
    assert is_authorized_relay(None, _settings(relay_secret="abc")) is False


def test_handle_message_queues_link_handler() -> None:
    handler, tracker = _handler()
    background_tasks = BackgroundTasks()

    result = handler.handle_message(_payload(LINK), background_tasks)

    assert result == {"status": "accepted", "reason": "link_queued"}
    assert len(background_tasks.tasks) == 1
    assert background_tasks.tasks[0].func == tracker.on_playground_link


def test_handle_message_queues_attachment_handler() -> None:
    handler, tracker = _handler()
    background_tasks = BackgroundTasks()

    result = handler.handle_message(
        _payload(
            "",
            attachments=[{"filename": "message.txt", "url": "https://cdn.test/m.txt"}],
        ),
        background_tasks,
    )

    assert result == {"status": "accepted", "reason": "attachment_queued"}
    assert background_tasks.tasks[0].func == tracker.on_paste_attachment


def test_handle_message_queues_command() -> None:
    handler, tracker = _handler()
    background_tasks = BackgroundTasks()

    result = handler.handle_message(_payload("!pg"), background_tasks)

    assert result == {"status": "accepted", "reason": "command_queued"}
    task = background_tasks.tasks[0]
    assert task.func == tracker.on_playground_command
    assert task.args[1] is None


def test_handle_message_ignores_bots_and_plain_text() -> None:
    handler, _ = _handler()
    background_tasks = BackgroundTasks()

    bot_payload = _payload(LINK, author={"id": "1", "username": "bot", "bot": True})
    assert handler.handle_message(bot_payload, background_tasks) == {
        "status": "ignored",
        "reason": "bot_author",
    }
    assert handler.handle_message(_payload("hello"), background_tasks) == {
        "status": "ignored",
        "reason": "no_playground_link",
    }
    assert handler.handle_message({"foo": "bar"}, background_tasks) == {
        "status": "ignored",
        "reason": "unsupported_event",
    }
    assert background_tasks.tasks == []


def test_handle_message_rejects_bad_relay_secret() -> None:
    handler, _ = _handler(relay_secret="abc")
    background_tasks = BackgroundTasks()

    result = handler.handle_message(_payload(LINK), background_tasks, "wrong")

    assert result == {"status": "ignored", "reason": "unauthorized"}
    assert background_tasks.tasks == []


def test_handle_message_update_only_for_tracked_messages() -> None:
    handler, tracker = _handler()
    background_tasks = BackgroundTasks()

    assert handler.handle_message_update(
        {"id": "100", "channel_id": "chan"}, background_tasks
    ) == {"status": "ignored", "reason": "untracked"}

    tracker.replies.set("100", SentMessage(channel_id="chan", message_id="9"))
    result = handler.handle_message_update(
        {"id": "100", "channel_id": "chan"}, background_tasks
    )

    assert result == {"status": "accepted", "reason": "edit_queued"}
    assert background_tasks.tasks[0].func == tracker.on_message_edit


@pytest.mark.anyio
async def test_router_runs_background_edit() -> None:
    chat = FakeChatClient()
    handler, tracker = _handler(chat)
    tracker.replies.set("100", SentMessage(channel_id="chan", message_id="9"))
    app = FastAPI()
    app.include_router(build_router(handler))

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://bot") as client:
        response = await client.post(
            "/events/message-update", json=_payload("link removed")
        )

    assert response.status_code == 200
    assert response.json() == {"status": "accepted", "reason": "edit_queued"}
    assert chat.edited == [(SentMessage(channel_id="chan", message_id="9"), "")]
    assert tracker.replies.has("100") is False


def test_handle_message_command_with_link_queues_both() -> None:
    handler, tracker = _handler()
    background_tasks = BackgroundTasks()

    result = handler.handle_message(_payload(f"!pg {LINK}"), background_tasks)

    assert result == {"status": "accepted", "reason": "command_link_queued"}
    assert [task.func for task in background_tasks.tasks] == [
        tracker.on_playground_command,
        tracker.on_playground_link,
    ]
