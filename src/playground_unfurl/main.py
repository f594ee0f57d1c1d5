from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI

from playground_unfurl.bounded_cache import BoundedCache
from playground_unfurl.config import Settings
from playground_unfurl.discord_client import DiscordClient
from playground_unfurl.formatter import PrettierFormatter
from playground_unfurl.replies import ReplyTracker
from playground_unfurl.shortener import LinkShortenerClient
from playground_unfurl.types import SentMessage
from playground_unfurl.webhook import WebhookHandler, build_router


def create_app(settings: Settings) -> FastAPI:
    http_client = httpx.AsyncClient()

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        await http_client.aclose()

    app = FastAPI(title="playground-unfurl", version="1.0", lifespan=lifespan)

    discord_client = DiscordClient(
        bot_token=settings.discord_bot_token,
        http_client=http_client,
        base_url=settings.discord_api_base_url,
        timeout_seconds=settings.http_timeout_seconds,
    )
    shortener = LinkShortenerClient(
        http_client=http_client,
        endpoint=settings.link_shortener_url,
        timeout_seconds=settings.http_timeout_seconds,
    )
    formatter = PrettierFormatter(
        command=settings.prettier_command,
        timeout_seconds=settings.formatter_timeout_seconds,
    )
    replies: BoundedCache[str, SentMessage] = BoundedCache(
        settings.bot_reply_cache_size
    )
    tracker = ReplyTracker(
        settings=settings,
        chat_client=discord_client,
        shortener=shortener,
        formatter=formatter,
        replies=replies,
    )
    handler = WebhookHandler(settings=settings, tracker=tracker)

    app.include_router(build_router(handler))

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    settings = Settings.from_env()
    app = create_app(settings)

    uvicorn.run(
        app,
        host=settings.bot_webhook_host,
        port=settings.bot_webhook_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
