from __future__ import annotations

import os
from dataclasses import dataclass

from playground_unfurl.embeds import PLAYGROUND_BASE_URL, TS_BLUE
from playground_unfurl.shortener import DEFAULT_SHORTENER_URL

DEFAULT_DISCORD_API_BASE_URL = "https://discord.com/api/v10"
DEFAULT_COMMAND_PREFIX = "!"


@dataclass(frozen=True)
class Settings:
    discord_bot_token: str
    discord_api_base_url: str = DEFAULT_DISCORD_API_BASE_URL
    playground_base_url: str = PLAYGROUND_BASE_URL
    link_shortener_url: str = DEFAULT_SHORTENER_URL
    prettier_command: str = "prettier"
    formatter_timeout_seconds: float = 10.0
    http_timeout_seconds: float = 30.0
    bot_command_prefix: str = DEFAULT_COMMAND_PREFIX
    bot_embed_color: int = TS_BLUE
    bot_reply_cache_size: int = 1000
    bot_history_limit: int = 10
    bot_relay_secret: str | None = None
    bot_webhook_host: str = "127.0.0.1"
    bot_webhook_port: int = 8001

    @classmethod
    def from_env(cls) -> Settings:
        token = os.getenv("DISCORD_BOT_TOKEN")
        if not token or not token.strip():
            raise RuntimeError("Missing required environment variables: DISCORD_BOT_TOKEN")

        return cls(
            discord_bot_token=token.strip(),
            discord_api_base_url=os.getenv(
                "DISCORD_API_BASE_URL", DEFAULT_DISCORD_API_BASE_URL
            ),
            playground_base_url=os.getenv("PLAYGROUND_BASE_URL", PLAYGROUND_BASE_URL),
            link_shortener_url=os.getenv("LINK_SHORTENER_URL", DEFAULT_SHORTENER_URL),
            prettier_command=_non_empty(os.getenv("PRETTIER_COMMAND")) or "prettier",
            formatter_timeout_seconds=_parse_float(
                "FORMATTER_TIMEOUT_SECONDS", os.getenv("FORMATTER_TIMEOUT_SECONDS"), 10.0
            ),
            http_timeout_seconds=_parse_float(
                "HTTP_TIMEOUT_SECONDS", os.getenv("HTTP_TIMEOUT_SECONDS"), 30.0
            ),
            bot_command_prefix=_non_empty(os.getenv("BOT_COMMAND_PREFIX"))
            or DEFAULT_COMMAND_PREFIX,
            bot_embed_color=_parse_color(os.getenv("BOT_EMBED_COLOR")),
            bot_reply_cache_size=_parse_int(
                "BOT_REPLY_CACHE_SIZE", os.getenv("BOT_REPLY_CACHE_SIZE"), 1000, minimum=1
            ),
            bot_history_limit=_parse_int(
                "BOT_HISTORY_LIMIT", os.getenv("BOT_HISTORY_LIMIT"), 10, minimum=1
            ),
            bot_relay_secret=_non_empty(os.getenv("BOT_RELAY_SECRET")),
            bot_webhook_host=os.getenv("BOT_WEBHOOK_HOST", "127.0.0.1"),
            bot_webhook_port=_parse_int(
                "BOT_WEBHOOK_PORT", os.getenv("BOT_WEBHOOK_PORT"), 8001, minimum=1
            ),
        )


def _non_empty(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _parse_int(name: str, value: str | None, default: int, *, minimum: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise RuntimeError(f"Invalid {name}. Expected an integer.") from exc
    if parsed < minimum:
        raise RuntimeError(f"Invalid {name}. Expected a value >= {minimum}.")
    return parsed


def _parse_float(name: str, value: str | None, default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value.strip())
    except ValueError as exc:
        raise RuntimeError(f"Invalid {name}. Expected a number.") from exc
    if parsed <= 0:
        raise RuntimeError(f"Invalid {name}. Expected a positive number.")
    return parsed


def _parse_color(value: str | None) -> int:
    if value is None or not value.strip():
        return TS_BLUE

    normalized = value.strip().lower()
    try:
        if normalized.startswith("#"):
            return int(normalized[1:], 16)
        if normalized.startswith("0x"):
            return int(normalized[2:], 16)
        return int(normalized)
    except ValueError as exc:
        raise RuntimeError(
            "Invalid BOT_EMBED_COLOR. Expected '#RRGGBB', '0xRRGGBB' or an integer."
        ) from exc
