from __future__ import annotations

import httpx

DEFAULT_SHORTENER_URL = "https://tsplay.dev/api/short"


class ShortenerError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LinkShortenerClient:
    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        endpoint: str = DEFAULT_SHORTENER_URL,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._http_client = http_client
        self._endpoint = endpoint
        self._timeout_seconds = timeout_seconds

    async def shorten(self, url: str) -> str:
        payload = {"url": url, "createdOn": "api", "expires": False}
        try:
            response = await self._http_client.post(
                self._endpoint,
                json=payload,
                timeout=self._timeout_seconds,
            )
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            raise ShortenerError("Link shortener request failed.") from exc

        if response.status_code >= 400:
            raise ShortenerError(
                f"Link shortener returned HTTP {response.status_code}.",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise ShortenerError(
                "Received invalid api response from link shortener"
            ) from exc

        shortened = body.get("shortened") if isinstance(body, dict) else None
        if not isinstance(shortened, str):
            raise ShortenerError("Received invalid api response from link shortener")
        return shortened
