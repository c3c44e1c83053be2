"""Outbound Slack poster: incoming-webhook delivery, best-effort."""

from __future__ import annotations

import httpx
from loguru import logger


class SlackPoster:
    """POSTs {"text": ...} to a Slack incoming webhook.

    Fire-and-forget: failures are logged and dropped, never retried.
    """

    def __init__(
        self,
        webhook_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def post(self, text: str) -> bool:
        """Deliver text to Slack. Returns True on a 2xx answer."""
        try:
            # json= does the escaping
            resp = await self._http().post(self._webhook_url, json={"text": text})
        except httpx.HTTPError as exc:
            logger.warning("Error sending message to Slack: {}", exc)
            return False
        if not resp.is_success:
            logger.warning(
                "Received non-OK response from Slack: {} {}",
                resp.status_code,
                resp.text[:200],
            )
            return False
        return True

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
