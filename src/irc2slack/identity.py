"""Slack user lookup client + TTL cache of display names."""

from __future__ import annotations

import asyncio
import re
import time
from collections.abc import Callable
from typing import Any

import httpx
from cachetools import TTLCache
from loguru import logger

from irc2slack.errors import IdentityLookupError

# <@U123> or <@U123|legacy-name>
MENTION_RE = re.compile(r"<@([A-Za-z0-9]+)(?:\|[^>]*)?>")

DEFAULT_TTL_SECONDS = 3600
DEFAULT_MAXSIZE = 4096


class SlackUserClient:
    """Async client for Slack users.info.

    Endpoint: GET {api_base}/users.info?user=<id>, bearer token auth.
    Response shape: { ok, user: { profile: { display_name, real_name } } }
    """

    def __init__(
        self,
        api_base: str,
        token: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_base = api_base.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        h: dict[str, str] = {"Accept": "application/json"}
        if self._token:
            h["Authorization"] = f"Bearer {self._token}"
        return h

    async def get_profile(self, user_id: str) -> dict[str, Any]:
        """Fetch the profile dict for user_id. Raises IdentityLookupError on any failure."""
        url = f"{self._api_base}/users.info"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(url, params={"user": user_id}, headers=self._headers())
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise IdentityLookupError(
                f"users.info request failed for {user_id}: {exc}",
                code="transport",
                details={"user": user_id},
                original_error=exc,
            ) from exc

        if not isinstance(data, dict) or not data.get("ok"):
            error = data.get("error") if isinstance(data, dict) else None
            raise IdentityLookupError(
                f"users.info rejected {user_id}: {error or 'malformed response'}",
                code="api",
                details={"user": user_id, "error": error},
            )
        user = data.get("user")
        profile = user.get("profile") if isinstance(user, dict) else None
        if not isinstance(profile, dict):
            raise IdentityLookupError(
                f"users.info returned no profile for {user_id}",
                code="malformed",
                details={"user": user_id},
            )
        return profile


class IdentityCache:
    """Slack user ID -> display name, memoized for a fixed TTL.

    Reads never block. Misses for the same user are serialized on a per-user
    lock so concurrent requests share one users.info call. Failed lookups
    return the raw ID and are not cached.
    """

    def __init__(
        self,
        client: SlackUserClient,
        *,
        ttl: int = DEFAULT_TTL_SECONDS,
        maxsize: int = DEFAULT_MAXSIZE,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._cache: TTLCache[str, str] = TTLCache(maxsize=maxsize, ttl=float(ttl), timer=timer)
        self._locks: TTLCache[str, asyncio.Lock] = TTLCache(
            maxsize=maxsize, ttl=float(ttl), timer=timer
        )

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    async def resolve(self, user_id: str) -> str:
        """Display name for user_id: display_name, then real_name, then the ID itself."""
        name = self._cache.get(user_id)
        if name is not None:
            return name

        async with self._lock_for(user_id):
            # Another request may have filled it while we waited
            name = self._cache.get(user_id)
            if name is not None:
                return name
            try:
                profile = await self._client.get_profile(user_id)
            except IdentityLookupError as exc:
                logger.warning("Identity lookup failed for {}: {}", user_id, exc)
                return user_id
            name = (
                str(profile.get("display_name") or "")
                or str(profile.get("real_name") or "")
                or user_id
            )
            self._cache[user_id] = name
            logger.debug("Resolved Slack user {} -> {}", user_id, name)
            return name

    async def translate_mentions(self, text: str) -> str:
        """Replace every <@ID> with @displayName. Text without mentions is returned as-is."""
        user_ids = list(dict.fromkeys(m.group(1) for m in MENTION_RE.finditer(text)))
        if not user_ids:
            return text
        names = await asyncio.gather(*(self.resolve(uid) for uid in user_ids))
        resolved = dict(zip(user_ids, names))
        return MENTION_RE.sub(lambda m: f"@{resolved[m.group(1)]}", text)
