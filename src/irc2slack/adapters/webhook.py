"""Slack Events API endpoint: relay channel messages to IRC."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from aiohttp import web
from cachetools import TTLCache
from loguru import logger

from irc2slack.errors import IRCWriteError
from irc2slack.events import SlackMessageEvent
from irc2slack.formatting import slack_to_irc, split_irc_lines
from irc2slack.formatting.irc_message_split import DEFAULT_MAX_BYTES

if TYPE_CHECKING:
    from irc2slack.config import Config
    from irc2slack.identity import IdentityCache

WEBHOOK_PATH = "/webhook"
HEALTH_PATH = "/healthz"

# Slack redelivers an event when the first answer is slow
_SEEN_EVENT_TTL = 600
_SEEN_EVENT_MAXSIZE = 1024


class IRCWriter(Protocol):
    """The slice of IRCSessionManager the webhook needs."""

    @property
    def connected(self) -> bool: ...

    async def send_privmsg(self, text: str) -> None: ...


def should_process_message(
    evt: SlackMessageEvent,
    *,
    ignore_bots: bool,
    ignored_users: frozenset[str] | set[str],
    channel_id: str = "",
) -> bool:
    """True if a Slack message should be relayed to IRC.

    Drops subtyped events (edits, joins, bot wrappers), bot posts when
    ignore_bots is set, ignored senders, and other channels when channel_id is set.
    """
    if evt.subtype:
        return False
    if ignore_bots and evt.bot_id:
        return False
    if not evt.user or evt.user in ignored_users:
        return False
    return not (channel_id and evt.channel and evt.channel != channel_id)


class SlackWebhookHandler:
    """aiohttp handler for POST /webhook. Holds no per-request state."""

    def __init__(self, irc: IRCWriter, identity: IdentityCache, config: Config) -> None:
        self._irc = irc
        self._identity = identity
        self._ignore_bots = config.slack_ignore_bots
        self._ignored_users = config.slack_ignored_users
        self._channel_id = config.slack_channel_id
        self._seen: TTLCache[str, bool] = TTLCache(maxsize=_SEEN_EVENT_MAXSIZE, ttl=_SEEN_EVENT_TTL)

    async def handle(self, request: web.Request) -> web.Response:
        if request.method != "POST":
            return web.Response(status=405, text="method not allowed")

        try:
            envelope = await request.json()
        except ValueError as exc:
            logger.warning("Rejecting webhook with bad JSON: {}", exc)
            return web.Response(status=400, text="bad request")
        if not isinstance(envelope, dict):
            return web.Response(status=400, text="bad request")

        if envelope.get("type") == "url_verification":
            return web.Response(text=str(envelope.get("challenge") or ""))

        evt = SlackMessageEvent.from_envelope(envelope)
        if evt is None:
            return web.Response(text="ok")

        if evt.event_id and evt.event_id in self._seen:
            logger.debug("Dropping redelivered Slack event {}", evt.event_id)
            return web.Response(text="ok")

        if not should_process_message(
            evt,
            ignore_bots=self._ignore_bots,
            ignored_users=self._ignored_users,
            channel_id=self._channel_id,
        ):
            logger.debug("Filtered Slack message from {} (subtype={!r})", evt.user, evt.subtype)
            return web.Response(text="ok")

        # Claim the ID up front; released only if the relay fails
        if evt.event_id:
            self._seen[evt.event_id] = True
        try:
            await self._relay(evt)
        except IRCWriteError as exc:
            if evt.event_id:
                self._seen.pop(evt.event_id, None)
            logger.error("Failed to relay Slack message to IRC: {}", exc)
            return web.Response(status=500, text="irc write failed")
        return web.Response(text="ok")

    async def _relay(self, evt: SlackMessageEvent) -> None:
        name = await self._identity.resolve(evt.user)
        text = slack_to_irc(await self._identity.translate_mentions(evt.text))
        prefix = f"<{name}> "
        budget = max(DEFAULT_MAX_BYTES - len(prefix.encode("utf-8")), 1)
        lines = [prefix + chunk for chunk in split_irc_lines(text, max_bytes=budget)]
        if lines:
            await self._irc.send_privmsg("\n".join(lines))

    async def healthz(self, request: web.Request) -> web.Response:
        if self._irc.connected:
            return web.Response(text="ok")
        return web.Response(status=503, text="irc disconnected")


def create_app(handler: SlackWebhookHandler) -> web.Application:
    """aiohttp application exposing the webhook and health routes."""
    app = web.Application()
    app.router.add_route("*", WEBHOOK_PATH, handler.handle)
    app.router.add_get(HEALTH_PATH, handler.healthz)
    return app
