"""Event types crossing the bridge."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class SlackMessageEvent:
    """A Slack `message` event as delivered by the Events API."""

    user: str
    text: str
    channel: str = ""
    subtype: str = ""  # empty for a plain user message
    bot_id: str = ""  # empty unless bot-authored
    event_id: str = ""  # from the envelope; used to drop redeliveries

    @classmethod
    def from_envelope(cls, envelope: dict[str, Any]) -> SlackMessageEvent | None:
        """Build from an event_callback envelope; None if it is not a message event."""
        evt = envelope.get("event")
        if not isinstance(evt, dict) or evt.get("type") != "message":
            return None
        return cls(
            user=str(evt.get("user") or ""),
            text=str(evt.get("text") or ""),
            channel=str(evt.get("channel") or ""),
            subtype=str(evt.get("subtype") or ""),
            bot_id=str(evt.get("bot_id") or ""),
            event_id=str(envelope.get("event_id") or ""),
        )


@dataclass
class IRCRelayEvent:
    """Something seen on IRC that is worth posting to Slack."""

    kind: str  # LineKind value: "privmsg" | "action" | "join" | "part"
    nick: str
    text: str = ""
