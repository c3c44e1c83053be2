"""Convert Slack message markup to plain text for IRC."""

from __future__ import annotations

import re

# <...> control sequences: links, channels, special mentions
_CONTROL_RE = re.compile(r"<([^<>]+)>")

_SPECIAL_MENTIONS = {
    "!here": "@here",
    "!channel": "@channel",
    "!everyone": "@everyone",
}


def _unescape(text: str) -> str:
    """Undo Slack's HTML-entity escaping (&amp; last)."""
    return text.replace("&lt;", "<").replace("&gt;", ">").replace("&amp;", "&")


def _replace_control(match: re.Match[str]) -> str:
    body = match.group(1)
    target, _, label = body.partition("|")
    if target.startswith("#C"):
        return f"#{label}" if label else target
    if target.startswith("!"):
        special = _SPECIAL_MENTIONS.get(target.split("^", 1)[0])
        if special:
            return special
        return f"@{label}" if label else match.group(0)
    if target.startswith("@"):
        # User mentions are handled by IdentityCache.translate_mentions
        return match.group(0)
    if label:
        if label == target or target.endswith(f"//{label}") or target == f"mailto:{label}":
            return label
        return f"{label} ({target})"
    if target.startswith("mailto:"):
        return target[len("mailto:") :]
    return target


def slack_to_irc(content: str) -> str:
    """Flatten links, channel refs and !here/!channel, then unescape entities."""
    if not content:
        return content
    return _unescape(_CONTROL_RE.sub(_replace_control, content))
