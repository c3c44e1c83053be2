"""Classify raw IRC lines and pull out nick, chat text, and /me payloads.

Pure string functions; no I/O. Lines may still carry their CRLF terminator.
"""

from __future__ import annotations

from enum import Enum

SOH = "\x01"
LINE_TERMINATORS = "\r\n"

_PRIVMSG_TOKEN = " PRIVMSG "
_ACTION_MARKER = "ACTION "


class LineKind(Enum):
    """What a raw IRC line means to the relay."""

    PING = "ping"
    JOIN = "join"
    PART = "part"
    ACTION = "action"
    PRIVMSG = "privmsg"
    IGNORE = "ignore"


def _strip_tags(line: str) -> str:
    """Drop a leading IRCv3 '@tags ' block if the server sent one."""
    if line.startswith("@"):
        _, _, rest = line.partition(" ")
        return rest
    return line


def irc_command(line: str) -> str:
    """Command keyword (or numeric) of a line, upper-cased; '' when there is none."""
    line = _strip_tags(line)
    if line.startswith(":"):
        _, _, line = line.partition(" ")
    parts = line.split(None, 1)
    return parts[0].upper() if parts else ""


def _trailing(line: str) -> str | None:
    """Trailing parameter of a PRIVMSG (after ' PRIVMSG ' and the first ' :')."""
    idx = line.find(_PRIVMSG_TOKEN)
    if idx == -1:
        return None
    rest = line[idx + len(_PRIVMSG_TOKEN) :]
    colon = rest.find(" :")
    if colon == -1:
        return None
    return rest[colon + 2 :]


def classify(line: str) -> LineKind:
    """Classify a raw line. Unknown commands and numerics are IGNORE."""
    command = irc_command(line)
    if command == "PING":
        return LineKind.PING
    if command == "JOIN":
        return LineKind.JOIN
    if command == "PART":
        return LineKind.PART
    if command == "PRIVMSG":
        trailing = _trailing(line)
        if trailing is not None and trailing.startswith(SOH + _ACTION_MARKER):
            return LineKind.ACTION
        return LineKind.PRIVMSG
    return LineKind.IGNORE


def extract_nickname(line: str) -> str | None:
    """Nick from ':nick!user@host ...'. None when the prefix has no '!'."""
    line = _strip_tags(line)
    if not line.startswith(":"):
        return None
    prefix = line[1:].split(" ", 1)[0]
    bang = prefix.find("!")
    if bang == -1:
        return None
    return prefix[:bang]


def message_target(line: str) -> str:
    """First parameter after the command: the channel (or nick) a line is addressed to."""
    line = _strip_tags(line)
    if line.startswith(":"):
        _, _, line = line.partition(" ")
    parts = line.split(None, 2)
    if len(parts) < 2:
        return ""
    return parts[1].rstrip(LINE_TERMINATORS).lstrip(":")


def extract_chat_text(line: str) -> str:
    """Text of a PRIVMSG.

    Anchors on ' PRIVMSG ' first so colons inside an IPv6 host in the prefix
    are never mistaken for the start of the trailing parameter.
    """
    trailing = _trailing(line)
    if trailing is None:
        return ""
    return trailing.rstrip(LINE_TERMINATORS)


def extract_action_text(line: str) -> str:
    """Payload of a CTCP ACTION: text between 'ACTION ' and the next SOH.

    Without a closing SOH the rest of the line is taken, minus CRLF.
    """
    start = line.find(_ACTION_MARKER)
    if start == -1:
        return ""
    start += len(_ACTION_MARKER)
    end = line.find(SOH, start)
    if end == -1:
        return line[start:].rstrip(LINE_TERMINATORS)
    return line[start:end].rstrip(LINE_TERMINATORS)


def _command_offset(line: str) -> int:
    """Index where the command keyword starts, past any tags and prefix."""
    i = 0
    for marker in ("@", ":"):
        if line.startswith(marker, i):
            space = line.find(" ", i)
            if space == -1:
                return len(line)
            i = space
            while line.startswith(" ", i):
                i += 1
    return i


def build_pong(line: str) -> str:
    """PONG reply for a PING line; everything but the keyword is kept as-is."""
    idx = _command_offset(line)
    if line[idx : idx + 4].upper() != "PING":
        raise ValueError(f"not a PING line: {line!r}")
    return line[:idx] + "PONG" + line[idx + 4 :]


def format_for_slack(kind: LineKind, nick: str, text: str = "") -> str | None:
    """Slack text for a relayable event; None for kinds that are not relayed."""
    if kind is LineKind.PRIVMSG:
        return f"<{nick}> {text}"
    if kind is LineKind.ACTION:
        return f"_{nick} {text}_"
    if kind is LineKind.JOIN:
        return f"*{nick} has joined the channel*"
    if kind is LineKind.PART:
        return f"*{nick} has left the channel*"
    return None
