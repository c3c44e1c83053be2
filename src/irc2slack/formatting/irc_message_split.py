"""Split relayed text into IRC-safe PRIVMSG payloads."""

from __future__ import annotations

# 512-byte line limit minus "PRIVMSG #channel :", CRLF and the prefix the
# server prepends when relaying to other clients.
DEFAULT_MAX_BYTES = 400


def _utf8_boundary(encoded: bytes, end: int) -> int:
    """Largest index <= end that does not fall inside a UTF-8 sequence."""
    while end > 0 and end < len(encoded) and (encoded[end] & 0xC0) == 0x80:
        end -= 1
    return end


def split_irc_message(content: str, max_bytes: int = DEFAULT_MAX_BYTES) -> list[str]:
    """Split one line into chunks of at most max_bytes, preferring word boundaries.

    Never splits in the middle of a UTF-8 multi-byte character.
    """
    if not content:
        return []
    encoded = content.encode("utf-8", errors="replace")
    if len(encoded) <= max_bytes:
        return [content]

    chunks: list[str] = []
    start = 0
    while start < len(encoded):
        end = min(start + max_bytes, len(encoded))
        if end < len(encoded):
            end = _utf8_boundary(encoded, end)
            if end <= start:
                # max_bytes smaller than one character; emit the character whole
                end = start + 1
                while end < len(encoded) and (encoded[end] & 0xC0) == 0x80:
                    end += 1
            else:
                space = encoded.rfind(b" ", start, end)
                if space > start + max_bytes // 2:
                    end = space + 1
        chunks.append(encoded[start:end].decode("utf-8", errors="replace"))
        start = end
    return chunks


def split_irc_lines(content: str, max_bytes: int = DEFAULT_MAX_BYTES) -> list[str]:
    """Split multi-line text into PRIVMSG payloads: one per line, each chunked.

    Blank lines are dropped; CR and LF never survive into a payload.
    """
    payloads: list[str] = []
    for line in content.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        if line.strip():
            payloads.extend(split_irc_message(line, max_bytes=max_bytes))
    return payloads
