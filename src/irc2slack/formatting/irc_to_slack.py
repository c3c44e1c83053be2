"""Convert IRC control codes to Slack mrkdwn."""

from __future__ import annotations

import re

# IRC control codes
BOLD = "\x02"
COLOR = "\x03"
HEX_COLOR = "\x04"
MONOSPACE = "\x11"
REVERSE = "\x16"
ITALIC = "\x1D"
STRIKETHROUGH = "\x1E"
UNDERLINE = "\x1F"
RESET = "\x0F"

_COLOR_RE = re.compile(r"\x03\d{0,2}(?:,\d{1,2})?")
_HEX_COLOR_RE = re.compile(r"\x04(?:[0-9a-fA-F]{6}(?:,[0-9a-fA-F]{6})?)?")

# Toggle codes and the Slack marker each one opens/closes
_MARKERS = {
    BOLD: "*",
    ITALIC: "_",
    STRIKETHROUGH: "~",
    MONOSPACE: "`",
}


def irc_to_slack(content: str) -> str:
    """Convert IRC bold/italic/strike/monospace to mrkdwn. Strip colors and the rest."""
    if not content:
        return content

    content = _COLOR_RE.sub("", content)
    content = _HEX_COLOR_RE.sub("", content)

    result: list[str] = []
    open_codes: list[str] = []
    for c in content:
        if c in _MARKERS:
            if c in open_codes:
                open_codes.remove(c)
            else:
                open_codes.append(c)
            result.append(_MARKERS[c])
        elif c == RESET:
            # Close in reverse order of opening
            for code in reversed(open_codes):
                result.append(_MARKERS[code])
            open_codes.clear()
        elif c in (UNDERLINE, REVERSE):
            continue
        else:
            result.append(c)

    for code in reversed(open_codes):
        result.append(_MARKERS[code])
    return "".join(result)
