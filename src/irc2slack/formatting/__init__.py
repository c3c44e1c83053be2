"""IRC line parsing and cross-platform text formatting."""

from irc2slack.formatting.irc_line import (
    LineKind,
    build_pong,
    classify,
    extract_action_text,
    extract_chat_text,
    extract_nickname,
    format_for_slack,
    irc_command,
    message_target,
)
from irc2slack.formatting.irc_message_split import split_irc_lines, split_irc_message
from irc2slack.formatting.irc_to_slack import irc_to_slack
from irc2slack.formatting.slack_to_irc import slack_to_irc

__all__ = [
    "LineKind",
    "build_pong",
    "classify",
    "extract_action_text",
    "extract_chat_text",
    "extract_nickname",
    "format_for_slack",
    "irc_command",
    "irc_to_slack",
    "message_target",
    "slack_to_irc",
    "split_irc_lines",
    "split_irc_message",
]
