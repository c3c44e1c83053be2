"""Protocol adapters: IRC session, Slack poster, Slack webhook endpoint."""

from irc2slack.adapters.irc import IRCSession, IRCSessionManager
from irc2slack.adapters.slack import SlackPoster
from irc2slack.adapters.webhook import SlackWebhookHandler, create_app, should_process_message

__all__ = [
    "IRCSession",
    "IRCSessionManager",
    "SlackPoster",
    "SlackWebhookHandler",
    "create_app",
    "should_process_message",
]
