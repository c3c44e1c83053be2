"""Bridge domain exceptions."""

from __future__ import annotations


class BridgeError(Exception):
    """Base for bridge domain errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, object] | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.original_error = original_error


class BridgeConfigurationError(BridgeError):
    """Config validation or load failure."""


class IRCConnectionError(BridgeError):
    """IRC connect or read failure, including the server closing the stream."""


class IRCWriteError(BridgeError):
    """A guarded write could not reach the IRC server."""


class IdentityLookupError(BridgeError):
    """Slack users.info failed (transport, malformed body, or ok=false)."""
