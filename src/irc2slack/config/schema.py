"""Config schema and accessor."""

from __future__ import annotations

from typing import Any

from loguru import logger

from irc2slack.errors import BridgeConfigurationError

_REQUIRED_KEYS = (
    "irc.server",
    "irc.channel",
    "irc.nickname",
    "slack.webhook_url",
)

DEFAULT_LISTEN_ADDR = ":8080"
DEFAULT_SLACK_API_BASE = "https://slack.com/api"


def parse_address(addr: str) -> tuple[str, int]:
    """Split 'host:port' (or '[v6]:port', or ':port') into (host, port).

    Raises ValueError when the port is missing or not an integer.
    """
    addr = addr.strip()
    if addr.startswith("["):
        host, sep, rest = addr[1:].partition("]")
        if not sep or not rest.startswith(":"):
            raise ValueError(f"invalid address: {addr!r}")
        port_str = rest[1:]
    else:
        host, sep, port_str = addr.rpartition(":")
        if not sep:
            raise ValueError(f"missing port in address: {addr!r}")
    port = int(port_str)
    if not 0 < port < 65536:
        raise ValueError(f"port out of range in address: {addr!r}")
    return host, port


class Config:
    """Config accessor with attribute-style access for nested keys."""

    def __init__(self, data: dict[str, Any] | None = None, *, validate: bool = False) -> None:
        self._data = data or {}
        if validate:
            self._validate()

    def _validate(self) -> None:
        """Validate config structure; raise BridgeConfigurationError on failure."""
        for key in _REQUIRED_KEYS:
            if not self.get(key):
                raise BridgeConfigurationError(
                    f"missing required config key {key}",
                    code="missing_key",
                    details={"key": key},
                )
        for key, value in (
            ("irc.server", self.irc_server),
            ("slack.listen_addr", self.slack_listen_addr),
        ):
            try:
                parse_address(value)
            except ValueError as exc:
                raise BridgeConfigurationError(
                    f"{key} must be host:port, got {value!r}",
                    code="invalid_address",
                    details={"key": key, "value": value},
                    original_error=exc,
                ) from exc
        ignored = self.get("slack.ignored_users")
        if ignored is not None and not isinstance(ignored, list):
            raise BridgeConfigurationError(
                "slack.ignored_users must be a list",
                code="invalid_ignored_users",
                details={"type": type(ignored).__name__},
            )
        logger.debug("Config validated: {} on {}", self.irc_channel, self.irc_server)

    def get(self, key: str, default: Any = None) -> Any:
        """Get value by dot-separated path (e.g. 'irc.channel')."""
        parts = key.split(".")
        obj: Any = self._data
        for part in parts:
            if isinstance(obj, dict) and part in obj:
                obj = obj[part]
            else:
                return default
        return obj

    # IRC

    @property
    def irc_server(self) -> str:
        return str(self.get("irc.server", ""))

    @property
    def irc_host(self) -> str:
        return parse_address(self.irc_server)[0]

    @property
    def irc_port(self) -> int:
        return parse_address(self.irc_server)[1]

    @property
    def irc_channel(self) -> str:
        return str(self.get("irc.channel", ""))

    @property
    def irc_nickname(self) -> str:
        return str(self.get("irc.nickname", ""))

    @property
    def irc_tls(self) -> bool:
        return bool(self.get("irc.tls", False))

    @property
    def irc_reconnect_delay(self) -> float:
        return float(self.get("irc.reconnect_delay", 5))

    # Slack

    @property
    def slack_webhook_url(self) -> str:
        return str(self.get("slack.webhook_url", ""))

    @property
    def slack_listen_addr(self) -> str:
        return str(self.get("slack.listen_addr") or DEFAULT_LISTEN_ADDR)

    @property
    def slack_listen_host(self) -> str | None:
        """Listen host; None binds every interface."""
        host = parse_address(self.slack_listen_addr)[0]
        return host or None

    @property
    def slack_listen_port(self) -> int:
        return parse_address(self.slack_listen_addr)[1]

    @property
    def slack_bot_token(self) -> str:
        return str(self.get("slack.bot_token", ""))

    @property
    def slack_api_base(self) -> str:
        return str(self.get("slack.api_base") or DEFAULT_SLACK_API_BASE).rstrip("/")

    @property
    def slack_channel_id(self) -> str:
        return str(self.get("slack.channel_id") or "")

    @property
    def slack_ignore_bots(self) -> bool:
        return bool(self.get("slack.ignore_bots", True))

    @property
    def slack_ignored_users(self) -> frozenset[str]:
        val = self.get("slack.ignored_users")
        if isinstance(val, list):
            return frozenset(str(u) for u in val)
        return frozenset()

    # Identity cache

    @property
    def identity_cache_ttl_seconds(self) -> int:
        return int(self._data.get("identity_cache_ttl_seconds", 3600))

    @property
    def identity_cache_maxsize(self) -> int:
        return int(self._data.get("identity_cache_maxsize", 4096))
