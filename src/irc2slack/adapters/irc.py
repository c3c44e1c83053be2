"""IRC adapter: one raw TCP session to the server, reconnected on failure."""

from __future__ import annotations

import asyncio
import contextlib
import ssl
from typing import TYPE_CHECKING

from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_never,
    wait_fixed,
)

from irc2slack.errors import IRCConnectionError, IRCWriteError
from irc2slack.events import IRCRelayEvent
from irc2slack.formatting import (
    LineKind,
    build_pong,
    classify,
    extract_action_text,
    extract_chat_text,
    extract_nickname,
    format_for_slack,
    irc_command,
    irc_to_slack,
    message_target,
    split_irc_lines,
)
from irc2slack.formatting.irc_line import SOH

if TYPE_CHECKING:
    from irc2slack.adapters.slack import SlackPoster
    from irc2slack.config import Config

ERR_NICKNAMEINUSE = "433"


def relay_event(line: str, channel: str) -> IRCRelayEvent | None:
    """Turn a raw line into a relayable event, or None if there is nothing to post.

    Only traffic addressed to channel is relayed; private queries and CTCP
    requests other than ACTION are dropped.
    """
    kind = classify(line)
    if kind not in (LineKind.PRIVMSG, LineKind.ACTION, LineKind.JOIN, LineKind.PART):
        return None
    if message_target(line).lower() != channel.lower():
        return None
    nick = extract_nickname(line)
    if not nick:
        return None
    text = ""
    if kind is LineKind.PRIVMSG:
        text = extract_chat_text(line)
        if text.startswith(SOH):
            return None
    elif kind is LineKind.ACTION:
        text = extract_action_text(line)
    return IRCRelayEvent(kind=kind.value, nick=nick, text=text)


class IRCSession:
    """A live connection and the lock that serializes writes to it.

    A session is never reused: each reconnect builds a new one.
    """

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._reader = reader
        self._writer = writer
        self._lock = asyncio.Lock()

    @property
    def is_closing(self) -> bool:
        return self._writer.is_closing()

    async def write_line(self, line: str) -> None:
        """Write one protocol line (CRLF appended) while holding the write lock."""
        line = line.rstrip("\r\n")
        if "\r" in line or "\n" in line:
            raise ValueError("IRC line must not contain CR or LF")
        data = (line + "\r\n").encode("utf-8", errors="replace")
        async with self._lock:
            if self._writer.is_closing():
                raise IRCWriteError("IRC connection is closed", code="closed")
            try:
                self._writer.write(data)
                await self._writer.drain()
            except (ConnectionError, OSError) as exc:
                raise IRCWriteError(
                    f"IRC write failed: {exc}",
                    code="write_failed",
                    original_error=exc,
                ) from exc

    async def read_line(self) -> str | None:
        """Next line from the server, or None at end of stream."""
        try:
            data = await self._reader.readline()
        except (ConnectionError, OSError, asyncio.LimitOverrunError, ValueError) as exc:
            raise IRCConnectionError(
                f"error reading message: {exc}",
                code="read_failed",
                original_error=exc,
            ) from exc
        if not data:
            return None
        return data.decode("utf-8", errors="replace")

    async def close(self) -> None:
        self._writer.close()
        with contextlib.suppress(ConnectionError, OSError):
            await self._writer.wait_closed()


class IRCSessionManager:
    """Owns the IRC connection: register, stream lines to Slack, reconnect forever.

    The first connection must succeed; later failures are retried after
    a fixed delay. wait_ready() resolves once the first session is registered.
    All writes go through write(), which targets whatever session is current.
    """

    def __init__(self, config: Config, poster: SlackPoster) -> None:
        self._config = config
        self._poster = poster
        self._session: IRCSession | None = None
        self._ready = asyncio.Event()
        self._nick = config.irc_nickname
        self._closing = False

    @property
    def nickname(self) -> str:
        return self._nick

    @property
    def channel(self) -> str:
        return self._config.irc_channel

    @property
    def connected(self) -> bool:
        return self._session is not None and not self._session.is_closing

    async def wait_ready(self) -> None:
        """Block until the first session has registered."""
        await self._ready.wait()

    async def write(self, line: str) -> None:
        """Guarded write of one raw line to the current session."""
        session = self._session
        if session is None:
            raise IRCWriteError("IRC is not connected", code="not_connected")
        logger.debug("IRC -> {}", line.rstrip("\r\n"))
        await session.write_line(line)

    async def send_privmsg(self, text: str) -> None:
        """PRIVMSG text to the channel; one line per text line, long lines chunked."""
        for payload in split_irc_lines(text):
            await self.write(f"PRIVMSG {self.channel} :{payload}")

    async def _open(self) -> IRCSession:
        host, port = self._config.irc_host, self._config.irc_port
        ssl_ctx = ssl.create_default_context() if self._config.irc_tls else None
        try:
            reader, writer = await asyncio.open_connection(host, port, ssl=ssl_ctx)
        except (OSError, asyncio.TimeoutError) as exc:
            raise IRCConnectionError(
                f"failed to connect to IRC server {host}:{port}: {exc}",
                code="connect_failed",
                details={"host": host, "port": port},
                original_error=exc,
            ) from exc
        logger.info("IRC connected to {}:{}", host, port)
        return IRCSession(reader, writer)

    async def _register(self, session: IRCSession) -> None:
        self._nick = self._config.irc_nickname
        nick, channel = self._nick, self.channel
        try:
            await session.write_line(f"NICK {nick}")
            await session.write_line(f"USER {nick} 8 * :{nick}")
            await session.write_line(f"JOIN {channel}")
        except IRCWriteError as exc:
            raise IRCConnectionError(
                f"IRC registration failed: {exc}",
                code="register_failed",
                original_error=exc,
            ) from exc

    async def handle_line(self, line: str) -> None:
        """Answer PINGs; forward channel traffic to Slack."""
        logger.debug("IRC <- {}", line.rstrip("\r\n"))
        kind = classify(line)
        if kind is LineKind.PING:
            await self.write(build_pong(line))
            return
        if irc_command(line) == ERR_NICKNAMEINUSE:
            self._nick += "_"
            logger.warning("IRC nick in use, retrying as {}", self._nick)
            await self.write(f"NICK {self._nick}")
            return

        evt = relay_event(line, self.channel)
        if evt is None or evt.nick == self._nick:
            return
        text = format_for_slack(LineKind(evt.kind), evt.nick, irc_to_slack(evt.text))
        if text:
            await self._poster.post(text)

    async def _stream(self, session: IRCSession) -> None:
        while True:
            line = await session.read_line()
            if line is None:
                raise IRCConnectionError("IRC server closed the connection", code="eof")
            try:
                await self.handle_line(line)
            except IRCWriteError as exc:
                raise IRCConnectionError(
                    f"IRC write failed while streaming: {exc}",
                    code="write_failed",
                    original_error=exc,
                ) from exc
            except ValueError as exc:
                # e.g. a PING whose parameter carries a bare CR cannot be echoed back
                logger.warning("Skipping IRC line {!r}: {}", line, exc)

    async def _connect_and_stream(self) -> None:
        """One connection attempt: connect, register, stream until failure."""
        session = await self._open()
        try:
            await self._register(session)
            self._session = session
            if not self._ready.is_set():
                self._ready.set()
                logger.info("IRC ready: joined {} as {}", self.channel, self._nick)
            await self._stream(session)
        finally:
            if self._session is session:
                self._session = None
            await session.close()

    def _should_reconnect(self, exc: BaseException) -> bool:
        # Fatal before the first registration and after close()
        return isinstance(exc, IRCConnectionError) and self._ready.is_set() and not self._closing

    def _log_reconnect(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "IRC error: {}; reconnecting in {}s",
            exc,
            self._config.irc_reconnect_delay,
        )

    async def run(self) -> None:
        """Run until cancelled. Raises IRCConnectionError if the first connection fails."""
        retrying = AsyncRetrying(
            retry=retry_if_exception(self._should_reconnect),
            wait=wait_fixed(self._config.irc_reconnect_delay),
            stop=stop_never,
            before_sleep=self._log_reconnect,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                await self._connect_and_stream()

    async def close(self) -> None:
        self._closing = True
        session, self._session = self._session, None
        if session is not None:
            with contextlib.suppress(IRCWriteError, ValueError):
                await session.write_line("QUIT :bridge shutting down")
            await session.close()
