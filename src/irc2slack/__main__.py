"""Bridge entrypoint. Loads config, connects to IRC, then serves the Slack webhook."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import signal
import subprocess
import sys
from pathlib import Path

import yaml
from aiohttp import web
from loguru import logger

from irc2slack import __version__
from irc2slack.adapters import IRCSessionManager, SlackPoster, SlackWebhookHandler, create_app
from irc2slack.config import Config, load_config_with_env, sample_config
from irc2slack.errors import BridgeConfigurationError, IRCConnectionError
from irc2slack.identity import IdentityCache, SlackUserClient

_DAEMON_FLAGS = ("--daemon", "-d")


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Configure loguru. Replace default logging."""
    level = "DEBUG" if verbose else "INFO"
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=(
            "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
            "<cyan>{name}</cyan> | {message}"
        ),
    )
    if log_file is not None:
        logger.add(log_file, level=level, rotation="10 MB", retention=5)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="irc2slack",
        description="Relay one IRC channel to one Slack channel and back",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file (rotated at 10 MB)",
    )
    parser.add_argument(
        "--sample-config",
        action="store_true",
        help="Print a sample config.yaml and exit",
    )
    parser.add_argument(
        "--daemon",
        "-d",
        action="store_true",
        help="Run in the background (detached from the terminal)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def daemonize(argv: list[str]) -> int:
    """Re-exec this command line without the daemon flag in a new session. Returns child PID."""
    child_args = [a for a in argv if a not in _DAEMON_FLAGS]
    proc = subprocess.Popen(
        [sys.executable, "-m", "irc2slack", *child_args],
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )
    return proc.pid


def load_bridge_config(path: Path) -> Config:
    """Load and validate config from path."""
    try:
        data = load_config_with_env(path)
    except yaml.YAMLError as exc:
        raise BridgeConfigurationError(
            f"could not parse {path}", code="invalid_yaml", original_error=exc
        ) from exc
    return Config(data, validate=True)


def main(argv: list[str] | None = None) -> None:
    """Main entrypoint."""
    argv = list(sys.argv[1:] if argv is None else argv)
    args = build_parser().parse_args(argv)

    if args.sample_config:
        sys.stdout.write(sample_config())
        return

    setup_logging(args.verbose, args.log_file)

    if not args.config.exists():
        logger.error("Config file not found: {}", args.config)
        sys.exit(1)

    try:
        config = load_bridge_config(args.config)
    except BridgeConfigurationError as exc:
        logger.error("Invalid config {}: {}", args.config, exc)
        sys.exit(1)
    logger.info("Config loaded from {}", args.config)

    if args.daemon:
        pid = daemonize(argv)
        print(f"irc2slack started in background (pid {pid})")
        return

    try:
        asyncio.run(_run(config))
    except IRCConnectionError as exc:
        logger.error("Could not establish the first IRC connection: {}", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        pass
    logger.info("Bridge stopped")


async def _run(config: Config) -> None:
    """Connect to IRC, then serve the webhook until SIGTERM, cancellation or an IRC failure."""
    poster = SlackPoster(config.slack_webhook_url)
    identity = IdentityCache(
        SlackUserClient(config.slack_api_base, config.slack_bot_token),
        ttl=config.identity_cache_ttl_seconds,
        maxsize=config.identity_cache_maxsize,
    )
    irc = IRCSessionManager(config, poster)

    stop = asyncio.Event()
    irc_task = asyncio.create_task(irc.run())
    ready_task = asyncio.create_task(irc.wait_ready())
    stop_task = asyncio.create_task(stop.wait())
    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGTERM, stop.set)

    runner: web.AppRunner | None = None
    try:
        await asyncio.wait(
            {irc_task, ready_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
        )
        if irc_task.done():
            # First connection failed; surface its exception
            irc_task.result()
            return
        if stop_task.done():
            return

        runner = web.AppRunner(create_app(SlackWebhookHandler(irc, identity, config)))
        await runner.setup()
        site = web.TCPSite(runner, config.slack_listen_host, config.slack_listen_port)
        await site.start()
        logger.info(
            "Listening for Slack events on {}:{}",
            config.slack_listen_host or "*",
            config.slack_listen_port,
        )

        await asyncio.wait({irc_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        if irc_task.done():
            irc_task.result()
    finally:
        logger.info("Bridge shutting down")
        # QUIT goes out on the live session before the read loop is torn down
        await irc.close()
        for task in (irc_task, ready_task, stop_task):
            task.cancel()
        await asyncio.gather(irc_task, ready_task, stop_task, return_exceptions=True)
        if runner is not None:
            await runner.cleanup()
        await poster.aclose()


if __name__ == "__main__":
    main()
