"""relaybot entrypoint. Loads config, starts the Discord adapter."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from relaybot import __version__
from relaybot.adapters.discord import DiscordRelayAdapter
from relaybot.config import Config, cfg, load_config_with_env
from relaybot.core.errors import RelayConfigurationError

# Third-party libraries to intercept and route through loguru
_INTERCEPTED_LIBRARIES = ["discord", "discord.client", "discord.gateway", "discord.http"]


def _intercept_logging(level: str) -> None:
    """Route discord.py's stdlib logs to loguru."""

    class InterceptHandler(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            try:
                log_level = logger.level(record.levelname).name
            except ValueError:
                log_level = str(record.levelno)
            msg = record.getMessage().replace("{", "{{").replace("}", "}}")
            logger.patch(
                lambda r: r.update(
                    name=record.name,
                    function=record.funcName,
                    line=record.lineno,
                ),
            ).opt(exception=record.exc_info).log(log_level, msg)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for lib in _INTERCEPTED_LIBRARIES:
        lib_logger = logging.getLogger(lib)
        lib_logger.handlers = [InterceptHandler()]
        lib_logger.propagate = False
        # gateway chatter is noisy at DEBUG
        lib_logger.setLevel("INFO" if level == "DEBUG" and lib == "discord.gateway" else level)


def _safe_message_filter(record: Any) -> bool:
    """Escape braces/angles in log messages to prevent format/tag errors."""
    if isinstance(record.get("message"), str):
        msg = record["message"]
        msg = msg.replace("{", "{{").replace("}", "}}").replace("<", "\\<")
        record["message"] = msg
    return True


def setup_logging(verbose: bool = False) -> None:
    """Configure loguru. Replace default logging.
    Level: verbose=True or LOG_LEVEL=DEBUG enables DEBUG; otherwise INFO."""
    level = "INFO"
    if verbose:
        level = "DEBUG"
    else:
        env_level = (os.environ.get("LOG_LEVEL") or "").upper()
        if env_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
            level = env_level

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=("<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}"),
        filter=_safe_message_filter,
    )
    _intercept_logging(level)


def reload_config(config_path: Path) -> Config:
    """Load config from path and update global cfg."""
    data = load_config_with_env(config_path)
    cfg.reload(data)
    return cfg


def main() -> None:
    """Main entrypoint."""
    parser = argparse.ArgumentParser(description="relaybot: relay Discord channels through webhooks")
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
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    args = parser.parse_args()

    setup_logging(args.verbose)

    if not args.config.exists():
        logger.warning("Config file not found: {}; using defaults", args.config)

    try:
        config = reload_config(args.config)
    except RelayConfigurationError as exc:
        logger.error("Invalid config {}: {}", args.config, exc)
        sys.exit(1)
    logger.info("Config loaded from {}", args.config)

    adapter = DiscordRelayAdapter(config)

    def on_sighup(*a: object, **kw: object) -> None:
        try:
            adapter.apply_config(reload_config(args.config))
        except RelayConfigurationError as exc:
            logger.error("Config reload rejected: {}", exc)
            return
        logger.info("Config reloaded (SIGHUP)")

    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, on_sighup)

    try:
        code = asyncio.run(_run(adapter))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return
    if code:
        sys.exit(code)


async def _run(adapter: DiscordRelayAdapter) -> int:
    """Start the adapter and wait for the bot to finish. Returns the process exit code."""
    logger.info("Starting {} adapter", adapter.name)
    await adapter.start()
    if adapter.controller is None:
        logger.error("Nothing to run; exiting")
        return 1

    try:
        await adapter.wait_closed()
    except asyncio.CancelledError:
        logger.info("relaybot shutting down")
        return 0
    else:
        logger.error("Discord bot exited; shutting down")
        return 1
    finally:
        await adapter.stop()


if __name__ == "__main__":
    main()
