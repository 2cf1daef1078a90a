"""Discord adapter: bot lifecycle, relay command, idle sweeper."""

from __future__ import annotations

import asyncio
import contextlib

import aiohttp
from discord import Intents, Message
from discord.ext import commands
from loguru import logger

from relaybot.adapters.discord.commands import handle_command_error, handle_relay_command, usage
from relaybot.config import Config
from relaybot.relay.controller import RelayController
from relaybot.relay.webhook import resolve_channel


class DiscordRelayAdapter:
    """Runs the Discord bot that hosts the relay command and owns the RelayController."""

    def __init__(self, config: Config) -> None:
        self._config = config
        self._bot: commands.Bot | None = None
        self._session: aiohttp.ClientSession | None = None
        self._controller: RelayController | None = None
        self._bot_task: asyncio.Task | None = None
        self._sweeper_task: asyncio.Task | None = None

    @property
    def name(self) -> str:
        return "discord"

    @property
    def controller(self) -> RelayController | None:
        return self._controller

    def _command_prefix(self, bot: commands.Bot, message: Message) -> str:
        return self._config.command_prefix

    def apply_config(self, config: Config) -> None:
        """Push reloaded settings into the running controller."""
        self._config = config
        if self._controller:
            self._controller.webhook_name = config.webhook_name
            self._controller.max_attachment_bytes = config.max_attachment_bytes
            self._controller.idle_timeout_minutes = config.relay_idle_timeout_minutes

    async def _cmd_relay(self, ctx: commands.Context, args: tuple[str, ...]) -> None:
        if not self._controller:
            return
        await handle_relay_command(self._controller, ctx, args, prefix=self._config.command_prefix)

    async def _notify_expired(self, target_channel_id: str) -> None:
        if not self._bot:
            return
        channel = resolve_channel(self._bot, target_channel_id)
        if not channel:
            return
        minutes = self._config.relay_idle_timeout_minutes
        try:
            await channel.send(
                f"Stopped relaying messages to <#{target_channel_id}> after {minutes:g} minutes of inactivity."
            )
        except Exception as exc:
            logger.warning("Could not announce idle expiry in {}: {}", target_channel_id, exc)

    async def _idle_sweeper(self) -> None:
        """Background task: expire idle relays every idle_check_interval_seconds."""
        while True:
            try:
                await asyncio.sleep(self._config.idle_check_interval_seconds)
                if not self._controller:
                    continue
                for session in self._controller.expire_idle():
                    await self._notify_expired(session.target_channel_id)
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.exception("Idle sweep failed: {}", exc)

    def _build_bot(self) -> commands.Bot:
        intents = Intents.default()
        intents.message_content = True
        intents.messages = True
        intents.guilds = True
        intents.members = True  # member cache for mention rewriting

        bot = commands.Bot(command_prefix=self._command_prefix, intents=intents)

        @bot.event
        async def on_ready() -> None:
            logger.info("Discord bot ready: {}", bot.user)

        @bot.event
        async def on_command_error(ctx: commands.Context, error: commands.CommandError) -> None:
            await handle_command_error(ctx, error)

        @bot.command(
            name="relay",
            usage="<source-channel-id> <target-channel-id> | stop",
            help=f"Relay messages from one channel to another. Usage: {usage(self._config.command_prefix)}",
        )
        @commands.guild_only()
        @commands.has_permissions(administrator=True)
        @commands.bot_has_permissions(send_messages=True)
        @commands.cooldown(1, 3, commands.BucketType.user)
        async def cmd_relay(ctx: commands.Context, *args: str) -> None:
            await self._cmd_relay(ctx, args)

        return bot

    async def start(self) -> None:
        """Start Discord bot, relay controller and idle sweeper."""
        token = self._config.discord_token
        if not token:
            logger.warning("RELAYBOT_DISCORD_TOKEN not set; Discord adapter disabled")
            return

        bot = self._build_bot()
        self._session = aiohttp.ClientSession()
        self._controller = RelayController(
            bot,
            webhook_name=self._config.webhook_name,
            session=self._session,
            max_attachment_bytes=self._config.max_attachment_bytes,
            idle_timeout_minutes=self._config.relay_idle_timeout_minutes,
        )
        self._controller.init()
        self._bot = bot
        self._sweeper_task = asyncio.create_task(self._idle_sweeper())
        self._bot_task = asyncio.create_task(bot.start(token))
        self._bot_task.add_done_callback(self._on_bot_done)

    def _on_bot_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error("Discord bot stopped: {}", exc)
        else:
            logger.warning("Discord connection closed")

    async def wait_closed(self) -> None:
        """Wait until the bot task ends. Failures were already logged by _on_bot_done."""
        if not self._bot_task:
            return
        with contextlib.suppress(Exception):
            await self._bot_task

    async def stop(self) -> None:
        """Stop relays, sweeper and bot; close the HTTP session."""
        if self._sweeper_task:
            self._sweeper_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweeper_task
        if self._controller:
            await self._controller.teardown()
        if self._bot:
            await self._bot.close()
        if self._bot_task:
            self._bot_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await self._bot_task
        if self._session:
            await self._session.close()
        self._bot = None
        self._session = None
        self._controller = None
        self._bot_task = None
        self._sweeper_task = None
