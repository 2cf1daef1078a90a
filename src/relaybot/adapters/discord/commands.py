"""`relay` command handling: argument shapes, status replies, check failures."""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import TYPE_CHECKING

from discord.ext import commands
from loguru import logger

from relaybot.core.errors import RelayCommandError

if TYPE_CHECKING:
    from relaybot.relay.controller import RelayController

_CHANNEL_MENTION = re.compile(r"^<#(\d+)>$")


def usage(prefix: str) -> str:
    return f"{prefix}relay <source-channel-id> <target-channel-id> OR {prefix}relay stop"


def parse_channel_id(arg: str) -> str:
    """Accept a raw id or a <#id> channel mention."""
    match = _CHANNEL_MENTION.match(arg.strip())
    return match.group(1) if match else arg.strip()


async def handle_relay_command(
    controller: RelayController,
    ctx: commands.Context,
    args: Sequence[str],
    *,
    prefix: str,
) -> None:
    """Dispatch `relay <source> <target>` / `relay stop`; every outcome is a reply in ctx.channel."""
    if len(args) == 2:
        source_id, target_id = parse_channel_id(args[0]), parse_channel_id(args[1])
        try:
            await controller.start(source_id, target_id)
        except RelayCommandError as exc:
            logger.info("relay start refused ({}): {} -> {}", exc.code, source_id, target_id)
            await ctx.send(str(exc))
            return
        await ctx.send(f"Started relaying messages from <#{source_id}> to <#{target_id}>.")
        return

    if args and args[0] == "stop":
        # stop always targets the channel the command is issued in
        target_id = str(ctx.channel.id)
        try:
            controller.stop(target_id)
        except RelayCommandError as exc:
            await ctx.send(str(exc))
            return
        await ctx.send(f"Stopped relaying messages to <#{target_id}>.")
        return

    await ctx.send(f"Invalid command format. Usage: `{usage(prefix)}`")


async def handle_command_error(ctx: commands.Context, error: commands.CommandError) -> None:
    """Turn check failures into replies; log the rest. Nothing propagates to the dispatcher."""
    if isinstance(error, commands.CommandNotFound):
        return
    try:
        if isinstance(error, commands.NoPrivateMessage):
            await ctx.send("This command can only be used in a server.")
        elif isinstance(error, commands.MissingPermissions):
            await ctx.send("You need the Administrator permission to use this command.")
        elif isinstance(error, commands.BotMissingPermissions):
            logger.warning("Bot lacks permissions {} in channel {}", error.missing_permissions, ctx.channel.id)
        elif isinstance(error, commands.CommandOnCooldown):
            await ctx.send(f"This command is on cooldown. Try again in {error.retry_after:.1f}s.")
        else:
            original = getattr(error, "original", error)
            logger.opt(exception=original).error("Command {} failed: {}", ctx.command, original)
    except Exception as exc:
        logger.exception("Could not report command error in channel {}: {}", ctx.channel.id, exc)
