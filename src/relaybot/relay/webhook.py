"""Discord webhook utilities: fetch-or-create per target channel, send relayed payloads."""

from __future__ import annotations

import io

import aiohttp
from discord import AllowedMentions, File, Message, TextChannel, VoiceChannel
from discord.ext import commands
from discord.webhook import Webhook
from loguru import logger

from relaybot.core.constants import DEFAULT_MAX_ATTACHMENT_BYTES, MAX_CONTENT_LEN
from relaybot.relay.outbound import OutboundMessage, RelayFile

# Webhook username: 2-32 chars
MIN_USERNAME_LEN = 2
MAX_USERNAME_LEN = 32
_ALLOWED_MENTIONS = AllowedMentions(everyone=False, roles=False)
# Channel types whose messages a webhook can post (text chat in voice included)
_WEBHOOK_CHANNEL_TYPES = (TextChannel, VoiceChannel)


def _ensure_valid_username(name: str) -> str:
    """Truncate or pad username to fit Discord webhook limits."""
    name = str(name)[:MAX_USERNAME_LEN]
    if len(name) < MIN_USERNAME_LEN:
        name = name + "_" * (MIN_USERNAME_LEN - len(name))
    return name


def resolve_channel(bot: commands.Bot, channel_id: str):
    """Channel from the client cache, or None for unknown or non-numeric ids."""
    try:
        return bot.get_channel(int(channel_id))
    except (TypeError, ValueError):
        return None


def supports_webhooks(channel) -> bool:
    return isinstance(channel, _WEBHOOK_CHANNEL_TYPES)


async def provision_webhook(bot: commands.Bot, channel_id: str, name: str) -> Webhook | None:
    """Return the channel's first usable webhook, creating one named `name` if there is none.

    Never raises: unknown channels and API failures are logged and give None.
    """
    channel = resolve_channel(bot, channel_id)
    if not supports_webhooks(channel):
        logger.warning("Discord channel {} not found or does not support webhooks", channel_id)
        return None

    try:
        webhooks = await channel.webhooks()
        for wh in webhooks:
            # Channel-follower webhooks carry no token and cannot send
            if wh.token:
                logger.debug("Reusing webhook '{}' for channel {}", wh.name, channel_id)
                return wh
        webhook = await channel.create_webhook(name=name, reason="Channel relay")
        logger.info("Created webhook '{}' for channel {}", name, channel_id)
        return webhook
    except Exception as exc:
        logger.exception("Failed to get/create webhook for channel {}: {}", channel_id, exc)
        return None


async def fetch_files(
    session: aiohttp.ClientSession | None,
    relay_files: list[RelayFile],
    max_bytes: int = DEFAULT_MAX_ATTACHMENT_BYTES,
) -> list[File]:
    """Download attachments for re-upload. Oversized or failed downloads are skipped."""
    if not session:
        logger.warning("No HTTP session; dropping {} attachment(s)", len(relay_files))
        return []

    files: list[File] = []
    for rf in relay_files:
        if rf.size > max_bytes:
            logger.info("Skipping attachment {} ({} bytes > {})", rf.name, rf.size, max_bytes)
            continue
        try:
            async with session.get(rf.url) as resp:
                if resp.status != 200:
                    logger.warning("Attachment {} download failed: HTTP {}", rf.name, resp.status)
                    continue
                data = await resp.read()
        except Exception as exc:
            logger.exception("Failed to download attachment {}: {}", rf.name, exc)
            continue
        if len(data) > max_bytes:
            logger.info("Skipping attachment {} ({} bytes > {})", rf.name, len(data), max_bytes)
            continue
        files.append(File(io.BytesIO(data), filename=rf.name))
    return files


async def send_outbound(
    webhook: Webhook,
    outbound: OutboundMessage,
    *,
    session: aiohttp.ClientSession | None = None,
    max_attachment_bytes: int = DEFAULT_MAX_ATTACHMENT_BYTES,
) -> Message | None:
    """Send payload via webhook with only the fields present. None when nothing was left to send."""
    send_kw: dict = {
        "username": _ensure_valid_username(outbound.display_name),
        "avatar_url": outbound.avatar_url,
        "allowed_mentions": _ALLOWED_MENTIONS,
        "wait": True,
    }
    if outbound.content:
        send_kw["content"] = outbound.content[:MAX_CONTENT_LEN]
    if outbound.files:
        files = await fetch_files(session, outbound.files, max_attachment_bytes)
        if files:
            send_kw["files"] = files
    if outbound.embeds:
        send_kw["embeds"] = outbound.embeds[:10]

    if not any(k in send_kw for k in ("content", "files", "embeds")):
        logger.debug("Nothing left to relay for {} after attachment filtering", outbound.display_name)
        return None
    return await webhook.send(**send_kw)
