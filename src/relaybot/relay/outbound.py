"""Build the webhook payload for a relayed message and decide whether to send it."""

from __future__ import annotations

from dataclasses import dataclass

import discord
from discord import Message

from relaybot.core.constants import CUSTOM_EMOJI_MARKER
from relaybot.formatting.mentions import guild_resolver, rewrite_mentions


@dataclass(frozen=True)
class RelayFile:
    """Attachment to re-upload: source URL plus filename."""

    url: str
    name: str
    size: int = 0


@dataclass
class OutboundMessage:
    """Transient webhook payload derived from one source message."""

    display_name: str
    avatar_url: str | None
    content: str | None = None
    files: list[RelayFile] | None = None
    embeds: list[discord.Embed] | None = None
    raw_content: str = ""

    def should_send(self) -> bool:
        """Send when there is content, files or embeds, or the raw body carries a custom emoji."""
        return bool(self.content or self.files or self.embeds or CUSTOM_EMOJI_MARKER in self.raw_content)


def build_outbound(message: Message) -> OutboundMessage:
    author = message.author
    avatar_url = str(author.display_avatar.url) if author.display_avatar else None
    raw_content = message.content or ""

    outbound = OutboundMessage(
        display_name=author.name,
        avatar_url=avatar_url,
        raw_content=raw_content,
    )
    if raw_content:
        outbound.content = rewrite_mentions(raw_content, guild_resolver(message.guild))
    if message.attachments:
        outbound.files = [RelayFile(url=a.url, name=a.filename, size=a.size or 0) for a in message.attachments]
    if message.embeds:
        outbound.embeds = [discord.Embed.from_dict(e.to_dict()) for e in message.embeds]
    return outbound
