"""Per-channel message subscription on top of discord.py's listener registry."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from discord import Message
from discord.ext import commands
from loguru import logger

MessageCallback = Callable[[Message], Awaitable[None]]


class MessageListener:
    """Capability for one on_message subscription filtered to a channel.

    Whoever holds it owns the subscription; stop() releases it and may be called any number of times.
    """

    def __init__(self, bot: commands.Bot, channel_id: str, callback: MessageCallback) -> None:
        self._bot = bot
        self._channel_id = str(channel_id)
        self._callback = callback
        self._active = False

    @property
    def channel_id(self) -> str:
        return self._channel_id

    @property
    def active(self) -> bool:
        return self._active

    async def _on_message(self, message: Message) -> None:
        if not self._active or str(message.channel.id) != self._channel_id:
            return
        try:
            await self._callback(message)
        except Exception as exc:
            logger.exception("Relay listener for channel {} failed: {}", self._channel_id, exc)

    def attach(self) -> MessageListener:
        if not self._active:
            self._bot.add_listener(self._on_message, "on_message")
            self._active = True
            logger.debug("Listening on channel {}", self._channel_id)
        return self

    def stop(self) -> None:
        if not self._active:
            return
        self._active = False
        self._bot.remove_listener(self._on_message, "on_message")
        logger.debug("Stopped listening on channel {}", self._channel_id)


def attach_listener(bot: commands.Bot, channel_id: str, callback: MessageCallback) -> MessageListener:
    """Subscribe callback to messages in channel_id; returns the owning handle."""
    return MessageListener(bot, channel_id, callback).attach()
