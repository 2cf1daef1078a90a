"""Discord adapter package."""

from relaybot.adapters.discord.adapter import DiscordRelayAdapter

__all__ = ["DiscordRelayAdapter"]
