"""Content formatting for relayed messages."""

from relaybot.formatting.mentions import guild_resolver, rewrite_mentions

__all__ = ["guild_resolver", "rewrite_mentions"]
