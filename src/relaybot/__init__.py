"""relaybot: Discord channel relay over webhooks."""

__version__ = "0.1.0"
