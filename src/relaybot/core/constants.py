"""Relay constants."""

from __future__ import annotations

DEFAULT_COMMAND_PREFIX = "?"
DEFAULT_WEBHOOK_NAME = "Relay Bot"
UNKNOWN_USER = "UnknownUser"
# Raw-body marker of a custom emoji (<:name:id>)
CUSTOM_EMOJI_MARKER = "<:"
# Discord's non-boosted upload limit
DEFAULT_MAX_ATTACHMENT_BYTES = 25 * 1024 * 1024
MAX_CONTENT_LEN = 2000
TOKEN_ENV = "RELAYBOT_DISCORD_TOKEN"
