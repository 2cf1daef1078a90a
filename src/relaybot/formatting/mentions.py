"""Rewrite Discord mention tokens into plain text so relayed copies never ping."""

from __future__ import annotations

import re
from collections.abc import Callable

import discord

from relaybot.core.constants import UNKNOWN_USER

# <@123> or nickname form <@!123>
_USER_MENTION = re.compile(r"<@!?(\d+)>")
# Consumes the whole run of @, so "@@here" becomes "here" rather than "@here"
_BROADCAST_MENTION = re.compile(r"@+(everyone|here)")

MemberResolver = Callable[[int], str | None]


def rewrite_mentions(text: str, resolve: MemberResolver) -> str:
    """Replace <@id> with @DisplayName (or @UnknownUser) and @everyone/@here with the bare word."""

    def _user(match: re.Match[str]) -> str:
        name = resolve(int(match.group(1)))
        return f"@{name}" if name else f"@{UNKNOWN_USER}"

    text = _USER_MENTION.sub(_user, text)
    return _BROADCAST_MENTION.sub(r"\1", text)


def guild_resolver(guild: discord.Guild | None) -> MemberResolver:
    """Resolver backed by the guild member cache. No guild resolves nothing."""

    def _resolve(user_id: int) -> str | None:
        if guild is None:
            return None
        member = guild.get_member(user_id)
        return member.display_name if member else None

    return _resolve
