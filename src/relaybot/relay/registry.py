"""Active relay sessions keyed by target channel."""

from __future__ import annotations

import time
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from discord.webhook import Webhook

    from relaybot.relay.listeners import MessageListener


@dataclass
class RelaySession:
    """One active relay: source channel -> webhook in target channel."""

    target_channel_id: str
    source_channel_id: str
    listener: MessageListener
    webhook: Webhook
    started_at: float = field(default_factory=time.time)
    last_activity_at: float = 0.0

    def __post_init__(self) -> None:
        if not self.last_activity_at:
            self.last_activity_at = self.started_at

    def touch(self, now: float | None = None) -> None:
        self.last_activity_at = time.time() if now is None else now

    def idle_for(self, now: float) -> float:
        return now - self.last_activity_at


class RelayRegistry:
    """In-memory map target_channel_id -> RelaySession. Holds at most one session per target."""

    def __init__(self) -> None:
        self._sessions: dict[str, RelaySession] = {}

    def has(self, target_channel_id: str) -> bool:
        return str(target_channel_id) in self._sessions

    def get(self, target_channel_id: str) -> RelaySession | None:
        return self._sessions.get(str(target_channel_id))

    def set(self, session: RelaySession) -> None:
        self._sessions[session.target_channel_id] = session

    def delete(self, target_channel_id: str) -> RelaySession | None:
        return self._sessions.pop(str(target_channel_id), None)

    def sessions(self) -> list[RelaySession]:
        return list(self._sessions.values())

    def clear(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[RelaySession]:
        return iter(self.sessions())
