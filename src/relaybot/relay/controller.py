"""Relay controller: start/stop relays, capture source messages, deliver through webhooks."""

from __future__ import annotations

import asyncio
import time

import aiohttp
from discord import Message
from discord.ext import commands
from loguru import logger

from relaybot.core.constants import DEFAULT_MAX_ATTACHMENT_BYTES, DEFAULT_WEBHOOK_NAME
from relaybot.core.errors import (
    InvalidChannelError,
    NothingToStopError,
    RelayAlreadyActiveError,
    RelayCommandError,
    WebhookProvisionError,
)
from relaybot.relay.listeners import MessageListener
from relaybot.relay.outbound import OutboundMessage, build_outbound
from relaybot.relay.registry import RelayRegistry, RelaySession
from relaybot.relay.webhook import provision_webhook, resolve_channel, send_outbound, supports_webhooks


class RelayController:
    """Owns the relay registry for one bot. Created at startup, torn down on shutdown.

    Delivery is best-effort and non-blocking: each relayed message is sent from its own
    task, failures are logged and never reach the listener or the command caller, and
    stopping a relay does not cancel sends already in flight.
    """

    def __init__(
        self,
        bot: commands.Bot,
        *,
        webhook_name: str = DEFAULT_WEBHOOK_NAME,
        session: aiohttp.ClientSession | None = None,
        max_attachment_bytes: int = DEFAULT_MAX_ATTACHMENT_BYTES,
        idle_timeout_minutes: float = 0,
    ) -> None:
        self._bot = bot
        self.webhook_name = webhook_name
        self.session = session
        self.max_attachment_bytes = max_attachment_bytes
        self.idle_timeout_minutes = idle_timeout_minutes
        self._registry = RelayRegistry()
        self._pending: set[asyncio.Task] = set()
        self._running = False

    @property
    def registry(self) -> RelayRegistry:
        return self._registry

    @property
    def running(self) -> bool:
        return self._running

    def init(self) -> None:
        self._registry.clear()
        self._running = True
        logger.debug("Relay controller initialized")

    async def teardown(self) -> None:
        """Stop every relay and wait for in-flight deliveries. Safe to call twice."""
        self._running = False
        sessions = self._registry.sessions()
        for session in sessions:
            session.listener.stop()
        self._registry.clear()
        await self.flush()
        if sessions:
            logger.info("Relay controller torn down; stopped {} relay(s)", len(sessions))

    async def flush(self) -> None:
        """Wait for deliveries already in flight."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def start(self, source_channel_id: str, target_channel_id: str) -> RelaySession:
        """Start relaying source -> target. Raises RelayCommandError with the user-facing reason."""
        source_channel_id = str(source_channel_id)
        target_channel_id = str(target_channel_id)
        if not self._running:
            raise RelayCommandError("Relaying is not available right now.", code="not_running")

        source = resolve_channel(self._bot, source_channel_id)
        target = resolve_channel(self._bot, target_channel_id)
        if not source or not target or not supports_webhooks(target):
            raise InvalidChannelError(
                "Invalid channel ID provided.",
                code="invalid_channel",
                details={"source": source_channel_id, "target": target_channel_id},
            )
        if source_channel_id == target_channel_id:
            raise InvalidChannelError("Source and target channel must differ.", code="same_channel")

        if self._registry.has(target_channel_id):
            raise RelayAlreadyActiveError(
                f"Relaying to <#{target_channel_id}> is already active.",
                code="already_active",
            )

        webhook = await provision_webhook(self._bot, target_channel_id, self.webhook_name)
        if not webhook:
            raise WebhookProvisionError(
                "Failed to start relaying. Could not create/get a webhook.",
                code="webhook_unavailable",
                details={"target": target_channel_id},
            )
        # Another start for this target may have finished while provisioning was awaited
        if self._registry.has(target_channel_id):
            raise RelayAlreadyActiveError(
                f"Relaying to <#{target_channel_id}> is already active.",
                code="already_active",
            )

        listener = MessageListener(
            self._bot,
            source_channel_id,
            lambda message: self.handle_message(session, message),
        )
        session = RelaySession(
            target_channel_id=target_channel_id,
            source_channel_id=source_channel_id,
            listener=listener,
            webhook=webhook,
        )
        self._registry.set(session)
        listener.attach()
        logger.info("Relay started: {} -> {}", source_channel_id, target_channel_id)
        return session

    def stop(self, target_channel_id: str) -> RelaySession:
        """Stop the relay targeting target_channel_id. Raises NothingToStopError if none is active."""
        target_channel_id = str(target_channel_id)
        session = self._registry.get(target_channel_id)
        if session is None:
            raise NothingToStopError(
                f"No active relaying to stop for <#{target_channel_id}>.",
                code="nothing_to_stop",
            )
        session.listener.stop()
        self._registry.delete(target_channel_id)
        logger.info("Relay stopped: {} -> {}", session.source_channel_id, target_channel_id)
        return session

    def expire_idle(self, now: float | None = None) -> list[RelaySession]:
        """Stop relays idle longer than idle_timeout_minutes. No-op when the timeout is 0."""
        if self.idle_timeout_minutes <= 0:
            return []
        now = time.time() if now is None else now
        limit = self.idle_timeout_minutes * 60
        expired = [s for s in self._registry.sessions() if s.idle_for(now) > limit]
        for session in expired:
            self.stop(session.target_channel_id)
            logger.info("Relay to {} expired after {:.0f}s idle", session.target_channel_id, session.idle_for(now))
        return expired

    def _relay_webhook_ids(self) -> set[int]:
        return {s.webhook.id for s in self._registry}

    async def handle_message(self, session: RelaySession, message: Message) -> None:
        """Listener callback: build the payload and schedule delivery without awaiting it."""
        # Copies posted by any active relay's webhook, not just this one's
        if message.webhook_id is not None and message.webhook_id in self._relay_webhook_ids():
            return

        outbound = build_outbound(message)
        if not outbound.should_send():
            logger.debug("Dropping empty message {} from {}", message.id, session.source_channel_id)
            return

        task = asyncio.create_task(self._deliver(session, outbound))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, session: RelaySession, outbound: OutboundMessage) -> None:
        try:
            sent = await send_outbound(
                session.webhook,
                outbound,
                session=self.session,
                max_attachment_bytes=self.max_attachment_bytes,
            )
        except Exception as exc:
            logger.exception("Failed to send message through webhook to {}: {}", session.target_channel_id, exc)
            return
        if sent is not None:
            session.touch()
