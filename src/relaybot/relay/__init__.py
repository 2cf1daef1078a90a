"""Relay core: sessions, listeners, webhook delivery, controller."""

from relaybot.relay.controller import RelayController
from relaybot.relay.listeners import MessageListener, attach_listener
from relaybot.relay.outbound import OutboundMessage, RelayFile, build_outbound
from relaybot.relay.registry import RelayRegistry, RelaySession

__all__ = [
    "MessageListener",
    "OutboundMessage",
    "RelayController",
    "RelayFile",
    "RelayRegistry",
    "RelaySession",
    "attach_listener",
    "build_outbound",
]
