"""Relay domain exceptions."""

from __future__ import annotations


class RelayBotError(Exception):
    """Base for relaybot domain errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, object] | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.original_error = original_error


class RelayConfigurationError(RelayBotError):
    """Config validation or load failure."""


class RelayCommandError(RelayBotError):
    """User-input failure; the message is shown in chat as-is."""


class InvalidChannelError(RelayCommandError):
    """A channel id did not resolve to a usable channel."""


class RelayAlreadyActiveError(RelayCommandError):
    """Target channel already has an active relay."""


class WebhookProvisionError(RelayCommandError):
    """No webhook could be fetched or created for the target channel."""


class NothingToStopError(RelayCommandError):
    """No active relay targets the channel."""
