"""Config schema and accessor."""

from __future__ import annotations

import os
from typing import Any

from loguru import logger

from relaybot.core.constants import (
    DEFAULT_COMMAND_PREFIX,
    DEFAULT_MAX_ATTACHMENT_BYTES,
    DEFAULT_WEBHOOK_NAME,
    TOKEN_ENV,
)
from relaybot.core.errors import RelayConfigurationError

# Env keys that override config (loaded once per reload)
_ENV_OVERRIDE_KEYS = (
    TOKEN_ENV,
    "RELAYBOT_COMMAND_PREFIX",
)


def _load_env_overrides() -> dict[str, str]:
    return {k: os.environ.get(k, "") for k in _ENV_OVERRIDE_KEYS}


def _as_number(data: dict[str, Any], key: str, kind: type) -> None:
    """Raise RelayConfigurationError unless data[key] (when present) converts to kind and is >= 0."""
    if key not in data:
        return
    try:
        value = kind(data[key])
    except (TypeError, ValueError) as exc:
        raise RelayConfigurationError(
            f"{key} must be a number",
            code="invalid_number",
            details={"key": key, "value": data[key]},
            original_error=exc,
        ) from exc
    if value < 0:
        raise RelayConfigurationError(
            f"{key} must not be negative",
            code="negative_value",
            details={"key": key, "value": value},
        )


def _validate(data: dict[str, Any]) -> None:
    """Validate a candidate config dict; raise RelayConfigurationError on failure."""
    for key in ("command_prefix", "webhook_name"):
        val = data.get(key)
        if val is not None and (not isinstance(val, str) or not val.strip()):
            raise RelayConfigurationError(
                f"{key} must be a non-empty string",
                code="invalid_string",
                details={"key": key, "type": type(val).__name__},
            )
    _as_number(data, "relay_idle_timeout_minutes", float)
    _as_number(data, "idle_check_interval_seconds", float)
    _as_number(data, "max_attachment_bytes", int)
    if "idle_check_interval_seconds" in data and float(data["idle_check_interval_seconds"]) == 0:
        raise RelayConfigurationError(
            "idle_check_interval_seconds must be positive",
            code="invalid_interval",
        )


class Config:
    """Config accessor with attribute-style access for known keys."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data = data or {}
        self._env: dict[str, str] = _load_env_overrides()

    def reload(self, data: dict[str, Any], *, validate: bool = True) -> None:
        """Replace config data (e.g. on SIGHUP reload). A rejected candidate leaves the current values in place."""
        data = data or {}
        if validate:
            _validate(data)
        self._data = data
        self._env = _load_env_overrides()
        logger.debug(
            "Config reloaded: prefix={} idle_timeout={}m",
            self.command_prefix,
            self.relay_idle_timeout_minutes,
        )

    @property
    def discord_token(self) -> str | None:
        return self._env.get(TOKEN_ENV) or None

    @property
    def command_prefix(self) -> str:
        env_val = self._env.get("RELAYBOT_COMMAND_PREFIX", "")
        if env_val:
            return env_val
        return str(self._data.get("command_prefix") or DEFAULT_COMMAND_PREFIX)

    @property
    def webhook_name(self) -> str:
        return str(self._data.get("webhook_name") or DEFAULT_WEBHOOK_NAME)

    @property
    def relay_idle_timeout_minutes(self) -> float:
        return float(self._data.get("relay_idle_timeout_minutes", 0))

    @property
    def idle_check_interval_seconds(self) -> float:
        return float(self._data.get("idle_check_interval_seconds", 60))

    @property
    def max_attachment_bytes(self) -> int:
        return int(self._data.get("max_attachment_bytes", DEFAULT_MAX_ATTACHMENT_BYTES))


cfg: Config = Config({})
