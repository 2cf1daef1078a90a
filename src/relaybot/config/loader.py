"""Config loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from loguru import logger

from relaybot.core.errors import RelayConfigurationError


def load_config(path: str | Path) -> dict[str, Any]:
    """Read the YAML mapping at path.

    A missing or empty file yields {}. Unparseable YAML or a top level that is
    not a mapping raises RelayConfigurationError.
    """
    path = Path(path)
    if not path.is_file():
        logger.debug("No config file at {}", path)
        return {}

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise RelayConfigurationError(
            f"{path} is not valid YAML",
            code="invalid_yaml",
            details={"path": str(path)},
            original_error=exc,
        ) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RelayConfigurationError(
            f"{path} must contain a mapping at the top level",
            code="invalid_structure",
            details={"path": str(path), "type": type(data).__name__},
        )
    return data


def load_config_with_env(path: str | Path, env_file: str | Path | None = None) -> dict[str, Any]:
    """Load .env (or env_file) into the environment, then read the YAML config.

    RELAYBOT_* overrides are picked up by Config itself on reload.
    """
    load_dotenv(env_file)
    return load_config(path)
