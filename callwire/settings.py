"""Environment-driven configuration for callwire clients.

Every variable is prefixed with ``CALLWIRE_``; a local ``.env`` file is read
first so nothing has to be exported globally.
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

ENV_PREFIX = "CALLWIRE_"
DEFAULT_TIMEOUT = 30.0
DEFAULT_LOG_LEVEL = "INFO"


def _env(name: str) -> str | None:
    value = os.getenv(f"{ENV_PREFIX}{name}", "").strip()
    return value or None


def _positive_float(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be a numeric value.") from exc
    if value <= 0:
        raise ValueError(f"{ENV_PREFIX}{name} must be greater than zero.")
    return value


def _log_level(name: str, default: str) -> str:
    level = (_env(name) or default).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"{ENV_PREFIX}{name} must be a logging level name, got {level!r}.")
    return level


@dataclass(frozen=True, slots=True)
class Settings:
    """Where requests go and how the client around them behaves."""

    target_url: str
    target_name: str | None = None
    api_timeout: float = DEFAULT_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def load(cls) -> "Settings":
        """Build settings from ``.env`` and the process environment."""
        load_dotenv()

        target_url = _env("TARGET_URL")
        if target_url is None:
            raise ValueError(f"{ENV_PREFIX}TARGET_URL is required but was not provided.")

        return cls(
            target_url=target_url,
            target_name=_env("TARGET_NAME"),
            api_timeout=_positive_float("TIMEOUT", DEFAULT_TIMEOUT),
            log_level=_log_level("LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )
