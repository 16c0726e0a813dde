"""Engine configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


def _env_timeout(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class EngineConfig:
    """
    Settings for an Engine.

    Attributes:
        strict: Re-raise handler failures as HandlerError instead of isolating them
        handler_timeout: Default seconds a handler may run; None disables timeouts
        error_placeholder: Text substituted for a failed tag; None keeps the raw tag
        unwrap_paragraphs: Remove <p> wrapping around standalone tags in render()
    """

    strict: bool = False
    handler_timeout: Optional[float] = None
    error_placeholder: Optional[str] = None
    unwrap_paragraphs: bool = True

    def __post_init__(self) -> None:
        if self.handler_timeout is not None and self.handler_timeout <= 0:
            raise ValueError("handler_timeout must be positive")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config from BRACKETEER_* environment variables."""
        placeholder = os.getenv("BRACKETEER_ERROR_PLACEHOLDER")
        return cls(
            strict=_env_flag("BRACKETEER_STRICT", False),
            handler_timeout=_env_timeout("BRACKETEER_HANDLER_TIMEOUT"),
            error_placeholder=placeholder,
            unwrap_paragraphs=_env_flag("BRACKETEER_UNWRAP_PARAGRAPHS", True),
        )
