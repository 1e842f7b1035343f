from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigError


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    max_subset_size: Optional[int] = None  # None => blocksize of the board
    locked_candidates: bool = True
    timeout_s: Optional[float] = None      # None => no deadline
    log_level: str = "WARNING"


def _int_or_none(env: Mapping[str, str], name: str) -> Optional[int]:
    raw = env.get(name, "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}.") from None
    if value < 1:
        raise ConfigError(f"{name} must be at least 1, got {value}.")
    return value


def _float_or_none(env: Mapping[str, str], name: str) -> Optional[float]:
    raw = env.get(name, "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number of seconds, got {raw!r}.") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}.")
    return value


def _flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean (1/0, true/false), got {raw!r}.")


def _level(env: Mapping[str, str], name: str, default: str) -> str:
    raw = env.get(name, "").strip().upper() or default
    if not isinstance(logging.getLevelName(raw), int):
        raise ConfigError(f"{name} must be a logging level name, got {raw!r}.")
    return raw


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read SUDOKIT_* variables; anything unset keeps its default."""
    env = os.environ if environ is None else environ
    defaults = Settings()
    return Settings(
        max_subset_size=_int_or_none(env, "SUDOKIT_MAX_SUBSET"),
        locked_candidates=_flag(env, "SUDOKIT_LOCKED_CANDIDATES", defaults.locked_candidates),
        timeout_s=_float_or_none(env, "SUDOKIT_TIMEOUT"),
        log_level=_level(env, "SUDOKIT_LOG_LEVEL", defaults.log_level),
    )
