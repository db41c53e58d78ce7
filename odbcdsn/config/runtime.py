# =============================================================================
# odbcdsn runtime settings
#
# - Settings come from the OS environment (ODBCDSN_*), read lazily on first use.
# - A .env file is only loaded when USE_DOTENV=true (path from DOTENV_PATH).
# - configure()/using_settings() inject settings programmatically; the override
#   lives in a ContextVar so concurrent requests/tasks do not see each other's.
# - reload_default() clears the cache after mutating os.environ.
# =============================================================================
from __future__ import annotations
import os
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv, find_dotenv

from .config import ConnectorSettings

logger = logging.getLogger(__name__)

# Allow overriding the env prefix if you embed multiple copies/configs
_PREFIX = os.getenv("ODBCDSN_PREFIX", "ODBCDSN_")

_current_settings: ContextVar[Optional[ConnectorSettings]] = ContextVar("odbcdsn_settings", default=None)

_dotenv_loaded = False


def _load_dotenv_once() -> None:
    global _dotenv_loaded
    if _dotenv_loaded:
        return
    _dotenv_loaded = True
    if os.getenv("USE_DOTENV") == "true":
        dotenv_path = find_dotenv(os.getenv("DOTENV_PATH", ".env"), usecwd=True)
        if dotenv_path and os.path.exists(dotenv_path):
            load_dotenv(dotenv_path)
            logger.debug(f"Loaded environment from {dotenv_path}")


def _env_fingerprint(prefix: str = _PREFIX) -> Tuple[Tuple[str, str], ...]:
    """Stable key for caching: all ODBCDSN_* envs sorted."""
    return tuple(sorted(
        (k, os.environ.get(k, ""))
        for k in os.environ.keys()
        if k.startswith(prefix)
    ))


@lru_cache(maxsize=8)
def _load_default_cached(_fp: Tuple[Tuple[str, str], ...]) -> ConnectorSettings:
    return ConnectorSettings.from_env(prefix=_PREFIX)


def _load_default() -> ConnectorSettings:
    _load_dotenv_once()
    # include env fingerprint as cache key to auto-refresh when env changes
    return _load_default_cached(_env_fingerprint())


def get_settings() -> ConnectorSettings:
    """Active settings (context override > lazily loaded default)."""
    return _current_settings.get() or _load_default()


def configure(settings: ConnectorSettings) -> None:
    """Set an override for this context (tests/embedded apps)."""
    _current_settings.set(settings)


def reload_default() -> None:
    """Drop cached auto-loaded settings (e.g., after mutating os.environ)."""
    _load_default_cached.cache_clear()


@contextmanager
def using_settings(settings: ConnectorSettings):
    tok = _current_settings.set(settings)
    try:
        yield
    finally:
        _current_settings.reset(tok)
