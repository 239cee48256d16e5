"""Root logger setup for the console.

The operator controls verbosity with the "Debug logging" setting; the
environment can pin a level for support sessions:

  - ``OPSCONSOLE_LOG_LEVEL``: level name or number, wins over everything
  - ``OPSCONSOLE_DEBUG``: truthy forces DEBUG

Worker threads log too, so every line carries the thread name. The HTTP
stack (``urllib3`` connection pool, ``requests``) only speaks up at DEBUG;
otherwise it is held at WARNING so retries do not flood the log.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"
LOG_DATEFMT = "%H:%M:%S"
LEVEL_ENV = "OPSCONSOLE_LOG_LEVEL"
DEBUG_ENV = "OPSCONSOLE_DEBUG"
TRANSPORT_LOGGERS = ("urllib3", "requests")

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def parse_level(value: Union[int, str, None], fallback: int = logging.INFO) -> int:
    """Turn ``"debug"``, ``"10"`` or ``10`` into a logging level."""
    if isinstance(value, int):
        return value
    text = (value or "").strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper()) if text else None
    return level if isinstance(level, int) else fallback


def env_override_level() -> Optional[int]:
    """Level pinned by the environment, or ``None`` when the GUI decides."""
    pinned = os.getenv(LEVEL_ENV)
    if pinned and pinned.strip():
        return parse_level(pinned)
    if (os.getenv(DEBUG_ENV) or "").strip().lower() in _TRUTHY:
        return logging.DEBUG
    return None


def env_forces_debug() -> bool:
    """True when the environment pins DEBUG or lower."""
    pinned = env_override_level()
    return pinned is not None and pinned <= logging.DEBUG


def configure_root(default_level: Union[int, str] = logging.INFO) -> int:
    """Install the console format once and set the effective level."""
    level = env_override_level()
    if level is None:
        level = parse_level(default_level)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    _set_levels(level)
    return level


def apply_gui_preferences(debug_enabled: bool) -> int:
    """Follow the settings dialog's debug switch unless the environment pins a level."""
    level = env_override_level()
    if level is None:
        level = logging.DEBUG if debug_enabled else logging.INFO
    _set_levels(level)
    return level


def level_name(level: int) -> str:
    return logging.getLevelName(level)


def _set_levels(level: int) -> None:
    logging.getLogger().setLevel(level)
    transport = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport)


__all__ = [
    "LOG_FORMAT",
    "apply_gui_preferences",
    "configure_root",
    "env_forces_debug",
    "env_override_level",
    "level_name",
    "parse_level",
]
