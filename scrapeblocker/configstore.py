"""Process-wide holder of the latest configuration, safe across threads."""

from __future__ import annotations

import threading

from scrapeblocker.config import ConfigResponse

_lock = threading.Lock()
_current = ConfigResponse()


def set_current_config(cfg: ConfigResponse) -> None:
    """Replace the current configuration."""
    global _current
    with _lock:
        _current = cfg


def get_current_config() -> ConfigResponse:
    """Return the current configuration."""
    with _lock:
        return _current