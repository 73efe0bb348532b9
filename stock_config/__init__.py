"""
stock_config -- single public entrypoint for runtime settings.

Responsibility:
    ``get_active_settings()`` is the way services and entry points obtain
    configuration.  It loads the packaged defaults, an optional user YAML
    file and environment overrides once, and caches the frozen result.

Architecture position:
    Configuration -- sits above ``stock_kernel`` and beside
    ``stock_services``.  The kernel MUST NEVER import from
    ``stock_config``; ``stock_config.bridges`` translates settings into
    kernel inputs.

Failure modes:
    - ``FileNotFoundError`` -- the user file does not exist.
    - ``ValueError`` -- unknown keys or invalid values.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from stock_config.settings import (
    DatabaseSettings,
    LoggingSettings,
    StockSettings,
    ValidationSettings,
    load_settings,
)

_logger = logging.getLogger("stock_kernel.config")

_active: StockSettings | None = None
_lock = threading.Lock()


def get_active_settings(path: Path | str | None = None) -> StockSettings:
    """Load settings on first call and return the cached instance after."""
    global _active
    with _lock:
        if _active is None:
            _active = load_settings(path)
            _logger.info("settings_loaded", extra={
                "settings_path": str(path) if path is not None else None,
                "log_level": _active.logging.level,
                "min_purchase_year": _active.validation.min_purchase_year,
                "max_future_months": _active.validation.max_future_months,
            })
        return _active


def reset_settings() -> None:
    """Drop the cached settings.  FOR TESTING ONLY."""
    global _active
    with _lock:
        _active = None


__all__ = [
    "get_active_settings",
    "reset_settings",
    "load_settings",
    "StockSettings",
    "DatabaseSettings",
    "ValidationSettings",
    "LoggingSettings",
]
