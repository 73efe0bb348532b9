"""
Typed settings (``stock_config.settings``).

Responsibility
--------------
Parse the merged YAML mapping into frozen dataclasses and apply
environment overrides.

Invariants enforced
-------------------
* Every section has packaged defaults, so a user file only names what it
  changes.
* Unknown keys inside a section raise ``ValueError``; a typo never falls
  back silently to a default.
* Environment overrides win over every file:
  ``STOCKBOOK_DATABASE_URL`` and ``STOCKBOOK_LOG_LEVEL``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from stock_config.loader import deep_merge, load_yaml_file

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

ENV_DATABASE_URL = "STOCKBOOK_DATABASE_URL"
ENV_LOG_LEVEL = "STOCKBOOK_LOG_LEVEL"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DatabaseSettings:
    url: str = "postgresql://localhost/stockbook"
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 10


@dataclass(frozen=True)
class ValidationSettings:
    min_purchase_year: int = 2000
    max_future_months: int = 12
    max_quantity: int = 9_007_199_254_740

    def __post_init__(self) -> None:
        if self.max_future_months < 0:
            raise ValueError("validation.max_future_months cannot be negative")
        if self.max_quantity <= 0:
            raise ValueError("validation.max_quantity must be positive")


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"

    def __post_init__(self) -> None:
        if self.level.upper() not in _LOG_LEVELS:
            raise ValueError(
                f"logging.level must be one of {', '.join(_LOG_LEVELS)}, "
                f"got {self.level!r}"
            )


@dataclass(frozen=True)
class StockSettings:
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    validation: ValidationSettings = field(default_factory=ValidationSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


def _section(cls: type, name: str, data: Mapping[str, Any] | None) -> Any:
    data = data or {}
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown keys in '{name}': {sorted(unknown)}")
    return cls(**data)


def parse_settings(data: Mapping[str, Any]) -> StockSettings:
    unknown = set(data) - {"database", "validation", "logging"}
    if unknown:
        raise ValueError(f"Unknown settings sections: {sorted(unknown)}")
    return StockSettings(
        database=_section(DatabaseSettings, "database", data.get("database")),
        validation=_section(ValidationSettings, "validation", data.get("validation")),
        logging=_section(LoggingSettings, "logging", data.get("logging")),
    )


def load_settings(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> StockSettings:
    """
    Build settings from packaged defaults, an optional user file, then the
    environment.

    Raises:
        FileNotFoundError: ``path`` does not exist.
        yaml.YAMLError: malformed YAML.
        ValueError: unknown keys or out-of-range values.
    """
    environ = os.environ if environ is None else environ

    data = load_yaml_file(DEFAULTS_PATH)
    if path is not None:
        data = deep_merge(data, load_yaml_file(Path(path)))

    overrides: dict[str, Any] = {}
    if environ.get(ENV_DATABASE_URL):
        overrides.setdefault("database", {})["url"] = environ[ENV_DATABASE_URL]
    if environ.get(ENV_LOG_LEVEL):
        overrides.setdefault("logging", {})["level"] = environ[ENV_LOG_LEVEL]
    if overrides:
        data = deep_merge(data, overrides)

    return parse_settings(data)
