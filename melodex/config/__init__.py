"""
Configuration management for Melodex.

This module loads the catalog, search, storage and web settings from a TOML
file. The packaged ``melodex.toml`` holds the defaults; a user file only
needs the keys it changes.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from melodex.core import ConfigError

logger = logging.getLogger(__name__)

# Path to the config directory
CONFIG_DIR = Path(__file__).parent

DEFAULT_CONFIG_PATH = CONFIG_DIR / "melodex.toml"


@dataclass
class CatalogConfig:
    """Catalog service connection settings."""

    base_url: str = "https://api.deezer.com"
    timeout_seconds: float = 5.0


@dataclass
class SearchConfig:
    """Search controller settings."""

    popular_limit: int = 5
    poll_interval_ms: int = 20000
    discard_stale_responses: bool = False


@dataclass
class StorageConfig:
    """Local storage settings."""

    path: str = "cache/local_storage.json"
    profile_key: str = "userDetails"


@dataclass
class WebConfig:
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = 9000


@dataclass
class MelodexConfig:
    """Loaded application configuration."""

    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    web: WebConfig = field(default_factory=WebConfig)


def _coerce(section: str, name: str, expected: type, value: Any) -> Any:
    # bool is an int subclass; keep them apart
    if expected is bool:
        ok = isinstance(value, bool)
    elif expected is float:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        value = float(value) if ok else value
    elif expected is int:
        ok = isinstance(value, int) and not isinstance(value, bool)
    else:
        ok = isinstance(value, expected)

    if not ok:
        raise ConfigError(
            f"[{section}] {name} must be {expected.__name__}, got {type(value).__name__}"
        )
    return value


def _apply_section(target: Any, section: str, data: object) -> None:
    """Copy known keys from a TOML table onto a config dataclass."""
    if not isinstance(data, dict):
        raise ConfigError(f"[{section}] must be a table")

    types = {"str": str, "int": int, "float": float, "bool": bool}
    for f in fields(target):
        if f.name not in data:
            continue
        expected = types[f.type] if isinstance(f.type, str) else f.type
        setattr(target, f.name, _coerce(section, f.name, expected, data[f.name]))

    unknown = set(data) - {f.name for f in fields(target)}
    for key in sorted(unknown):
        logger.warning("Ignoring unknown config key [%s] %s", section, key)


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e


def load_config(config_path: Path | None = None) -> MelodexConfig:
    """
    Load configuration from TOML.

    The packaged defaults are read first, then ``config_path`` (if given)
    is layered on top.

    Args:
        config_path: Optional user config file.

    Returns:
        A new MelodexConfig instance.

    Raises:
        ConfigError: If a file cannot be read or a value has the wrong type.
    """
    config = MelodexConfig()

    paths = [DEFAULT_CONFIG_PATH]
    if config_path is not None:
        paths.append(config_path)

    for path in paths:
        logger.debug("Loading config from %s", path)
        data = _read_toml(path)
        for section in ("catalog", "search", "storage", "web"):
            if section in data:
                _apply_section(getattr(config, section), section, data[section])

    if config.search.poll_interval_ms <= 0:
        raise ConfigError("[search] poll_interval_ms must be positive")
    if config.search.popular_limit < 0:
        raise ConfigError("[search] popular_limit must not be negative")

    return config
