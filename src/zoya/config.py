"""Configuration loading for the Zoya assistant.

Settings come from a YAML file (``config/config.yaml`` unless
``ZOYA_CONFIG_PATH`` points elsewhere), validated against ``AppConfig``.
A few deployment settings can be overridden from the environment without
editing the file:

    ZOYA_STORAGE_BACKEND  -> storage.backend   (memory | sqlite)
    ZOYA_DB_PATH          -> storage.db_path
    ZOYA_TIMEZONE         -> timezone

The storage backend is chosen once from the resulting config at startup.

Usage:
    from zoya.config import get_config

    config = get_config()
    config.storage.backend  # 'memory'
"""

import os
import threading
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from zoya.config_schema import CURRENT_SCHEMA_VERSION, AppConfig
from zoya.core.errors import ConfigLoadError, ConfigValidationError, format_validation_errors
from zoya.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("config/config.yaml")
CONFIG_PATH_ENV = "ZOYA_CONFIG_PATH"

# env var -> (section, key); section None means top level
ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "ZOYA_STORAGE_BACKEND": ("storage", "backend"),
    "ZOYA_DB_PATH": ("storage", "db_path"),
    "ZOYA_TIMEZONE": (None, "timezone"),
}

_lock = threading.Lock()
_config: AppConfig | None = None


def config_path() -> Path:
    """Path of the config file in effect (env override or default)."""
    return Path(os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)


def _read_mapping(path: Path) -> dict[str, Any]:
    """Read the YAML file as a mapping; an empty file is an empty mapping.

    Raises:
        ConfigLoadError: If the file is missing, unparsable or not a mapping
    """
    if not path.exists():
        raise ConfigLoadError(
            f"Configuration file not found: {path}\n"
            f"Copy config/config.yaml.example to {path} and edit it"
        )

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Failed to parse YAML in {path}:\n{e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigLoadError(
            f"Configuration file must be a YAML mapping, got {type(data).__name__}"
        )
    return data


def apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` with ZOYA_* environment overrides applied."""
    merged = dict(data)
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if not value:
            continue
        if section is None:
            merged[key] = value
        else:
            merged[section] = {**(merged.get(section) or {}), key: value}
        logger.debug("config_env_override", variable=env_name)
    return merged


def _build(data: dict[str, Any], source: str) -> AppConfig:
    """Validate raw settings into an AppConfig.

    Raises:
        ConfigValidationError: One indented line per invalid field, or a
            schema version newer than this release understands
    """
    try:
        config = AppConfig.model_validate(data)
    except ValidationError as e:
        details = "\n".join(f"  - {line}" for line in format_validation_errors(e.errors()))
        raise ConfigValidationError(f"Invalid configuration in {source}:\n{details}") from e

    if config.schema_version > CURRENT_SCHEMA_VERSION:
        raise ConfigValidationError(
            f"Config schema version {config.schema_version} is newer than the "
            f"supported version {CURRENT_SCHEMA_VERSION}; upgrade Zoya or lower schema_version"
        )
    return config


def load_config(path: Path | None = None) -> AppConfig:
    """Load and validate the config file, bypassing the cache.

    Args:
        path: Config file; defaults to ``config_path()``

    Raises:
        ConfigLoadError: If the file cannot be read
        ConfigValidationError: If the settings are invalid
    """
    path = path or config_path()
    config = _build(apply_env_overrides(_read_mapping(path)), str(path))

    logger.info(
        "config_loaded",
        path=str(path),
        storage_backend=config.storage.backend,
        classifier_enabled=config.classifier.enabled,
        timezone=config.timezone,
    )
    return config


def get_config() -> AppConfig:
    """Return the process-wide config, loading it on first use."""
    global _config

    with _lock:
        if _config is None:
            _config = load_config()
        return _config


def get_config_or_default() -> AppConfig:
    """Like ``get_config`` but a missing or unreadable file yields defaults.

    Environment overrides still apply to the defaults. An invalid file
    still raises ConfigValidationError.
    """
    global _config

    try:
        return get_config()
    except ConfigLoadError as e:
        logger.warning("config_load_failed_using_defaults", error=str(e))

    with _lock:
        if _config is None:
            _config = _build(apply_env_overrides({}), "defaults")
        return _config


def validate_config_file(path: Path | None = None) -> tuple[bool, str]:
    """Check a config file without touching the cached config.

    Returns:
        (is_valid, message) for display by the CLI
    """
    try:
        config = load_config(path or config_path())
    except ConfigLoadError as e:
        return False, f"Load error: {e}"
    except ConfigValidationError as e:
        return False, f"Validation error: {e}"

    classifier = "enabled" if config.classifier.enabled else "fallback only"
    return True, (
        f"Configuration valid (schema version {config.schema_version})\n"
        f"  - storage backend: {config.storage.backend}\n"
        f"  - classifier: {classifier} ({config.classifier.model})\n"
        f"  - timezone: {config.timezone}"
    )


def reset_config() -> None:
    """Drop the cached config. Used by tests."""
    global _config
    with _lock:
        _config = None
