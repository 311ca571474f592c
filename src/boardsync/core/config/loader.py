"""
Configuration loading with multi-layer merging.

Layers, lowest precedence first:
    defaults < $XDG_CONFIG_HOME/boardsync/config.json < .boardsync.json < BOARDSYNC_* env vars

A broken file layer is skipped with a warning; an invalid merged result
raises ``ConfigError``.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from boardsync.core.exceptions import ConfigError

from .models import ServiceConfig

logger = logging.getLogger(__name__)

# Loaded once per process unless use_cache=False or clear_cache()
_config_cache: ServiceConfig | None = None

_FALSE_VALUES = ("false", "0", "no", "off", "")

PROJECT_CONFIG_NAME = ".boardsync.json"


def get_xdg_config_home() -> Path:
    """``$XDG_CONFIG_HOME``, or ~/.config when unset."""
    xdg_home = os.environ.get("XDG_CONFIG_HOME")
    return Path(xdg_home) if xdg_home else Path.home() / ".config"


def get_user_config_path() -> Path:
    return get_xdg_config_home() / "boardsync" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """Project config file in ``cwd`` (defaults to the current directory)."""
    return (cwd or Path.cwd()) / PROJECT_CONFIG_NAME


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Return ``base`` updated with ``override``, merging nested sections.

    Neither input is modified.

    Example:
        >>> deep_merge({"sync": {"item_duration": 60, "auto_refresh": True}},
        ...            {"sync": {"item_duration": 5}})
        {'sync': {'item_duration': 5, 'auto_refresh': True}}
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = deep_merge(current, value)
        merged[key] = value
    return merged


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Read one config layer.

    Returns:
        The parsed object, or None if the file is missing, unreadable, or
        not a JSON object
    """
    if not path.is_file():
        return None

    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None

    if not isinstance(data, dict):
        logger.warning("Ignoring config at %s: expected a JSON object", path)
        return None
    return data


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply BOARDSYNC_* environment variables on top of a merged config.

    Supported env vars:
        BOARDSYNC_APP_KEY - overrides app_key
        BOARDSYNC_USER_TOKEN - overrides user_token
        BOARDSYNC_BASE_URL - overrides base_url
        BOARDSYNC_ITEM_DURATION - overrides sync.item_duration
        BOARDSYNC_AUTO_REFRESH - overrides sync.auto_refresh
        BOARDSYNC_AUTO_SUBMIT - overrides sync.auto_submit

    Invalid values are logged and ignored.

    Returns:
        A new dictionary; the input is not modified
    """
    overrides: dict[str, Any] = {}

    for env_name, key in (
        ("BOARDSYNC_APP_KEY", "app_key"),
        ("BOARDSYNC_USER_TOKEN", "user_token"),
        ("BOARDSYNC_BASE_URL", "base_url"),
    ):
        if value := os.environ.get(env_name):
            overrides[key] = value

    if duration_str := os.environ.get("BOARDSYNC_ITEM_DURATION"):
        try:
            duration = float(duration_str)
        except ValueError:
            duration = 0.0
        if duration > 0:
            overrides.setdefault("sync", {})["item_duration"] = duration
        else:
            logger.warning("Invalid BOARDSYNC_ITEM_DURATION value '%s', ignoring", duration_str)

    for env_name, key in (
        ("BOARDSYNC_AUTO_REFRESH", "auto_refresh"),
        ("BOARDSYNC_AUTO_SUBMIT", "auto_submit"),
    ):
        flag_str = os.environ.get(env_name)
        if flag_str is not None:
            overrides.setdefault("sync", {})[key] = flag_str.strip().lower() not in _FALSE_VALUES

    return deep_merge(config_dict, overrides)


def get_default_config() -> dict[str, Any]:
    """Defaults as declared on the models, without credentials."""
    return ServiceConfig().model_dump(exclude={"app_key", "user_token"})


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> ServiceConfig:
    """
    Build the effective ``ServiceConfig``.

    Environment variables beat ``.boardsync.json``, which beats the user
    config, which beats the model defaults. The result is cached per process
    until ``clear_cache()``.

    Args:
        project_dir: Directory holding .boardsync.json (defaults to cwd)
        use_cache: Return the previously loaded config if there is one

    Raises:
        ConfigError: If the merged values fail validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    layers = [
        load_json_file(get_user_config_path()),
        load_json_file(get_project_config_path(project_dir)),
    ]
    merged = get_default_config()
    for layer in layers:
        if layer:
            merged = deep_merge(merged, layer)
    merged = apply_env_overrides(merged)

    try:
        _config_cache = ServiceConfig(**merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}", errors=e.errors()) from e
    logger.debug("Loaded configuration for %s", merged.get("base_url"))
    return _config_cache


def clear_cache() -> None:
    """Forget the loaded configuration so the next load re-reads every layer."""
    global _config_cache
    _config_cache = None
