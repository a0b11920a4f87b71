"""Configuration management for the ESO add-on manager.

Handles loading and caching of the configuration file with environment
variable support (ESO_ADDONS_CONFIG) and section accessors with defaults.

Two formats are read:
- JSON (``~/.eso_addons.json`` or any ``*.json`` path)
- The older TOML file ``~/.eso_addons`` holding a single ``AddonsPath`` key;
  any path not ending in ``.json`` is read as TOML

The configuration system provides:
- Centralized config loading with caching
- The AddOns directory override
- Catalog endpoints (base URL and search path)
- Network settings (timeout, extra headers, chunk size)
- Update policy (reinstall scope)
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

try:
    import tomllib
except ModuleNotFoundError:
    # Python < 3.11
    import tomli as tomllib

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ESO_ADDONS_CONFIG"
DEFAULT_CONFIG_NAME = ".eso_addons.json"
LEGACY_CONFIG_NAME = ".eso_addons"

DEFAULT_BASE_URL = "https://www.esoui.com"
DEFAULT_SEARCH_PATH = "/downloads/search.php"

_CONFIG_CACHE: Optional[Dict[str, Any]] = None


def get_config_path() -> str:
    """Return the config path to load when none is given explicitly.

    ESO_ADDONS_CONFIG wins. Otherwise ``~/.eso_addons.json`` is used, unless
    only the legacy ``~/.eso_addons`` exists.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return env_path

    home = os.path.expanduser("~")
    json_path = os.path.join(home, DEFAULT_CONFIG_NAME)
    legacy_path = os.path.join(home, LEGACY_CONFIG_NAME)
    if not os.path.exists(json_path) and os.path.isfile(legacy_path):
        return legacy_path
    return json_path


def _load_file(path: str) -> Any:
    if path.lower().endswith(".json"):
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    with open(path, "rb") as f:
        return tomllib.load(f)


def get_config(force_reload: bool = False, path: Optional[str] = None) -> Dict[str, Any]:
    """Load the manager configuration.

    Caches the result unless force_reload is True.

    Args:
        force_reload: Read the file again even if a config is cached
        path: Config file to read instead of get_config_path()

    Returns:
        Configuration dictionary (empty dict if file not found or invalid)
    """
    global _CONFIG_CACHE
    if _CONFIG_CACHE is not None and not force_reload:
        return _CONFIG_CACHE

    path = path or get_config_path()
    try:
        if os.path.exists(path):
            data = _load_file(path) or {}
            if not isinstance(data, dict):
                logger.error("Config %s must contain a table of settings; ignoring it", path)
                data = {}
            _CONFIG_CACHE = data
        else:
            logger.warning("Failed to find config file %s; using defaults", path)
            _CONFIG_CACHE = {}
    except (OSError, ValueError) as e:
        logger.error("Failed to load config from %s: %s", path, e)
        _CONFIG_CACHE = {}

    return _CONFIG_CACHE


def get_addons_path() -> Optional[str]:
    """Return the configured AddOns directory, if any.

    ``AddonsPath`` is the key used by the TOML ``~/.eso_addons`` file.
    """
    cfg = get_config()
    value = cfg.get("addons_path") or cfg.get("AddonsPath")
    return str(value) if value else None


def get_catalog_config() -> Dict[str, Any]:
    """Get catalog endpoint configuration with defaults."""
    cfg = get_config()
    cat = dict(cfg.get("catalog", {}) or {})

    cat.setdefault("base_url", DEFAULT_BASE_URL)
    cat.setdefault("search_path", DEFAULT_SEARCH_PATH)
    cat["base_url"] = str(cat["base_url"]).rstrip("/")

    return cat


def get_network_config() -> Dict[str, Any]:
    """Return network settings with defaults.

    ``timeout_s`` defaults to None: requests block until the server answers.
    """
    cfg = get_config()
    net = dict(cfg.get("network", {}) or {})

    net.setdefault("timeout_s", None)
    net.setdefault("chunk_size", 8192)

    if not isinstance(net.get("headers", {}), dict):
        net["headers"] = {}
    net.setdefault("headers", {})

    return net


def get_update_config() -> Dict[str, Any]:
    """Get the update policy section with defaults."""
    cfg = get_config()
    upd = dict(cfg.get("update", {}) or {})
    upd.setdefault("reinstall_scope", "full_closure")
    return upd
