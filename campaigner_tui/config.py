# campaigner_tui/config.py
# Description: Configuration management for the campaigner_tui application.
#
# Imports
import copy
import os
import tomllib
from pathlib import Path
from typing import Dict, Any, Optional
#
# Third-Party Imports
import toml
from loguru import logger
#
# Local Imports
from .Constants import DEFAULT_REFRESH_INTERVAL_SECONDS, DEFAULT_SNAPSHOT_TTL_SECONDS
from .campaigner_api.client import DEFAULT_ENDPOINTS
#
#######################################################################################################################
#
# Functions:

# --- Path to the configuration file ---
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "campaigner_tui" / "config.toml"

# --- Data directory (snapshots, logs) ---
BASE_DATA_DIR = Path.home() / ".local" / "share" / "campaigner_tui"

# --- Environment overrides: env var -> (section, key) ---
ENV_OVERRIDES = {
    "CAMPAIGNER_API_BASE_URL": ("api", "base_url"),
    "CAMPAIGNER_AUTH_TOKEN": ("api", "auth_token"),
}

CONFIG_TOML_CONTENT = f"""
# Configuration for campaigner_tui
# This file is created with defaults on first run. Edit freely.

[general]
log_level = "INFO" # TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL

[api]
base_url = "http://127.0.0.1:8000"
# Bearer token for the campaigner API. CAMPAIGNER_AUTH_TOKEN overrides this.
auth_token = ""
timeout_seconds = 30.0
# Caller-side deadline for one request. 0 means "use timeout_seconds".
request_deadline_seconds = 0

[api.endpoints]
conversations = "{DEFAULT_ENDPOINTS['conversations']}"
campaigns = "{DEFAULT_ENDPOINTS['campaigns']}"
credits = "{DEFAULT_ENDPOINTS['credits']}"
dashboard = "{DEFAULT_ENDPOINTS['dashboard']}"

[sync]
refresh_interval_seconds = {DEFAULT_REFRESH_INTERVAL_SECONDS}
snapshot_ttl_seconds = {DEFAULT_SNAPSHOT_TTL_SECONDS} # 0 disables expiry
snapshot_backend = "sqlite" # "sqlite", "json" or "memory"
snapshot_dir = "~/.local/share/campaigner_tui/snapshots"
snapshot_db_path = "~/.local/share/campaigner_tui/snapshots.db"

[logging]
log_filename = "campaigner_tui_app.log"
file_log_level = "INFO"
log_max_bytes = 10485760 # 10 MB
log_backup_count = 5
rich_log_level = "DEBUG"
"""

try:
    DEFAULT_CONFIG_FROM_TOML: Dict[str, Any] = tomllib.loads(CONFIG_TOML_CONTENT)
except tomllib.TOMLDecodeError as e:
    logger.critical(f"FATAL: Could not parse internal CONFIG_TOML_CONTENT: {e}. Application cannot start correctly.")
    DEFAULT_CONFIG_FROM_TOML = {}


def deep_merge_dicts(base: Dict, update: Dict) -> Dict:
    """Recursively merges update_dict into base_dict."""
    merged = copy.deepcopy(base)
    for key, value in update.items():
        if isinstance(value, dict) and key in merged and isinstance(merged[key], dict):
            merged[key] = deep_merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    for env_var, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            config.setdefault(section, {})[key] = value
            logger.debug(f"Config [{section}] {key} overridden by {env_var}")
    return config


# --- Primary Configuration Loading Logic ---
_CONFIG_CACHE: Optional[Dict[str, Any]] = None

def load_settings(force_reload: bool = False) -> Dict[str, Any]:
    """
    Loads settings from ~/.config/campaigner_tui/config.toml.
    If the file doesn't exist, it's created with default values.
    """
    global _CONFIG_CACHE
    if _CONFIG_CACHE is not None and not force_reload:
        return _CONFIG_CACHE

    # Start with the programmatic defaults defined in CONFIG_TOML_CONTENT
    loaded_config = copy.deepcopy(DEFAULT_CONFIG_FROM_TOML)

    if not DEFAULT_CONFIG_PATH.exists():
        logger.info(f"Config file not found at {DEFAULT_CONFIG_PATH}. Creating with default values.")
        try:
            DEFAULT_CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
            with open(DEFAULT_CONFIG_PATH, "w", encoding="utf-8") as f:
                f.write(CONFIG_TOML_CONTENT)
            logger.info(f"Created default config file at {DEFAULT_CONFIG_PATH}")
        except OSError as e:
            logger.error(f"Could not create default config file {DEFAULT_CONFIG_PATH}: {e}. Using internal defaults.")
    else:
        logger.info(f"Attempting to load config from: {DEFAULT_CONFIG_PATH}")
        try:
            with open(DEFAULT_CONFIG_PATH, "rb") as f:
                user_config_from_file = tomllib.load(f)
            loaded_config = deep_merge_dicts(loaded_config, user_config_from_file)
            logger.info(f"Successfully loaded and merged config from {DEFAULT_CONFIG_PATH}")
        except tomllib.TOMLDecodeError as e:
            logger.error(f"Error decoding TOML config file {DEFAULT_CONFIG_PATH}: {e}. Using internal defaults.")
        except OSError as e:
            logger.error(f"Could not read config file {DEFAULT_CONFIG_PATH}: {e}. Using internal defaults.")

    _CONFIG_CACHE = _apply_env_overrides(loaded_config)
    logger.debug(f"load_settings returning config with top-level keys: {list(_CONFIG_CACHE.keys())}")
    return _CONFIG_CACHE


# --- Setting Getter ---
def get_cli_setting(section: str, key: str, default: Any = None) -> Any:
    """Helper to get a specific setting from the loaded configuration."""
    config = load_settings()
    section_data = config.get(section)
    if isinstance(section_data, dict):
        return section_data.get(key, default)
    return default


def save_setting(section: str, key: str, value: Any) -> bool:
    """Writes one value into the user's config file and refreshes the cache."""
    try:
        if DEFAULT_CONFIG_PATH.exists():
            with open(DEFAULT_CONFIG_PATH, "rb") as f:
                config_data = tomllib.load(f)
        else:
            config_data = copy.deepcopy(DEFAULT_CONFIG_FROM_TOML)
        config_data.setdefault(section, {})[key] = value
        DEFAULT_CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        with open(DEFAULT_CONFIG_PATH, "w", encoding="utf-8") as f:
            toml.dump(config_data, f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.error(f"Failed to save [{section}] {key} to {DEFAULT_CONFIG_PATH}: {e}")
        return False
    load_settings(force_reload=True)
    logger.info(f"Saved [{section}] {key} to {DEFAULT_CONFIG_PATH}")
    return True


def _as_float(section: str, key: str, value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning(f"Config [{section}] {key}={value!r} is not a number. Using default: {default}")
        return default


def get_api_settings() -> Dict[str, Any]:
    """Typed view of the [api] section, ready for CampaignerAPIClient(**...)."""
    api = load_settings().get("api", {})
    defaults = DEFAULT_CONFIG_FROM_TOML.get("api", {})
    deadline = _as_float("api", "request_deadline_seconds", api.get("request_deadline_seconds", 0), 0.0)
    endpoints = api.get("endpoints", {})
    return {
        "base_url": str(api.get("base_url") or defaults.get("base_url", "")),
        "token": api.get("auth_token") or None,
        "timeout": _as_float("api", "timeout_seconds", api.get("timeout_seconds", 30.0), 30.0),
        "request_deadline": deadline if deadline > 0 else None,
        "endpoints": dict(endpoints) if isinstance(endpoints, dict) else {},
    }


def get_sync_settings() -> Dict[str, Any]:
    sync = load_settings().get("sync", {})
    backend = str(sync.get("snapshot_backend", "sqlite")).lower()
    if backend not in ("sqlite", "json", "memory"):
        logger.warning(f"Unknown snapshot_backend '{backend}'. Falling back to sqlite.")
        backend = "sqlite"
    return {
        "refresh_interval_seconds": _as_float("sync", "refresh_interval_seconds",
                                              sync.get("refresh_interval_seconds", DEFAULT_REFRESH_INTERVAL_SECONDS),
                                              float(DEFAULT_REFRESH_INTERVAL_SECONDS)),
        "snapshot_ttl_seconds": _as_float("sync", "snapshot_ttl_seconds",
                                          sync.get("snapshot_ttl_seconds", DEFAULT_SNAPSHOT_TTL_SECONDS),
                                          float(DEFAULT_SNAPSHOT_TTL_SECONDS)),
        "snapshot_backend": backend,
        "snapshot_dir": str(Path(sync.get("snapshot_dir") or BASE_DATA_DIR / "snapshots").expanduser()),
        "snapshot_db_path": str(get_snapshot_db_path()),
    }


# --- Data and Log File Path Getters ---
def get_snapshot_db_path() -> Path:
    default_db_path_str = str(BASE_DATA_DIR / "snapshots.db")
    db_path_str = get_cli_setting("sync", "snapshot_db_path", default_db_path_str) or default_db_path_str
    return Path(db_path_str).expanduser().resolve()


def get_cli_log_file_path() -> Path:
    default_log_filename = DEFAULT_CONFIG_FROM_TOML.get("logging", {}).get("log_filename", "campaigner_tui_app.log")
    log_filename = get_cli_setting("logging", "log_filename", default_log_filename)
    log_file_path = BASE_DATA_DIR / log_filename
    try:
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Could not create log directory {log_file_path.parent}: {e}", exc_info=True)
    return log_file_path

#
# End of config.py
########################################################################################################################
