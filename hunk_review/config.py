"""
Configuration — loads settings from .hunkreview.yaml, environment variables,
and built-in defaults (in that priority order: CLI args > env > YAML > defaults).
"""

import os

import yaml


_DEFAULTS = {
    "lookahead_window": 50,
    "context_lines": 3,
    "session_store_file": ".hunkreview/sessions.json",
    "persist_sessions": True,
    "metrics_enabled": True,
    "metrics_dir": ".hunkreview",
    "log_dir": ".hunkreview/logs",
}

# Config file search locations
_CONFIG_FILENAMES = [".hunkreview.yaml", ".hunkreview.yml"]


def _find_config_file(explicit_path: str | None = None) -> str | None:
    """Find the config file. Checks explicit path, CWD, then user home."""
    if explicit_path:
        if os.path.isfile(explicit_path):
            return explicit_path
        return None

    search_dirs = [os.getcwd(), os.path.expanduser("~")]
    for d in search_dirs:
        for name in _CONFIG_FILENAMES:
            path = os.path.join(d, name)
            if os.path.isfile(path):
                return path
    return None


def _load_yaml(path: str) -> dict:
    """Load YAML file, returns empty dict on failure."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return {}


class Config:
    """Review engine configuration.

    Settings are resolved in priority order:
    1. CLI arguments (handled by caller)
    2. Environment variables (``HUNKREVIEW_*``)
    3. .hunkreview.yaml config file
    4. Built-in defaults
    """

    def __init__(self, yaml_data: dict | None = None):
        yd = yaml_data or {}

        # Helper: env var > yaml > default
        def _get(env_key: str, yaml_key: str, default, cast=str):
            env_val = os.getenv(env_key)
            if env_val is not None:
                try:
                    return cast(env_val)
                except ValueError:
                    return default
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                try:
                    return cast(yaml_val)
                except (TypeError, ValueError):
                    return default
            return default

        def _get_bool(env_key: str, yaml_key: str, default: bool) -> bool:
            env_val = os.getenv(env_key)
            if env_val is not None:
                return env_val.lower() in ("1", "true", "yes")
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return bool(yaml_val)
            return default

        self.LOOKAHEAD_WINDOW = _get("HUNKREVIEW_LOOKAHEAD_WINDOW", "lookahead_window",
                                     _DEFAULTS["lookahead_window"], cast=int)
        self.CONTEXT_LINES = _get("HUNKREVIEW_CONTEXT_LINES", "context_lines",
                                  _DEFAULTS["context_lines"], cast=int)

        # Session persistence across reloads
        self.SESSION_STORE_FILE = _get("HUNKREVIEW_SESSION_STORE_FILE",
                                       "session_store_file",
                                       _DEFAULTS["session_store_file"])
        self.PERSIST_SESSIONS = _get_bool("HUNKREVIEW_PERSIST_SESSIONS",
                                          "persist_sessions",
                                          _DEFAULTS["persist_sessions"])

        # Review outcome log
        self.METRICS_ENABLED = _get_bool("HUNKREVIEW_METRICS_ENABLED",
                                         "metrics_enabled",
                                         _DEFAULTS["metrics_enabled"])
        self.METRICS_DIR = _get("HUNKREVIEW_METRICS_DIR", "metrics_dir",
                                _DEFAULTS["metrics_dir"])

        self.LOG_DIR = _get("HUNKREVIEW_LOG_DIR", "log_dir", _DEFAULTS["log_dir"])

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Load config from YAML file (if found) + env vars + defaults."""
        path = _find_config_file(config_path)
        yaml_data = _load_yaml(path) if path else {}
        return cls(yaml_data)
