# ============================================================================
# CIVIC REPORTS - Configuration
# ============================================================================
# Typed defaults, overridable through CIVIC_<KEY> environment variables.
# ============================================================================

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger("civic.config")

BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PREFIX = "CIVIC_"

# key -> (default, value_type, category)
DEFAULT_CONFIG = {
    # Storage
    "data_file": (str(BASE_DIR / "data" / "reports.json"), "string", "storage"),
    "uploads_dir": (str(BASE_DIR / "public" / "uploads"), "string", "storage"),

    # Lifecycle simulation (seconds)
    "lifecycle_enabled": (True, "bool", "lifecycle"),
    "ack_delay_seconds": (1.2, "float", "lifecycle"),
    "progress_delay_seconds": (4.2, "float", "lifecycle"),
    "resolve_delay_seconds": (12.0, "float", "lifecycle"),

    # HTTP
    "ping_message": ("ping", "string", "general"),
    "cors_origins": (["*"], "json", "general"),
    "log_level": ("INFO", "string", "general"),
}


class CivicConfig:
    """
    Process-wide configuration cache.

    Values start from DEFAULT_CONFIG, then environment overrides are applied
    once on first access. set() only changes the in-memory value.
    """

    _cache: Dict[str, Any] = {}
    _cache_loaded: bool = False

    @classmethod
    def _load_cache(cls):
        if cls._cache_loaded:
            return

        for key, (default, vtype, category) in DEFAULT_CONFIG.items():
            cls._cache[key] = default
            raw = os.environ.get(ENV_PREFIX + key.upper())
            if raw is not None:
                cls._cache[key] = cls._cast_value(raw, vtype, default)

        cls._cache_loaded = True

    @classmethod
    def _cast_value(cls, value: str, value_type: str, default: Any = None) -> Any:
        """Cast an environment string to the declared type."""
        if value_type == "bool":
            return value.strip().lower() in ("true", "1", "yes", "on")
        if value_type == "int":
            try:
                return int(value)
            except ValueError:
                logger.warning(f"[Config] Bad int value {value!r}, using default")
                return default
        if value_type == "float":
            try:
                return float(value)
            except ValueError:
                logger.warning(f"[Config] Bad float value {value!r}, using default")
                return default
        if value_type == "json":
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                # Comma-separated lists are accepted for convenience
                return [v.strip() for v in value.split(",") if v.strip()]
        return value

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        cls._load_cache()
        return cls._cache.get(key, default)

    @classmethod
    def set(cls, key: str, value: Any) -> None:
        cls._load_cache()
        old_value = cls._cache.get(key)
        cls._cache[key] = value
        if old_value != value:
            logger.debug(f"[Config] {key} changed: {old_value!r} -> {value!r}")

    @classmethod
    def get_all(cls, category: str = None) -> Dict[str, Any]:
        """All values, optionally limited to one category."""
        cls._load_cache()
        if category is None:
            return dict(cls._cache)
        return {
            key: cls._cache.get(key, default)
            for key, (default, vtype, cat) in DEFAULT_CONFIG.items()
            if cat == category
        }

    @classmethod
    def reset_cache(cls):
        cls._cache = {}
        cls._cache_loaded = False


def get_config(key: str, default: Any = None) -> Any:
    """Get a configuration value."""
    return CivicConfig.get(key, default)


def set_config(key: str, value: Any) -> None:
    """Set a configuration value for the running process."""
    CivicConfig.set(key, value)


def get_all_config(category: str = None) -> Dict[str, Any]:
    return CivicConfig.get_all(category)


def reset_config():
    """Drop cached values so the next read re-applies defaults and env."""
    CivicConfig.reset_cache()
