"""
Configuration management with TOML + environment variable support.

Configuration hierarchy (later overrides earlier):
1. Built-in defaults (DEFAULTS below)
2. TOML file
3. Environment variables (PULSEWATCH_* prefix)
4. In-process overrides via ConfigManager.set()
"""
import copy
import os
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore


DEFAULTS: dict[str, Any] = {
    "pulsewatch": {
        "log_level": "INFO",
        "log_json": False,
    },
    "store": {
        "path": "./data/pulsewatch.db",
        "marker_key": "app-version",
        "legacy_prefix": "pulse-",
    },
    "server": {
        "url": "http://localhost:9000",
        "upgrade_path": "/client-upgrade",
        "session_path": "/client-session",
    },
    "upload": {
        "timeout_seconds": 30.0,
    },
    "versions": {
        "list": ["1.0.0", "2.0.0"],
    },
}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """Centralized configuration with TOML + env var support.

    Usage:
        config = ConfigManager(Path("config/default.toml"))
        db_path = config.get("store.path")
        timeout = config.get_float("upload.timeout_seconds", 30.0)
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        env_prefix: str = "PULSEWATCH_",
        use_defaults: bool = True,
    ) -> None:
        """Initialize ConfigManager.

        Args:
            config_path: Path to TOML config file (optional)
            env_prefix: Prefix for environment variable overrides
            use_defaults: Seed values from DEFAULTS before loading the file
        """
        self._defaults: dict[str, Any] = copy.deepcopy(DEFAULTS) if use_defaults else {}
        self._data: dict[str, Any] = copy.deepcopy(self._defaults)
        self._overrides: dict[str, Any] = {}
        self._env_prefix = env_prefix
        self._config_path = config_path

        if config_path and config_path.exists():
            self._load_toml(config_path)

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file on top of the defaults."""
        with open(path, "rb") as f:
            self._data = _merge(self._defaults, tomllib.load(f))

    def _get_nested(self, data: dict[str, Any], key: str) -> tuple[bool, Any]:
        """Get a nested value using dot notation.

        Returns (found, value) tuple.
        """
        current: Any = data
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return False, None
            current = current[part]
        return True, current

    def _get_env_value(self, key: str) -> tuple[bool, Any]:
        """Get value from environment variable.

        Converts key like "store.legacy_prefix" to "PULSEWATCH_STORE_LEGACY_PREFIX".
        """
        env_key = self._env_prefix + key.upper().replace(".", "_")
        if env_key in os.environ:
            return True, self._parse_env_value(os.environ[env_key])
        return False, None

    def _parse_env_value(self, value: str) -> Any:
        """Parse environment variable string to appropriate type.

        Version strings like "1.0.0" stay strings; only plain numbers convert.
        """
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False

        if "," in value:
            return [v.strip() for v in value.split(",")]

        try:
            if value.count(".") == 1:
                return float(value)
            return int(value)
        except ValueError:
            return value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value with dot notation.

        Values passed to set() win, then environment variables, then TOML.

        Args:
            key: Dot-notation key like "store.path"
            default: Default value if key not found

        Returns:
            Configuration value
        """
        if key in self._overrides:
            return self._overrides[key]

        found, value = self._get_env_value(key)
        if found:
            return value

        found, value = self._get_nested(self._data, key)
        if found:
            return value

        return default

    def set(self, key: str, value: Any) -> None:
        """Override a value for this process (e.g. from a CLI flag)."""
        self._overrides[key] = value

    def get_section(self, section: str) -> dict[str, Any]:
        """Get entire configuration section."""
        found, value = self._get_nested(self._data, section)
        if found and isinstance(value, dict):
            return value
        return {}

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get configuration value as boolean."""
        value = self.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes", "on")
        return bool(value)

    def get_int(self, key: str, default: int = 0) -> int:
        """Get configuration value as integer."""
        value = self.get(key)
        if value is None:
            return default
        return int(value)

    def get_float(self, key: str, default: float = 0.0) -> float:
        """Get configuration value as float."""
        value = self.get(key)
        if value is None:
            return default
        return float(value)

    def get_list(self, key: str, default: Optional[list[Any]] = None) -> list[Any]:
        """Get configuration value as list.

        A single string is split on commas, so PULSEWATCH_VERSIONS_LIST="1.0.0,2.0.0"
        and a TOML array give the same result.
        """
        if default is None:
            default = []
        value = self.get(key)
        if value is None:
            return default
        if isinstance(value, list):
            return value
        if isinstance(value, str):
            return [v.strip() for v in value.split(",") if v.strip()]
        return [value]

    def reload(self) -> None:
        """Reload configuration from TOML file."""
        if self._config_path and self._config_path.exists():
            self._load_toml(self._config_path)

    @property
    def config_path(self) -> Optional[Path]:
        """Path of the loaded TOML file, if any."""
        return self._config_path

    @property
    def raw_data(self) -> dict[str, Any]:
        """Get raw configuration data (for debugging)."""
        return copy.deepcopy(self._data)
