"""
seqlen Configuration Management

Layered configuration: built-in defaults, an optional YAML file, and
SEQLEN_* environment variable overrides. Command line flags are applied on
top by the caller.

Usage:
    from seqlen.config import Config, load_config

    config = load_config()                       # user config if present
    config = load_config(Path("seqlen.yaml"))    # explicit file
    percentiles = config.get("stats.percentiles")
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigurationError

ENV_PREFIX = "SEQLEN_"


# =============================================================================
# Configuration Paths
# =============================================================================

def get_user_config_dir() -> Path:
    """Get user configuration directory."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "seqlen"
    return Path.home() / ".config" / "seqlen"


def get_user_config_path() -> Path:
    """Get path to user configuration file."""
    return get_user_config_dir() / "config.yaml"


# =============================================================================
# Default Configuration
# =============================================================================

DEFAULT_CONFIG = {
    "format": "auto",

    "stats": {
        "percentiles": [50, 75, 90],
    },

    "collector": {
        "progress_interval": 1000000,
    },

    "output": {
        "indent": 2,
        "sort_lengths": False,
    },
}


# =============================================================================
# Configuration Class
# =============================================================================

class Config:
    """
    Configuration manager with dot-notation access.

    Lookup order for get("stats.percentiles"):
    1. Explicit overrides from set() (command line flags)
    2. Environment variable SEQLEN_STATS_PERCENTILES
    3. Loaded configuration
    4. Defaults
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        defaults: Optional[Dict[str, Any]] = None
    ):
        self._defaults = defaults or copy.deepcopy(DEFAULT_CONFIG)
        self._config = config or {}
        self._overrides: Dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Dot-separated key (e.g., "stats.percentiles")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self._get_nested(self._overrides, key)
        if value is not None:
            return value

        env_key = f"{ENV_PREFIX}{key.upper().replace('.', '_')}"
        env_value = os.environ.get(env_key)
        if env_value is not None:
            return self._parse_env_value(env_value)

        value = self._get_nested(self._config, key)
        if value is not None:
            return value

        value = self._get_nested(self._defaults, key)
        if value is not None:
            return value

        return default

    def set(self, key: str, value: Any) -> None:
        """Set an override using dot notation; it wins over the environment."""
        parts = key.split(".")
        current = self._overrides
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        current[parts[-1]] = value

    def _get_nested(self, data: Dict, key: str) -> Any:
        current = data
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return None
            current = current[part]
        return current

    def _parse_env_value(self, value: str) -> Any:
        """Parse environment variable value to appropriate type."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        # List (comma-separated)
        if "," in value:
            return [self._parse_env_value(v.strip()) for v in value.split(",")]

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value


# =============================================================================
# Configuration Loading
# =============================================================================

def load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping, returning {} for a missing file."""
    path = Path(path)
    if not path.exists():
        return {}

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in configuration file: {path}",
            config_file=str(path),
            cause=e
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read configuration file: {path}",
            config_file=str(path),
            cause=e
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file must contain a mapping: {path}",
            config_file=str(path)
        )
    return data


def load_config(path: Optional[Path] = None) -> Config:
    """
    Load configuration from file.

    Args:
        path: Config file path (default: user config, if it exists)

    Returns:
        Config instance
    """
    if path is not None and not Path(path).exists():
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            config_file=str(path)
        )
    path = path or get_user_config_path()
    return Config(config=load_yaml_file(path))
