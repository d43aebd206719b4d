"""Configuration management for streamunpack."""
from pathlib import Path
import yaml
from typing import Any, Dict, Optional

from .. import constants
from ..utils.exceptions import ConfigValidationError

def init_paths(base_path: Optional[Path] = None) -> None:
    """Initialize global paths for streamunpack.

    Args:
        base_path: Optional custom base path. If None, uses ~/.config/streamunpack

    Raises:
        ValueError: If base_path cannot be created
    """
    if base_path is not None and not (base_path.exists() or base_path.parent.exists()):
        raise ValueError(f"Base path {base_path} does not exist and cannot be created")

    constants.STREAMUNPACK_HOME = base_path or Path.home() / ".config" / "streamunpack"
    constants.STREAMUNPACK_CONFIG_FILE = constants.STREAMUNPACK_HOME / "config.yaml"

def _ensure_config_dir() -> None:
    """Ensure configuration directory exists.

    Raises:
        RuntimeError: If directory cannot be created
    """
    try:
        constants.STREAMUNPACK_HOME.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise RuntimeError(f"Failed to create config directory {constants.STREAMUNPACK_HOME}: {e}")

def load_global_config() -> Dict[str, Any]:
    """Load global configuration from YAML file, filling in defaults for missing keys."""
    config = constants.DEFAULT_CONFIG.copy()
    if not constants.STREAMUNPACK_CONFIG_FILE.exists():
        return config

    try:
        with open(constants.STREAMUNPACK_CONFIG_FILE, 'r') as f:
            user_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise RuntimeError(f"Failed to load config file {constants.STREAMUNPACK_CONFIG_FILE}: {e}")
    if not isinstance(user_config, dict):
        raise RuntimeError(f"Config file {constants.STREAMUNPACK_CONFIG_FILE} must contain a mapping")
    config.update(user_config)
    return config

def save_global_config(config: Dict[str, Any]) -> None:
    """Save global configuration to YAML file.

    Args:
        config: Configuration dictionary to save

    Raises:
        RuntimeError: If config cannot be saved
    """
    _ensure_config_dir()
    try:
        with open(constants.STREAMUNPACK_CONFIG_FILE, 'w') as f:
            yaml.dump(config, f)
    except (yaml.YAMLError, OSError) as e:
        raise RuntimeError(f"Failed to save config file {constants.STREAMUNPACK_CONFIG_FILE}: {e}")

def validate_config_value(key: str, value: Any) -> Any:
    """Check a config value and coerce strings from the command line.

    Args:
        key: Config key, one of constants.DEFAULT_CONFIG
        value: Raw value

    Returns:
        Any: The value converted to the key's type

    Raises:
        ConfigValidationError: If the key is unknown or the value is invalid
    """
    if key not in constants.DEFAULT_CONFIG:
        raise ConfigValidationError(
            f"Unknown config key '{key}'. Valid keys: {', '.join(constants.DEFAULT_CONFIG)}"
        )

    if key == "log_level":
        level = str(value).upper()
        if level not in constants.LOG_LEVELS:
            raise ConfigValidationError(
                f"Invalid log_level '{value}'. Valid levels: {', '.join(constants.LOG_LEVELS)}"
            )
        return level

    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigValidationError(f"Config key '{key}' must be an integer, got '{value}'")
    if number < 0 or (key == "download_timeout" and number == 0):
        raise ConfigValidationError(f"Config key '{key}' must be positive, got {number}")
    return number
