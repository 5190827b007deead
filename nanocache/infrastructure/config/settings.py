"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables (``NANOCACHE_*``)
and a dedicated YAML configuration file (``~/.nanocache/config.yaml``).
``get_cache_settings`` collects the cache store options into one object.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

# Domain Layer Imports
from nanocache.domain.models.common import DEFAULT_CACHE_NAME, DEFAULT_TTL_SECONDS, CacheFormat

# Infrastructure Layer Imports
from nanocache.infrastructure.cache.payload_codec import get_serializer
from nanocache.infrastructure.cache.persistence_codec import CORRUPT_POLICIES

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".nanocache"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "NANOCACHE_"

# --- Global Configuration Store (Simple Approach) ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}  # For testing purposes
_loaded = False


@dataclass
class CacheSettings:
    """Every option of the cache store configuration surface."""

    name: str = DEFAULT_CACHE_NAME
    directory: Path = Path(DEFAULT_CACHE_NAME)
    extension: CacheFormat = CacheFormat.JSON
    ttl: int = DEFAULT_TTL_SECONDS
    debug: bool = False
    delete_expired: bool = True
    base64_encode: bool = True
    secure_access: bool = True
    serializer: str = "json"
    corrupt_policy: str = "delete"


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Turns nested YAML mappings into dotted keys ('cache': {'ttl': 5} -> 'cache.ttl')."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{dotted}."))
        else:
            flat[dotted] = value
    return flat

def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values (CacheSettings)

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. Load from YAML file (Lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(_flatten(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: ENV VARS take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
        else:
            logger.debug(f".env file at {dotenv_path} set no variables.")
    else:
        logger.debug("Skipping .env file loading (path not found).")

    # 3. Environment Variables (Highest priority) are handled in get_config

    _loaded = True
    logger.info("Configuration loading process completed.")

def reset_configuration() -> None:
    """Forgets loaded configuration so the next load_configuration reads the sources again."""
    global _config, _loaded
    _config = {}
    _loaded = False

def _coerce(value: str) -> Any:
    """Converts common string forms from the environment into Python values."""
    lowered = value.lower()
    if lowered == 'true':
        return True
    if lowered == 'false':
        return False
    try:
        return float(value) if '.' in value else int(value)
    except (ValueError, TypeError):
        return value

def get_config(key: str, default: Any = None, coerce: bool = True) -> Any:
    """Get a configuration value by key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (NANOCACHE_ + key, dots as underscores)
    3. YAML config
    4. Default value

    Args:
        key: The configuration key (e.g., 'cache.ttl')
        default: Default value if the key is not found
        coerce: Convert environment strings to bool/int/float. Disable for
            options that must stay text, such as names and paths.

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = ENV_PREFIX + key.upper().replace('.', '_')
    if env_key in os.environ:
        value = os.environ[env_key]
        return _coerce(value) if coerce else value

    if key in _config:
        return _config[key]

    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default

def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    try:
        cwd = Path.cwd()
        for path in [cwd] + list(cwd.parents):
            env_path = path / ENV_FILE_NAME
            if env_path.is_file():
                return env_path
    except OSError as e:
        logger.warning(f"Error searching for .env file: {e}")
    return None

def _as_bool(key: str, value: Any, default: bool) -> bool:
    """Accepts booleans and their common string spellings."""
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    if isinstance(value, str):
        if value.lower() in ('true', '1', 'yes', 'on'):
            return True
        if value.lower() in ('false', '0', 'no', 'off'):
            return False
        logger.warning(f"Unexpected value for {key}: '{value}'. Defaulting to {default}.")
        return default
    return bool(value)

def get_cache_settings() -> CacheSettings:
    """Builds CacheSettings from the loaded configuration sources.

    Raises:
        ValueError: If the configured format, TTL, serializer or corrupt
            policy is invalid.
    """
    defaults = CacheSettings()
    settings = CacheSettings(
        name=str(get_config('cache.name', defaults.name, coerce=False)),
        directory=Path(str(get_config('cache.directory', defaults.directory, coerce=False))).expanduser(),
        extension=CacheFormat.from_value(get_config('cache.format', defaults.extension)),
        ttl=int(get_config('cache.ttl', defaults.ttl)),
        debug=_as_bool('cache.debug', get_config('cache.debug'), defaults.debug),
        delete_expired=_as_bool('cache.delete_expired', get_config('cache.delete_expired'), defaults.delete_expired),
        base64_encode=_as_bool('cache.base64', get_config('cache.base64'), defaults.base64_encode),
        secure_access=_as_bool('cache.secure_access', get_config('cache.secure_access'), defaults.secure_access),
        serializer=str(get_config('cache.serializer', defaults.serializer, coerce=False)),
        corrupt_policy=str(get_config('cache.corrupt_policy', defaults.corrupt_policy, coerce=False)),
    )
    # Fail here, not on first store construction
    get_serializer(settings.serializer)
    if settings.corrupt_policy not in CORRUPT_POLICIES:
        raise ValueError(
            f"Invalid corrupt policy '{settings.corrupt_policy}'. Choose one of: {', '.join(CORRUPT_POLICIES)}"
        )
    logger.debug(f"Resolved cache settings: {settings}")
    return settings

def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """Set configuration values for testing purposes.

    These values override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")

def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
