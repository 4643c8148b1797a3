"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
configuration file (~/.dramagate/config.yaml). `load_gateway_settings()`
turns the loaded values into an immutable GatewaySettings object that is
passed explicitly to the components that need it.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Dict

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".dramagate"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "DRAMAGATE_"
_INT_PATTERN = re.compile(r"-?(0|[1-9][0-9]*)")
_FLOAT_PATTERN = re.compile(r"-?[0-9]+\.[0-9]+")

DEFAULTS: Dict[str, Any] = {
    'upstream.base_url': "https://sapi.dramaboxdb.com",
    'upstream.language': "in",
    'upstream.time_zone': "+0800",
    'http.user_agent': "okhttp/4.10.0",
    'credentials.source_url': "https://dramabox-api.vercel.app/api/token",
    'credentials.ttl_seconds': 30 * 60,
    'credentials.fetch_timeout_seconds': 10,
    'retry.max_retries': 2,
    'retry.backoff_seconds': 1.0,
    'timeouts.catalog_seconds': 15,
    'timeouts.batch_seconds': 20,
    'catalog.page_size': 20,
    'catalog.channel_id': 43,
    'logging.level': "INFO",
    'logging.file': None,
    'logging.format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
}

# --- Global Configuration Store (Simple Approach) ---
_config: Dict[str, Any] = {}
_runtime_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None, force: bool = False) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Test overrides (set_config_for_testing)
    2. Runtime overrides (set_config)
    3. Environment Variables (DRAMAGATE_UPSTREAM_BASE_URL, ...)
    4. .env file
    5. YAML configuration file
    6. DEFAULTS

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
        force: Reload even if configuration was already loaded.
    """
    global _config, _loaded
    if _loaded and not force:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. YAML file (lowest priority after defaults)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(_flatten(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a mapping.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. .env file; override=False so real environment variables win
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("No .env file found at or above the current directory.")

    _loaded = True
    logger.debug("Configuration loading process completed.")


def _flatten(tree: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flattens nested YAML mappings into dotted keys ('retry': {'max_retries': 3} -> 'retry.max_retries')."""
    flat: Dict[str, Any] = {}
    for key, value in tree.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, prefix=f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def env_var_name(key: str) -> str:
    """Maps a dotted config key to its environment variable name."""
    return ENV_PREFIX + key.upper().replace('.', '_')


def _coerce(value: str) -> Any:
    """Converts common string values from the environment to Python scalars."""
    lowered = value.lower()
    if lowered == 'true':
        return True
    if lowered == 'false':
        return False
    if lowered in ('none', 'null', ''):
        return None
    # Signed or zero-padded values such as time zones ("+0800") stay strings
    if _INT_PATTERN.fullmatch(value):
        return int(value)
    if _FLOAT_PATTERN.fullmatch(value):
        return float(value)
    return value


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Runtime overrides (set_config, e.g. CLI flags)
    3. Environment variable
    4. Loaded config (YAML)
    5. Explicit default, then DEFAULTS

    Args:
        key: The dotted configuration key (e.g. 'retry.max_retries')
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    if key in _runtime_config:
        return _runtime_config[key]

    env_key = env_var_name(key)
    if env_key in os.environ:
        return _coerce(os.environ[env_key])

    if key in _config:
        return _config[key]

    if default is not None:
        return default
    return DEFAULTS.get(key)


def set_config(key: str, value: Any) -> None:
    """Sets a configuration value by key for the rest of the process.

    Args:
        key: Configuration key (e.g., 'logging.level')
        value: Value to set
    """
    logger.debug(f"Setting config: {key} = {value}")
    _runtime_config[key] = value


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values and runtime overrides."""
    _test_config.clear()
    _runtime_config.clear()
    logger.debug("Cleared testing configuration")


# --- Typed settings handed to components ---

@dataclass(frozen=True)
class GatewaySettings:
    """Immutable snapshot of every setting the gateway components need."""
    upstream_base_url: str
    upstream_language: str
    upstream_time_zone: str
    user_agent: str
    credential_source_url: str
    credential_ttl_seconds: float
    credential_fetch_timeout_seconds: float
    max_retries: int
    backoff_seconds: float
    catalog_timeout_seconds: float
    batch_timeout_seconds: float
    catalog_page_size: int
    catalog_channel_id: int

    @property
    def credential_ttl_ms(self) -> int:
        return int(self.credential_ttl_seconds * 1000)

    @property
    def catalog_timeout_ms(self) -> int:
        return int(self.catalog_timeout_seconds * 1000)

    @property
    def batch_timeout_ms(self) -> int:
        return int(self.batch_timeout_seconds * 1000)


def load_gateway_settings() -> GatewaySettings:
    """Builds GatewaySettings from the layered configuration."""
    load_configuration()
    settings = GatewaySettings(
        upstream_base_url=str(get_config('upstream.base_url')).rstrip('/'),
        upstream_language=str(get_config('upstream.language')),
        upstream_time_zone=str(get_config('upstream.time_zone')),
        user_agent=str(get_config('http.user_agent')),
        credential_source_url=str(get_config('credentials.source_url')),
        credential_ttl_seconds=float(get_config('credentials.ttl_seconds')),
        credential_fetch_timeout_seconds=float(get_config('credentials.fetch_timeout_seconds')),
        max_retries=int(get_config('retry.max_retries')),
        backoff_seconds=float(get_config('retry.backoff_seconds')),
        catalog_timeout_seconds=float(get_config('timeouts.catalog_seconds')),
        batch_timeout_seconds=float(get_config('timeouts.batch_seconds')),
        catalog_page_size=int(get_config('catalog.page_size')),
        catalog_channel_id=int(get_config('catalog.channel_id')),
    )
    if settings.max_retries < 0:
        raise ValueError(f"retry.max_retries must be >= 0, got {settings.max_retries}")
    return settings
