"""
Configuration loading utilities for logistics object forms.

This module loads config.yaml, merges it over defaults and configures
logging from the resulting configuration.
"""

import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def deep_merge(base_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries, with update_dict taking precedence.

    Args:
        base_dict: Base dictionary (defaults)
        update_dict: Dictionary to merge in (user config)

    Returns:
        Merged dictionary
    """
    result = deepcopy(base_dict)

    for key, value in update_dict.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = deepcopy(value)

    return result


def get_default_config() -> Dict[str, Any]:
    """
    Get default configuration.

    Returns:
        Dictionary with default configuration
    """
    return {
        'app': {
            'name': 'Logistics Object Forms',
            'version': '1.0.0',
            'debug': False
        },
        'schema': {
            'directory': 'logistics-objects',
            'embedded_category': 'Embedded'
        },
        'codelists': {
            'path': 'codelists/codelists.json'
        },
        'catalog': {
            'base_url': 'http://localhost:8080',
            'timeout': 10
        },
        'form': {
            'debounce_ms': 500
        },
        'logging': {
            'level': 'INFO',
            'format': DEFAULT_LOG_FORMAT
        }
    }


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load application configuration.

    Args:
        config_path: Optional path to config file (defaults to config.yaml)

    Returns:
        Complete configuration dictionary (defaults when the file is unusable)
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    default_config = get_default_config()

    if not config_path.exists():
        logger.warning(f"Configuration file not found: {config_path}")
        logger.info("Using default configuration")
        return default_config

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user_config = yaml.safe_load(f)

        if user_config is None:
            logger.warning(f"Configuration file is empty: {config_path}")
            return default_config

        if not isinstance(user_config, dict):
            logger.error(f"Configuration file is not a valid dictionary: {config_path}")
            logger.info("Using default configuration")
            return default_config

        config = deep_merge(default_config, user_config)

        logger.info(f"Successfully loaded configuration from {config_path}")
        return config

    except yaml.YAMLError as e:
        logger.error(f"YAML parsing error in {config_path}: {e}")
        logger.info("Using default configuration")
        return default_config

    except (IOError, OSError) as e:
        logger.error(f"Failed to read configuration file {config_path}: {e}")
        logger.info("Using default configuration")
        return default_config


def validate_config(config: Dict[str, Any]) -> bool:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary to validate

    Returns:
        True if configuration is valid, False otherwise
    """
    required_sections = ['app', 'schema', 'codelists', 'catalog', 'form', 'logging']

    for section in required_sections:
        if not isinstance(config.get(section), dict):
            logger.warning(f"Missing required configuration section: {section}")
            return False

    if not isinstance(config['schema'].get('directory'), str):
        logger.warning("schema.directory must be a string")
        return False

    base_url = config['catalog'].get('base_url')
    if not isinstance(base_url, str) or not base_url.startswith(('http://', 'https://')):
        logger.warning("catalog.base_url must be an http(s) URL")
        return False

    for section, key in [('catalog', 'timeout'), ('form', 'debounce_ms')]:
        try:
            value = float(config[section].get(key))
        except (TypeError, ValueError):
            logger.warning(f"{section}.{key} must be a number")
            return False
        if value < 0 or (key == 'timeout' and value == 0):
            logger.warning(f"{section}.{key} must be positive")
            return False

    return True


def get_config_value(config: Dict[str, Any], section: str, key: str, default: Any = None) -> Any:
    """
    Get a specific configuration value.

    Args:
        config: Configuration dictionary
        section: Configuration section (e.g., 'catalog', 'form')
        key: Configuration key within section
        default: Default value if not found

    Returns:
        Configuration value or default
    """
    section_values = config.get(section)
    if not isinstance(section_values, dict):
        return default
    return section_values.get(key, default)


def get_logging_level(level_str: Any) -> int:
    """Map string logging level to logging constant."""
    level_map = {
        'DEBUG': logging.DEBUG,
        'INFO': logging.INFO,
        'WARNING': logging.WARNING,
        'ERROR': logging.ERROR,
        'CRITICAL': logging.CRITICAL
    }
    return level_map.get(str(level_str).upper(), logging.INFO)


def configure_logging(config: Dict[str, Any]) -> int:
    """
    Configure root logging from the 'logging' section.

    Returns:
        The logging level that was applied
    """
    level = get_logging_level(get_config_value(config, 'logging', 'level', 'INFO'))
    log_format = get_config_value(config, 'logging', 'format', DEFAULT_LOG_FORMAT)
    logging.basicConfig(level=level, format=log_format)
    logging.getLogger().setLevel(level)
    logger.info(f"Logging configured to level: {logging.getLevelName(level)}")
    return level
