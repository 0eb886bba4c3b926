"""
Configuration utilities for the forest carbon estimation tools.

Configuration lives in YAML files. Each component ships a default
config.yaml inside its package; users may point to their own file, drop
one in the working directory, or set FOREST_CARBON_CONFIG.

Author: Diego Bengochea
"""

import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union
import logging

import yaml

CONFIG_ENV_VAR = 'FOREST_CARBON_CONFIG'


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    component_name: Optional[str] = None,
    default_config_name: str = "config.yaml",
    package_dir: Optional[Union[str, Path]] = None
) -> Dict[str, Any]:
    """
    Load configuration from YAML file with standardized search patterns.

    Search order:
    1. Explicit config_path if provided (must exist)
    2. Component directory + default_config_name
    3. Current directory + default_config_name
    4. Environment variable FOREST_CARBON_CONFIG
    5. package_dir + default_config_name (packaged defaults)

    Args:
        config_path: Explicit path to configuration file
        component_name: Name of component (for automatic config discovery)
        default_config_name: Default config filename to search for
        package_dir: Directory holding the packaged default configuration

    Returns:
        Dict[str, Any]: Configuration dictionary

    Raises:
        FileNotFoundError: If no configuration file is found
        yaml.YAMLError: If configuration file is invalid YAML

    Examples:
        >>> config = load_config(component_name="carbon_estimation")
        >>> config = load_config("custom_config.yaml")
    """
    logger = logging.getLogger(__name__)

    if config_path:
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")
    else:
        config_file = _search_config_file(
            _candidate_paths(component_name, default_config_name, package_dir)
        )

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Invalid YAML in {config_file}: {e}")

    if not isinstance(config, dict):
        raise ValueError(f"Configuration in {config_file} must be a mapping")

    config['_meta'] = {
        'config_file': str(config_file.absolute()),
        'component_name': component_name,
    }

    logger.info(f"Loaded configuration from: {config_file}")
    return config


def _candidate_paths(
    component_name: Optional[str],
    default_config_name: str,
    package_dir: Optional[Union[str, Path]]
) -> List[Path]:
    search_paths = []

    if component_name:
        search_paths.append(Path(component_name) / default_config_name)

    search_paths.append(Path(default_config_name))

    env_config = os.environ.get(CONFIG_ENV_VAR)
    if env_config:
        search_paths.append(Path(env_config))

    if package_dir:
        search_paths.append(Path(package_dir) / default_config_name)

    return search_paths


def _search_config_file(search_paths: Iterable[Path]) -> Path:
    logger = logging.getLogger(__name__)
    search_paths = list(search_paths)

    for path in search_paths:
        if path.exists():
            logger.debug(f"Found configuration file: {path}")
            return path

    searched = [str(p) for p in search_paths]
    raise FileNotFoundError(f"Configuration file not found. Searched paths: {searched}")


def validate_config(config: Dict[str, Any], required_sections: list = None) -> bool:
    """
    Validate configuration dictionary structure.

    Args:
        config: Configuration dictionary to validate
        required_sections: List of required top-level sections

    Returns:
        bool: True if configuration is valid

    Raises:
        ValueError: If configuration is invalid

    Examples:
        >>> validate_config(config, ['earth_engine', 'sampling'])
    """
    logger = logging.getLogger(__name__)

    if not isinstance(config, dict):
        raise ValueError("Configuration must be a dictionary")

    if required_sections:
        missing_sections = [s for s in required_sections if s not in config]
        if missing_sections:
            raise ValueError(f"Missing required configuration sections: {missing_sections}")

        not_mappings = [s for s in required_sections if not isinstance(config[s], dict)]
        if not_mappings:
            raise ValueError(f"Configuration sections must be mappings: {not_mappings}")

    logger.debug("Configuration validation passed")
    return True


def get_config_value(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Get nested configuration value using dot notation.

    Args:
        config: Configuration dictionary
        key_path: Dot-separated path to the value (e.g., 'sampling.seed')
        default: Default value if key is not found

    Returns:
        Any: Configuration value or default

    Examples:
        >>> seed = get_config_value(config, 'sampling.seed', 66)
    """
    value = config

    try:
        for key in key_path.split('.'):
            value = value[key]
        return value
    except (KeyError, TypeError):
        return default


def set_config_value(config: Dict[str, Any], key_path: str, value: Any) -> None:
    """
    Set nested configuration value using dot notation, creating sections as needed.

    Examples:
        >>> set_config_value(config, 'earth_engine.credentials_path', 'key.json')
    """
    keys = key_path.split('.')
    section = config
    for key in keys[:-1]:
        section = section.setdefault(key, {})
    section[keys[-1]] = value
