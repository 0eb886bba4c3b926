"""
Shared utilities for the forest carbon estimation tools.

This package provides common functionality used across components:
- Standardized logging configuration
- Configuration file loading utilities
- Path handling utilities

Author: Diego Bengochea
"""

from .logging_utils import setup_logging, get_logger, format_duration, log_pipeline_start, log_pipeline_end, log_section
from .config_utils import load_config, validate_config, get_config_value, set_config_value
from .path_utils import ensure_directory, resolve_path

__version__ = "1.0.0"

__all__ = [
    "setup_logging",
    "get_logger",
    "format_duration",
    "log_pipeline_start",
    "log_pipeline_end",
    "log_section",
    "load_config",
    "validate_config",
    "get_config_value",
    "set_config_value",
    "ensure_directory",
    "resolve_path",
]
