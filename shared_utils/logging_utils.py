"""
Standardized logging utilities for the forest carbon estimation tools.

All component loggers live under the `forest_carbon` namespace so a single
call to setup_logging configures the whole pipeline.

Author: Diego Bengochea
"""

import logging
import sys
from pathlib import Path
from typing import Any, Mapping, Optional, Union

LOGGER_NAMESPACE = 'forest_carbon'


def setup_logging(
    level: Union[str, int] = 'INFO',
    component_name: Optional[str] = None,
    log_file: Optional[Union[str, Path]] = None,
    format_style: str = 'standard'
) -> logging.Logger:
    """
    Setup standardized logging configuration for pipeline components.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        component_name: Name of the component (for logger identification)
        log_file: Optional file path for logging output
        format_style: Logging format style ('standard', 'detailed', 'simple')

    Returns:
        logging.Logger: Configured logger instance

    Examples:
        >>> logger = setup_logging('INFO', 'carbon_estimation')
        >>> logger = setup_logging('DEBUG', 'carbon_estimation', 'run.log')
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    formats = {
        'standard': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'detailed': '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s',
        'simple': '%(levelname)s: %(message)s'
    }

    root_logger = logging.getLogger()

    # Clear existing handlers to avoid duplication
    if root_logger.handlers:
        root_logger.handlers.clear()

    root_logger.setLevel(level)

    formatter = logging.Formatter(
        formats.get(format_style, formats['standard']),
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # The Earth Engine client and its HTTP stack are chatty at DEBUG
    for noisy in ('googleapiclient', 'google.auth', 'urllib3'):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))

    return get_logger(component_name) if component_name else logging.getLogger(LOGGER_NAMESPACE)


def get_logger(component_name: str) -> logging.Logger:
    """
    Get a logger for a specific component.

    Args:
        component_name: Name of the component, dotted for sub-components

    Returns:
        logging.Logger: Component logger

    Examples:
        >>> logger = get_logger('carbon_estimation.earth_engine')
    """
    return logging.getLogger(f'{LOGGER_NAMESPACE}.{component_name}')


RULE_WIDTH = 80


def format_duration(elapsed_time: float) -> str:
    """Render seconds as HH:MM:SS."""
    total = int(elapsed_time)
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def log_pipeline_start(
    logger: logging.Logger,
    pipeline_name: str,
    parameters: Optional[Mapping[str, Any]] = None
) -> None:
    """
    Log the banner opening a pipeline run.

    Args:
        logger: Logger instance
        pipeline_name: Name of the pipeline being started
        parameters: Optional flat mapping of run parameters, one line each
    """
    logger.info("=" * RULE_WIDTH)
    logger.info(f"STARTING PIPELINE: {pipeline_name.upper()}")
    logger.info("=" * RULE_WIDTH)

    if parameters:
        logger.info("Run parameters:")
        for key, value in parameters.items():
            logger.info(f"  {key}: {value}")


def log_pipeline_end(
    logger: logging.Logger,
    pipeline_name: str,
    success: bool = True,
    elapsed_time: Optional[float] = None
) -> None:
    """
    Log the banner closing a pipeline run, with its wall-clock duration.
    """
    logger.info("=" * RULE_WIDTH)
    if success:
        logger.info(f"✅ PIPELINE COMPLETED SUCCESSFULLY: {pipeline_name.upper()}")
    else:
        logger.error(f"❌ PIPELINE FAILED: {pipeline_name.upper()}")

    if elapsed_time is not None:
        logger.info(f"Total execution time: {format_duration(elapsed_time)}")
    logger.info("=" * RULE_WIDTH)


def log_section(logger: logging.Logger, section_name: str) -> None:
    """Log a stage header inside a pipeline run."""
    logger.info(f"{'=' * 20} {section_name.upper()} {'=' * 20}")
