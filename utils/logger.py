"""
Logging configuration utility.
"""

import logging
import sys
from typing import Dict, Any

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(
    level: str = 'INFO',
    format_str: str = None,
    log_file: str = None
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_str: Log message format
        log_file: Optional file to write logs to

    Returns:
        Configured root logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(format_str or DEFAULT_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    return root_logger


def setup_logging_from_settings(settings: Dict[str, Any]) -> logging.Logger:
    """Configure logging from the "logging" section of settings.yaml."""
    log_settings = (settings or {}).get('logging', {})
    return setup_logging(
        level=log_settings.get('level', 'INFO'),
        format_str=log_settings.get('format'),
        log_file=log_settings.get('file'),
    )


def get_build_logger(number: int = None) -> logging.Logger:
    """
    Logger that receives a build's transcript.

    Args:
        number: Build number, appended to the logger name when given

    Returns:
        Logger instance
    """
    if number is None:
        return logging.getLogger('Build')
    return logging.getLogger(f'Build.{number}')
