"""
Configuration loading - YAML files with .env overrides.
"""

import os
import logging
from typing import Dict, Any

import yaml
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

logger = logging.getLogger('Config')


def load_yaml(path: str) -> Dict[str, Any]:
    """Load a YAML configuration file, returning {} when missing or invalid."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning(f"Config file not found: {path}")
        return {}
    except yaml.YAMLError as e:
        logger.error(f"Error parsing YAML file {path}: {e}")
        return {}


def default_settings_path() -> str:
    return os.getenv(
        'URLCOPY_SETTINGS',
        os.path.join(BASE_DIR, 'config', 'settings.yaml')
    )


def default_job_path() -> str:
    return os.path.join(BASE_DIR, 'config', 'job.yaml')


def load_settings(path: str = None) -> Dict[str, Any]:
    """
    Load application settings.

    Args:
        path: Path to settings.yaml; defaults to $URLCOPY_SETTINGS or
            config/settings.yaml

    Returns:
        Settings dictionary, with the log level overridden by
        $URLCOPY_LOG_LEVEL and the state file by $URLCOPY_STATE_FILE
    """
    settings = load_yaml(path or default_settings_path())

    log_level = os.getenv('URLCOPY_LOG_LEVEL')
    if log_level:
        settings.setdefault('logging', {})['level'] = log_level

    state_file = os.getenv('URLCOPY_STATE_FILE')
    if state_file:
        settings['state_file'] = state_file

    return settings
