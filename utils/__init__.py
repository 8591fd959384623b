"""
Utils package - Shared utility functions.
"""

from utils.logger import setup_logging
from utils.workspace import Workspace
from utils.config import load_settings, load_yaml

__all__ = ['setup_logging', 'Workspace', 'load_settings', 'load_yaml']
