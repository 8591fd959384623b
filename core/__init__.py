"""
Core package - Contains main business logic.
"""

from core.registry import ConnectionFactory
from core.state_manager import BuildStore
from core.fetcher import Fetcher
from core.poller import Poller
from core.scm import URLSCM

__all__ = [
    'ConnectionFactory',
    'BuildStore',
    'Fetcher',
    'Poller',
    'URLSCM'
]
