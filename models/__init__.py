"""
Models package - Data classes for the application.
"""

from models.source import URLEntry, SourceConfiguration
from models.ledger import TimestampLedger
from models.build import BuildRecord
from models.check_result import (
    ChangeVerdict, URLChange, PollResult, CheckoutResult, ValidationResult
)

__all__ = [
    'URLEntry',
    'SourceConfiguration',
    'TimestampLedger',
    'BuildRecord',
    'ChangeVerdict',
    'URLChange',
    'PollResult',
    'CheckoutResult',
    'ValidationResult',
]
