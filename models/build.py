"""
Build record model.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from models.ledger import TimestampLedger
from utils.errors import LedgerAlreadyAttachedError

SUCCESS = 'SUCCESS'
FAILURE = 'FAILURE'


@dataclass
class BuildRecord:
    """One entry in a job's build history, optionally carrying a ledger."""

    number: int
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    result: Optional[str] = None
    ledger: Optional[TimestampLedger] = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def attach(self, ledger: TimestampLedger) -> None:
        """
        Attach the ledger recorded by this build's checkout.

        A build carries at most one ledger; the ledger is sealed here and
        stays read-only for the lifetime of the record.
        """
        if self.ledger is not None:
            raise LedgerAlreadyAttachedError(f"Build #{self.number} already has a ledger")
        ledger.seal()
        self.ledger = ledger

    def get_attached_ledger(self) -> Optional[TimestampLedger]:
        return self.ledger

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'number': self.number,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'result': self.result,
            'ledger': self.ledger.to_dict() if self.ledger is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'BuildRecord':
        started_at = data.get('started_at')
        completed_at = data.get('completed_at')
        ledger = data.get('ledger')
        return cls(
            number=int(data['number']),
            started_at=datetime.fromisoformat(started_at) if started_at else None,
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
            result=data.get('result'),
            ledger=TimestampLedger.from_dict(ledger) if ledger is not None else None,
        )
