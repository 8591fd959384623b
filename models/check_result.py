"""
Poll and checkout result models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from models.ledger import TimestampLedger
from utils.timestamps import describe_millis


class ChangeVerdict(Enum):
    """Outcome of comparing remote timestamps with the last build."""

    NO_PREVIOUS_BUILD = 'no_previous_build'
    NO_PREVIOUS_LEDGER = 'no_previous_ledger'
    CHANGED = 'changed'
    UNCHANGED = 'unchanged'

    @property
    def significant(self) -> bool:
        """Whether this verdict should trigger a new build."""
        return self is not ChangeVerdict.UNCHANGED


@dataclass
class URLChange:
    """A URL whose last-modified value differs from the recorded one."""

    url: str
    current: int
    previous: int

    def __str__(self) -> str:
        return (
            f"Found change: {self.url} modified {describe_millis(self.current)} "
            f"previous modification was {describe_millis(self.previous)}"
        )


@dataclass
class PollResult:
    """Represents the result of polling a job's URLs for changes."""

    verdict: ChangeVerdict
    changes: List[URLChange] = field(default_factory=list)
    build_number: Optional[int] = None
    check_time: datetime = field(default_factory=datetime.now)

    @property
    def significant(self) -> bool:
        return self.verdict.significant

    @property
    def status(self) -> str:
        """Get status string."""
        return self.verdict.value

    def __str__(self) -> str:
        header = "SIGNIFICANT" if self.significant else "NO CHANGES"
        lines = [f"[{header}] {self.status}"]
        if self.build_number is not None:
            lines.append(f"  Compared with build #{self.build_number}")
        lines.extend(f"  {change}" for change in self.changes)
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'verdict': self.verdict.value,
            'significant': self.significant,
            'build_number': self.build_number,
            'changes': [
                {'url': c.url, 'current': c.current, 'previous': c.previous}
                for c in self.changes
            ],
            'check_time': self.check_time.isoformat() if self.check_time else None,
        }


@dataclass
class CheckoutResult:
    """Outcome of copying every configured URL into the workspace."""

    success: bool
    ledger: Optional[TimestampLedger] = None
    failed_url: Optional[str] = None
    error: Optional[str] = None
    copied: List[str] = field(default_factory=list)

    @property
    def status(self) -> str:
        return 'success' if self.success else 'failure'


@dataclass
class ValidationResult:
    """Answer to an interactive URL check."""

    ok: bool
    message: Optional[str] = None

    @classmethod
    def success(cls) -> 'ValidationResult':
        return cls(ok=True)

    @classmethod
    def failure(cls, message: str) -> 'ValidationResult':
        return cls(ok=False, message=message)

    def __str__(self) -> str:
        return 'OK' if self.ok else f"ERROR: {self.message}"
