"""
Build Store - Append-only build history persisted as JSON.
"""

import os
import json
import logging
from datetime import datetime
from typing import Dict, List, Optional
from threading import Lock

from models.build import BuildRecord
from utils.config import BASE_DIR

logger = logging.getLogger('BuildStore')


class BuildStore:
    """
    Ordered build records of one job, indexed by number, with a
    pointer to the most recent completed build.
    """

    def __init__(self, state_file: str = None):
        """
        Initialize the store.

        Args:
            state_file: Path to the JSON state file
        """
        if state_file is None:
            state_file = os.path.join(BASE_DIR, 'state', 'builds.json')

        self.state_file = state_file
        self._lock = Lock()
        self._records: List[BuildRecord] = []
        self._index: Dict[int, int] = {}
        self._last_completed: Optional[int] = None
        self._load_state()

    def _load_state(self) -> None:
        """Load records from file."""
        try:
            if os.path.exists(self.state_file):
                with open(self.state_file, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                for item in data.get('builds', []):
                    self._append(BuildRecord.from_dict(item))
        except (json.JSONDecodeError, KeyError, ValueError, IOError) as e:
            logger.warning(f"Could not load state file: {e}")
            self._records = []
            self._index = {}
            self._last_completed = None

    def _save_state(self) -> None:
        """Save records to file."""
        directory = os.path.dirname(self.state_file)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(self.state_file, 'w', encoding='utf-8') as f:
            json.dump(
                {'builds': [record.to_dict() for record in self._records]},
                f,
                indent=2
            )

    def _append(self, record: BuildRecord) -> None:
        self._index[record.number] = len(self._records)
        self._records.append(record)
        if record.is_completed:
            self._mark_completed(record)

    def _mark_completed(self, record: BuildRecord) -> None:
        if self._last_completed is None or record.number > self._last_completed:
            self._last_completed = record.number

    def new_build(self) -> BuildRecord:
        """Append a new, in-progress build record."""
        with self._lock:
            number = self._records[-1].number + 1 if self._records else 1
            record = BuildRecord(number=number)
            self._append(record)
            self._save_state()
            return record

    def complete(self, record: BuildRecord, result: str) -> None:
        """
        Mark a build as finished and persist it together with its ledger.

        Args:
            record: Build record returned by new_build()
            result: SUCCESS or FAILURE
        """
        with self._lock:
            if record.number not in self._index:
                raise KeyError(f"Unknown build #{record.number}")
            record.result = result
            record.completed_at = datetime.now()
            self._mark_completed(record)
            self._save_state()

    def get_build(self, number: int) -> Optional[BuildRecord]:
        with self._lock:
            position = self._index.get(number)
            return self._records[position] if position is not None else None

    def last_completed_build(self) -> Optional[BuildRecord]:
        """Most recent completed build, or None when nothing has finished yet."""
        with self._lock:
            if self._last_completed is None:
                return None
            return self._records[self._index[self._last_completed]]

    @property
    def builds(self) -> List[BuildRecord]:
        with self._lock:
            return list(self._records)

    def clear_all(self) -> None:
        """Drop the whole history."""
        with self._lock:
            self._records = []
            self._index = {}
            self._last_completed = None
            self._save_state()
