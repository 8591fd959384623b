"""
Timestamp ledger model.
"""

from typing import Dict, Iterator

from utils.errors import LedgerSealedError
from utils.timestamps import UNSUPPORTED, format_millis

NOT_SUPPORTED_TEXT = "Last-modified not supported"


class TimestampLedger:
    """
    Last-modified values, in epoch millis, observed for each URL during
    one checkout.

    A missing URL and a value of 0 both mean the resource did not report
    a modification time. The ledger is sealed once it is attached to a
    build record and can no longer be changed.
    """

    display_name = "URL Modification Dates"
    url_name = "urlDates"

    def __init__(self, last_modified: Dict[str, int] = None):
        self._last_modified: Dict[str, int] = dict(last_modified or {})
        self._sealed = False

    def get_last_modified(self, url: str) -> int:
        return self._last_modified.get(url, UNSUPPORTED)

    def set_last_modified(self, url: str, millis: int) -> None:
        if self._sealed:
            raise LedgerSealedError(f"Ledger is sealed, cannot record {url}")
        self._last_modified[url] = int(millis)

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def get_url_dates(self) -> Dict[str, str]:
        """
        Human readable view of the ledger.

        Returns:
            Mapping of URL to a locale formatted date, or to
            "Last-modified not supported" when no date was reported
        """
        dates = {}
        for url, millis in self._last_modified.items():
            if millis == UNSUPPORTED:
                dates[url] = NOT_SUPPORTED_TEXT
            else:
                dates[url] = format_millis(millis)
        return dates

    def to_dict(self) -> Dict[str, int]:
        return dict(self._last_modified)

    @classmethod
    def from_dict(cls, data: Dict[str, int]) -> 'TimestampLedger':
        ledger = cls({url: int(millis) for url, millis in (data or {}).items()})
        ledger.seal()
        return ledger

    def __contains__(self, url: str) -> bool:
        return url in self._last_modified

    def __iter__(self) -> Iterator[str]:
        return iter(self._last_modified)

    def __len__(self) -> int:
        return len(self._last_modified)

    def __eq__(self, other) -> bool:
        if not isinstance(other, TimestampLedger):
            return NotImplemented
        return self._last_modified == other._last_modified

    def __repr__(self) -> str:
        return f"TimestampLedger({self._last_modified!r})"
