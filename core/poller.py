"""
Poller - Decides whether a job's URLs changed since the last build.
"""

import logging
from typing import Optional

from core.registry import ConnectionFactory
from models.build import BuildRecord
from models.check_result import ChangeVerdict, PollResult, URLChange
from models.source import SourceConfiguration
from utils.errors import TimestampQueryError
from utils.logger import get_build_logger


class Poller:
    """Compares live last-modified values with a build's ledger."""

    def __init__(self, factory: ConnectionFactory = None):
        self.factory = factory or ConnectionFactory()

    def query_last_modified(self, url: str) -> int:
        """Open the URL, read its last-modified value and close it without reading the body."""
        conn = self.factory.open(url)
        try:
            return conn.last_modified
        finally:
            conn.close()

    def poll(
        self,
        config: SourceConfiguration,
        previous_build: Optional[BuildRecord],
        build_logger: logging.Logger = None
    ) -> PollResult:
        """
        Check every configured URL against the previous build's ledger.

        All differing URLs are logged, not just the first. An I/O error
        on any URL is logged and re-raised, ending the poll.

        Args:
            config: URLs of the job
            previous_build: Most recent completed build, or None
            build_logger: Logger receiving the polling transcript

        Returns:
            PollResult with the verdict and the detected changes

        Raises:
            TimestampQueryError: if a URL's metadata cannot be read
        """
        log = build_logger or get_build_logger()

        if previous_build is None:
            return PollResult(verdict=ChangeVerdict.NO_PREVIOUS_BUILD)

        ledger = previous_build.get_attached_ledger()
        if ledger is None:
            return PollResult(
                verdict=ChangeVerdict.NO_PREVIOUS_LEDGER,
                build_number=previous_build.number
            )

        changes = []
        for entry in config.urls:
            try:
                current = self.query_last_modified(entry.url)
            except OSError as e:
                log.error(f"Unable to check {entry.url}\n{e}")
                raise TimestampQueryError(f"{entry.url}: {e}") from e

            previous = ledger.get_last_modified(entry.url)
            if current != previous:
                change = URLChange(url=entry.url, current=current, previous=previous)
                log.info(str(change))
                changes.append(change)

        return PollResult(
            verdict=ChangeVerdict.CHANGED if changes else ChangeVerdict.UNCHANGED,
            changes=changes,
            build_number=previous_build.number
        )
