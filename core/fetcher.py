"""
Fetcher - Copies every configured URL into the workspace.
"""

import logging
from typing import Optional

from core.registry import ConnectionFactory
from handlers.base_handler import BUFFER_SIZE
from models.check_result import CheckoutResult
from models.ledger import TimestampLedger
from models.source import SourceConfiguration, URLEntry
from utils.errors import URLCopyError, TransferError
from utils.logger import get_build_logger
from utils.workspace import Workspace

# Written when a checkout succeeds; URL copies carry no change log
EMPTY_CHANGELOG = '<log/>'


class Fetcher:
    """Runs the checkout of a job's URLs."""

    def __init__(self, factory: ConnectionFactory = None):
        self.factory = factory or ConnectionFactory()

    def checkout(
        self,
        config: SourceConfiguration,
        workspace: Workspace,
        build_logger: logging.Logger = None,
        changelog_file: Optional[str] = None
    ) -> CheckoutResult:
        """
        Copy each URL, in order, into the workspace.

        The first failure aborts the checkout: later URLs are not
        attempted, files already copied stay in place and no ledger is
        returned.

        Args:
            config: URLs and clear-workspace flag of the job
            workspace: Destination directory
            build_logger: Logger receiving the build transcript
            changelog_file: Where to write the empty change log, if any

        Returns:
            CheckoutResult carrying the recorded ledger on success
        """
        log = build_logger or get_build_logger()

        if config.clear_workspace:
            workspace.delete_contents()

        ledger = TimestampLedger()
        copied = []

        for entry in config.urls:
            try:
                copied.append(self._copy(entry, ledger, workspace, log))
            except Exception as e:
                log.error(f"Unable to copy {entry.url}\n{e}")
                return CheckoutResult(
                    success=False,
                    failed_url=entry.url,
                    error=str(e),
                    copied=copied
                )

        if changelog_file:
            with open(changelog_file, 'w', encoding='utf-8') as f:
                f.write(EMPTY_CHANGELOG)

        return CheckoutResult(success=True, ledger=ledger, copied=copied)

    def _copy(
        self,
        entry: URLEntry,
        ledger: TimestampLedger,
        workspace: Workspace,
        log: logging.Logger
    ) -> str:
        """Copy one URL and record its last-modified value; returns the file name."""
        conn = self.factory.open(entry.url)
        try:
            # Recorded before the body is read
            ledger.set_last_modified(entry.url, conn.last_modified)

            path = entry.filename
            if not path:
                raise TransferError(f"URL does not contain filename: {entry.url}")

            log.info(f"Copying {entry.url} to {path}")
            try:
                with workspace.open_for_write(path) as out:
                    for chunk in conn.iter_body(BUFFER_SIZE):
                        out.write(chunk)
            except URLCopyError:
                raise
            except OSError as e:
                raise TransferError(f"{path}: {e}") from e

            return path
        finally:
            conn.close()
