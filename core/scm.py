"""
URLSCM - Source acquisition for a job whose sources are plain URLs.
"""

import os
import logging
from typing import Callable, Dict, Any, Optional, Tuple

from core.fetcher import Fetcher
from core.poller import Poller
from core.registry import ConnectionFactory
from core.state_manager import BuildStore
from models.build import BuildRecord, SUCCESS, FAILURE
from models.check_result import CheckoutResult, PollResult, ValidationResult
from models.source import SourceConfiguration, URLEntry
from utils.config import BASE_DIR, load_settings, load_yaml, default_job_path
from utils.logger import get_build_logger
from utils.workspace import Workspace


class URLSCM:
    """Ties a job's URL list to its build history and workspace."""

    display_name = "URL Copy"

    # Polling only reads the ledger stored with the last build
    requires_workspace_for_polling = False

    def __init__(
        self,
        config: SourceConfiguration,
        store: BuildStore,
        workspace: Workspace,
        settings: Dict[str, Any] = None
    ):
        """
        Initialize the SCM.

        Args:
            config: URLs and clear-workspace flag of the job
            store: Build history of the job
            workspace: Directory the URLs are copied into
            settings: Application settings
        """
        self.config = config
        self.store = store
        self.workspace = workspace
        self.settings = settings or {}
        self.factory = ConnectionFactory(self.settings)
        self.fetcher = Fetcher(self.factory)
        self.poller = Poller(self.factory)
        self.logger = logging.getLogger('URLSCM')

    @classmethod
    def from_files(
        cls,
        job_path: str = None,
        settings_path: str = None,
        state_file: str = None,
        workspace_dir: str = None
    ) -> 'URLSCM':
        """
        Build an SCM from the job and settings YAML files.

        Paths not given fall back to the settings file, then to the
        defaults under the project directory.
        """
        settings = load_settings(settings_path)
        config = SourceConfiguration.from_dict(load_yaml(job_path or default_job_path()))

        state_file = state_file or settings.get('state_file') or os.path.join('state', 'builds.json')
        workspace_dir = workspace_dir or settings.get('workspace') or 'workspace'

        return cls(
            config,
            BuildStore(os.path.join(BASE_DIR, state_file)),
            Workspace(os.path.join(BASE_DIR, workspace_dir)),
            settings
        )

    @property
    def urls(self) -> Tuple[URLEntry, ...]:
        return self.config.urls

    @property
    def clear_workspace(self) -> bool:
        return self.config.clear_workspace

    def run_build(self, changelog_file: Optional[str] = None) -> Tuple[BuildRecord, CheckoutResult]:
        """
        Record a new build and check the URLs out into the workspace.

        The ledger is attached to the build only when every URL was
        copied.

        Returns:
            The completed build record and the checkout result
        """
        build = self.store.new_build()
        build_logger = get_build_logger(build.number)
        self.logger.info(f"Starting build #{build.number} with {len(self.urls)} URLs")

        try:
            result = self.fetcher.checkout(
                self.config,
                self.workspace,
                build_logger,
                changelog_file
            )
            if result.success:
                build.attach(result.ledger)
        except Exception:
            self.store.complete(build, FAILURE)
            self.logger.error(f"Build #{build.number} aborted")
            raise

        self.store.complete(build, SUCCESS if result.success else FAILURE)
        self.logger.info(f"Build #{build.number} finished: {build.result}")
        return build, result

    def poll(self, build_logger: logging.Logger = None) -> PollResult:
        """
        Compare the URLs with the ledger of the last completed build.

        Raises:
            TimestampQueryError: if a URL cannot be queried
        """
        previous = self.store.last_completed_build()
        result = self.poller.poll(self.config, previous, build_logger)
        self.logger.info(f"Poll result: {result.status}, significant={result.significant}")
        return result

    def compare_remote_revision(self, build_logger: logging.Logger = None) -> bool:
        """Whether a new build should be triggered."""
        return self.poll(build_logger).significant

    def report(self, build: Optional[BuildRecord] = None) -> Dict[str, str]:
        """
        Modification dates recorded by a build, for display.

        Args:
            build: Build to report on; defaults to the last completed one

        Returns:
            URL to formatted date, empty when no ledger is available
        """
        build = build or self.store.last_completed_build()
        if build is None or build.get_attached_ledger() is None:
            return {}
        return build.get_attached_ledger().get_url_dates()

    def check_url(
        self,
        value: Optional[str],
        is_authorized: Callable[[], bool] = lambda: True
    ) -> ValidationResult:
        """
        Interactive check of a single URL entered in a job configuration.

        Unauthorized callers always get OK, without the URL being opened.

        Args:
            value: URL as typed
            is_authorized: Predicate telling whether the caller may probe URLs

        Returns:
            ValidationResult
        """
        if not is_authorized():
            return ValidationResult.success()

        url = (value or '').strip() or None
        try:
            conn = self.factory.open(url)
            conn.close()
        except OSError as e:
            self.logger.debug(f"URL check failed for {url}: {e}")
            return ValidationResult.failure(f"Cannot open {url}")

        if not URLEntry(url).filename:
            return ValidationResult.failure(f"URL does not contain filename: {url}")
        return ValidationResult.success()
