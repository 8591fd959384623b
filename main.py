#!/usr/bin/env python3
"""
Main entry point for URL Copy.

Polls the configured URLs against the last completed build and runs a
new checkout when the poll is significant.
"""

import sys
import logging

from core.scm import URLSCM
from utils.errors import TimestampQueryError
from utils.logger import setup_logging_from_settings


def main() -> int:
    scm = URLSCM.from_files()
    setup_logging_from_settings(scm.settings)
    logger = logging.getLogger('URLCopy')

    try:
        significant = scm.compare_remote_revision()
    except TimestampQueryError as e:
        logger.error(f"Polling failed: {e}")
        return 1

    if not significant:
        logger.info("No changes, nothing to build")
        return 0

    build, result = scm.run_build()
    for url, date in scm.report(build).items():
        logger.info(f"{url}: {date}")
    return 0 if result.success else 1


if __name__ == '__main__':
    sys.exit(main())
