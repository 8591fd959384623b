#!/usr/bin/env python3
"""
CLI script to run URL checkouts and polls manually.

Usage:
    python run_scm.py checkout                  # Copy all URLs into the workspace
    python run_scm.py poll                      # Exit 2 if a new build is needed
    python run_scm.py report                    # Show dates of the last build
    python run_scm.py check-url https://host/f  # Validate a single URL
"""

import argparse
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.scm import URLSCM
from models.ledger import TimestampLedger
from utils.errors import TimestampQueryError
from utils.logger import setup_logging, setup_logging_from_settings

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_SIGNIFICANT = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='URL Copy - fetch URLs into a workspace and poll them for changes'
    )
    parser.add_argument(
        '--job',
        type=str,
        help='Job file listing the URLs (default: config/job.yaml)'
    )
    parser.add_argument(
        '--settings',
        type=str,
        help='Settings file (default: config/settings.yaml)'
    )
    parser.add_argument(
        '--state',
        type=str,
        help='Build history JSON file'
    )
    parser.add_argument(
        '--workspace',
        type=str,
        help='Workspace directory'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    checkout = subparsers.add_parser('checkout', help='Copy the URLs into the workspace')
    checkout.add_argument(
        '--changelog',
        type=str,
        help='Write an empty change log to this file'
    )

    subparsers.add_parser('poll', help='Check whether any URL changed since the last build')
    subparsers.add_parser('report', help='Show the modification dates of the last build')

    check_url = subparsers.add_parser('check-url', help='Validate a single URL')
    check_url.add_argument('url', type=str)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    scm = URLSCM.from_files(
        job_path=args.job,
        settings_path=args.settings,
        state_file=args.state,
        workspace_dir=args.workspace
    )

    if args.verbose:
        setup_logging(level='DEBUG')
    else:
        setup_logging_from_settings(scm.settings)

    if args.command == 'checkout':
        build, result = scm.run_build(changelog_file=args.changelog)
        print(f"Build #{build.number}: {build.result}")
        for path in result.copied:
            print(f"  {path}")
        return EXIT_OK if result.success else EXIT_FAILURE

    if args.command == 'poll':
        try:
            result = scm.poll()
        except TimestampQueryError as e:
            print(f"Poll failed: {e}")
            return EXIT_FAILURE
        print(result)
        return EXIT_SIGNIFICANT if result.significant else EXIT_OK

    if args.command == 'report':
        dates = scm.report()
        if not dates:
            print("No modification dates recorded")
            return EXIT_OK
        print(f"\n{TimestampLedger.display_name}:")
        print("-" * 70)
        for url, date in dates.items():
            print(f"  {url}")
            print(f"    {date}")
        return EXIT_OK

    if args.command == 'check-url':
        result = scm.check_url(args.url)
        print(result)
        return EXIT_OK if result.ok else EXIT_FAILURE

    return EXIT_FAILURE


if __name__ == '__main__':
    sys.exit(main())
