"""
Conversions between last-modified metadata and epoch milliseconds.
"""

import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

from dateutil import parser as dateutil_parser

logger = logging.getLogger('Timestamps')

# Value stored when a resource exposes no modification time
UNSUPPORTED = 0


def to_millis(value: Optional[datetime]) -> int:
    """Convert a datetime to epoch milliseconds, 0 when missing."""
    if value is None:
        return UNSUPPORTED
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def parse_http_date(header: Optional[str]) -> int:
    """
    Parse a Last-Modified header into epoch milliseconds.

    RFC 7231 dates are tried first, then a lenient dateutil parse for
    servers that send something non-standard.

    Args:
        header: Raw header value

    Returns:
        Epoch millis, or 0 if the header is absent or unparseable
    """
    if not header:
        return UNSUPPORTED

    try:
        return to_millis(parsedate_to_datetime(header))
    except (ValueError, TypeError):
        pass

    try:
        return to_millis(dateutil_parser.parse(header))
    except (ValueError, OverflowError):
        logger.warning(f"Failed to parse Last-Modified: {header}")
        return UNSUPPORTED


def parse_mdtm(response: str) -> int:
    """Parse an FTP MDTM reply ("213 YYYYMMDDHHMMSS[.sss]") as UTC millis."""
    parts = response.split()
    if len(parts) < 2 or not parts[0].startswith('213'):
        return UNSUPPORTED
    stamp = parts[1]
    fraction = 0
    try:
        if '.' in stamp:
            stamp, frac = stamp.split('.', 1)
            fraction = int((frac + '000')[:3])
        parsed = datetime.strptime(stamp, '%Y%m%d%H%M%S')
    except ValueError:
        logger.warning(f"Failed to parse MDTM reply: {response}")
        return UNSUPPORTED
    return to_millis(parsed) + fraction


def to_datetime(millis: int) -> datetime:
    """Epoch millis to a local-time datetime."""
    return datetime.fromtimestamp(millis / 1000)


def format_millis(millis: int) -> str:
    """Locale formatted date and time."""
    return to_datetime(millis).strftime('%x %X')


def describe_millis(millis: int) -> str:
    """Long form used in change log lines, e.g. 'Wed Jan 15 10:30:00 2025'."""
    return to_datetime(millis).ctime()
