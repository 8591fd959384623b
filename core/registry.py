"""
Connection Factory - Maps URL schemes to connection classes.
"""

import base64
import logging
from typing import Dict, Any, Optional, Type
from urllib.parse import urlsplit

from handlers.base_handler import BaseConnection
from handlers.http_handler import HTTPConnection
from handlers.file_handler import FileConnection
from handlers.ftp_handler import FTPConnection
from utils.errors import URLConnectionError


def strip_crlf(encoded: str) -> str:
    """Drop a single trailing CRLF appended by line-wrapping encoders."""
    if encoded.endswith('\r\n'):
        return encoded[:-2]
    return encoded


def basic_authorization(userinfo: str) -> str:
    """Value of the Authorization header for "user:pass" user-info."""
    encoded = base64.b64encode(userinfo.encode('utf-8')).decode('ascii')
    return 'Basic ' + strip_crlf(encoded)


def get_userinfo(url: str) -> Optional[str]:
    """Return the raw "user:pass" part of a URL, or None."""
    netloc = urlsplit(url).netloc
    if '@' not in netloc:
        return None
    return netloc.rpartition('@')[0]


class ConnectionFactory:
    """Opens connections for URLs, one attempt per call."""

    # Map URL schemes to connection classes
    SCHEME_MAP: Dict[str, Type[BaseConnection]] = {
        'http': HTTPConnection,
        'https': HTTPConnection,
        'file': FileConnection,
        'ftp': FTPConnection,
    }

    def __init__(self, settings: Dict[str, Any] = None):
        """
        Initialize the factory.

        Args:
            settings: Application settings (http.timeout, http.user_agent, ...)
        """
        self.settings = settings or {}
        self.logger = logging.getLogger('ConnectionFactory')

    def create(self, url: str) -> BaseConnection:
        """
        Build an unopened connection with caching disabled and credentials
        from the URL's user-info injected as Basic authorization.

        Raises:
            URLConnectionError: if the URL is malformed or its scheme unknown
        """
        if not url:
            raise URLConnectionError("No URL given")

        try:
            parts = urlsplit(url)
            parts.port  # raises ValueError on a bad port
        except ValueError as e:
            raise URLConnectionError(f"Malformed URL {url}: {e}") from e

        connection_class = self.SCHEME_MAP.get(parts.scheme.lower())
        if connection_class is None:
            raise URLConnectionError(f"Unsupported protocol '{parts.scheme}': {url}")

        conn = connection_class(url, self.settings)
        conn.disable_caching()

        userinfo = get_userinfo(url)
        if userinfo is not None and conn.supports_headers:
            conn.set_request_header('Authorization', basic_authorization(userinfo))

        return conn

    def open(self, url: str) -> BaseConnection:
        """
        Create and connect a connection for a URL.

        Args:
            url: URL string as configured

        Returns:
            Connected BaseConnection; the caller must close it

        Raises:
            URLConnectionError: on malformed URL or transport failure
        """
        conn = self.create(url)
        self.logger.debug(f"Opening {conn.get_scheme_name()} connection")
        try:
            conn.connect()
        except Exception:
            conn.close()
            raise
        return conn
