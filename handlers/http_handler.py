"""
HTTP(S) connection.
Reads the Last-Modified header of a streamed GET so the body is only
downloaded when it is actually consumed.
"""

import requests
from requests.auth import AuthBase
from typing import Optional, Dict, Any, Iterator
from urllib.parse import urlsplit, urlunsplit

from .base_handler import BaseConnection, BUFFER_SIZE
from utils.errors import URLConnectionError, TransferError
from utils.timestamps import parse_http_date


def strip_userinfo(url: str) -> str:
    """Remove "user:pass@" from a URL, keeping host and port."""
    parts = urlsplit(url)
    if '@' not in parts.netloc:
        return url
    netloc = parts.netloc.rpartition('@')[2]
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


class PresetAuthorization(AuthBase):
    """
    Authorization decided by the URL alone.

    Passing an explicit auth object keeps requests from substituting
    credentials from ~/.netrc; without user-info no header is sent.
    """

    def __init__(self, value: Optional[str]):
        self.value = value

    def __call__(self, request):
        if self.value:
            request.headers['Authorization'] = self.value
        else:
            request.headers.pop('Authorization', None)
        return request


class HTTPConnection(BaseConnection):
    """Connection for http:// and https:// URLs."""

    supports_headers = True

    def __init__(self, url: str, settings: Dict[str, Any] = None):
        super().__init__(url, settings)
        self._response: Optional[requests.Response] = None

        http_settings = self.settings.get('http', {})
        self.timeout = http_settings.get('timeout', 30)
        self.set_request_header(
            'User-Agent',
            http_settings.get('user_agent', 'URLCopy/1.0')
        )

    def get_scheme_name(self) -> str:
        return "http"

    def disable_caching(self) -> None:
        self.set_request_header('Cache-Control', 'no-cache')
        self.set_request_header('Pragma', 'no-cache')

    def connect(self) -> None:
        """
        Send the GET request and read the response headers.

        Credentials embedded in the URL are not passed on to requests;
        they only travel in the Authorization header set by the factory.
        """
        target = strip_userinfo(self.url)
        self.logger.debug(f"Sending GET request to {target}")
        try:
            response = requests.get(
                target,
                headers=dict(self.headers),
                auth=PresetAuthorization(self.get_request_header('Authorization')),
                timeout=self.timeout,
                stream=True,
                allow_redirects=True
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise URLConnectionError(f"{type(e).__name__}: {e}") from e
        self._response = response

    @property
    def response(self) -> requests.Response:
        if self._response is None:
            raise URLConnectionError(f"Not connected: {self.url}")
        return self._response

    @property
    def last_modified(self) -> int:
        return parse_http_date(self.response.headers.get('Last-Modified'))

    def iter_body(self, chunk_size: int = BUFFER_SIZE) -> Iterator[bytes]:
        try:
            for chunk in self.response.iter_content(chunk_size=chunk_size):
                if chunk:
                    yield chunk
        except requests.exceptions.RequestException as e:
            raise TransferError(f"{type(e).__name__}: {e}") from e

    def close(self) -> None:
        if self._response is not None:
            self._response.close()
            self._response = None
