"""
Abstract base connection for all URL schemes.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, Iterator
import logging

# Size of the intermediate buffer used when streaming a body
BUFFER_SIZE = 8192


class BaseConnection(ABC):
    """
    A single connection to a remote resource.

    Subclasses implement one URL scheme. A connection is opened with
    connect(), after which last_modified is available without reading
    the body, and iter_body() streams the content.
    """

    # Whether request headers (e.g. Authorization) reach the server
    supports_headers = False

    def __init__(self, url: str, settings: Dict[str, Any] = None):
        """
        Initialize connection for a URL.

        Args:
            url: URL as configured, user-info included
            settings: Application settings dictionary
        """
        self.url = url
        self.settings = settings or {}
        self.headers: Dict[str, str] = {}
        self.logger = logging.getLogger(self.__class__.__name__)

    def set_request_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def get_request_header(self, name: str) -> Optional[str]:
        return self.headers.get(name)

    def disable_caching(self) -> None:
        """Make sure metadata reflects a live query. No-op by default."""

    @abstractmethod
    def get_scheme_name(self) -> str:
        """
        Get the name of the URL scheme this connection handles.

        Returns:
            Scheme identifier, e.g. "http"
        """
        pass

    @abstractmethod
    def connect(self) -> None:
        """
        Open the transport.

        Raises:
            URLConnectionError: if the resource cannot be reached
        """
        pass

    @property
    @abstractmethod
    def last_modified(self) -> int:
        """Last modification time in epoch millis, 0 when not reported."""
        pass

    @abstractmethod
    def iter_body(self, chunk_size: int = BUFFER_SIZE) -> Iterator[bytes]:
        """
        Stream the resource content.

        Raises:
            TransferError: if reading fails part way
        """
        pass

    def close(self) -> None:
        """Release the transport."""

    def __enter__(self) -> 'BaseConnection':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
