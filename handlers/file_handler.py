"""
Local file connection for file:// URLs.
"""

import os
from typing import BinaryIO, Dict, Any, Iterator, Optional
from urllib.parse import urlsplit
from urllib.request import url2pathname

from .base_handler import BaseConnection, BUFFER_SIZE
from utils.errors import URLConnectionError, TransferError


class FileConnection(BaseConnection):
    """Connection backed by the local filesystem; mtime is the last-modified value."""

    def __init__(self, url: str, settings: Dict[str, Any] = None):
        super().__init__(url, settings)
        parts = urlsplit(url)
        self.path = url2pathname(parts.path)
        self._mtime: Optional[int] = None
        self._stream: Optional[BinaryIO] = None

    def get_scheme_name(self) -> str:
        return "file"

    def connect(self) -> None:
        try:
            stat = os.stat(self.path)
        except OSError as e:
            raise URLConnectionError(f"{self.path}: {e.strerror}") from e
        if not os.path.isfile(self.path):
            raise URLConnectionError(f"{self.path} is not a regular file")
        self._mtime = int(stat.st_mtime * 1000)

    @property
    def last_modified(self) -> int:
        if self._mtime is None:
            raise URLConnectionError(f"Not connected: {self.url}")
        return self._mtime

    def iter_body(self, chunk_size: int = BUFFER_SIZE) -> Iterator[bytes]:
        try:
            self._stream = open(self.path, 'rb')
            while True:
                chunk = self._stream.read(chunk_size)
                if not chunk:
                    break
                yield chunk
        except OSError as e:
            raise TransferError(f"{self.path}: {e}") from e
        finally:
            self.close()

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
