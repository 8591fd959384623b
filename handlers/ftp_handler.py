"""
FTP connection.
Uses the MDTM command for the modification time; servers without MDTM
report 0.
"""

import ftplib
from typing import Dict, Any, Iterator, Optional
from urllib.parse import urlsplit, unquote

from .base_handler import BaseConnection, BUFFER_SIZE
from utils.errors import URLConnectionError, TransferError
from utils.timestamps import UNSUPPORTED, parse_mdtm

# Replies meaning the server does not implement MDTM; anything else is an error
MDTM_UNSUPPORTED = ('500', '502', '504')


class FTPConnection(BaseConnection):
    """Connection for ftp:// URLs; user-info is used as the login."""

    def __init__(self, url: str, settings: Dict[str, Any] = None):
        super().__init__(url, settings)
        parts = urlsplit(url)
        self.host = parts.hostname
        self.port = parts.port or ftplib.FTP_PORT
        self.user = unquote(parts.username) if parts.username else 'anonymous'
        self.password = unquote(parts.password) if parts.password else ''
        self.path = unquote(parts.path).lstrip('/')
        self.timeout = self.settings.get('ftp', {}).get('timeout', 30)
        self._ftp: Optional[ftplib.FTP] = None
        self._mtime = UNSUPPORTED

    def get_scheme_name(self) -> str:
        return "ftp"

    def connect(self) -> None:
        if not self.host or not self.path:
            raise URLConnectionError(f"Invalid FTP URL: {self.url}")

        ftp = ftplib.FTP(timeout=self.timeout)
        try:
            ftp.connect(self.host, self.port)
            ftp.login(self.user, self.password)
            ftp.voidcmd('TYPE I')
        except ftplib.all_errors as e:
            ftp.close()
            raise URLConnectionError(f"{type(e).__name__}: {e}") from e
        self._ftp = ftp

        try:
            self._mtime = parse_mdtm(ftp.sendcmd(f'MDTM {self.path}'))
        except ftplib.error_perm as e:
            if str(e)[:3] not in MDTM_UNSUPPORTED:
                self.close()
                raise URLConnectionError(f"{type(e).__name__}: {e}") from e
            self.logger.debug(f"MDTM not available for {self.path}: {e}")
            self._mtime = UNSUPPORTED
        except ftplib.all_errors as e:
            self.close()
            raise URLConnectionError(f"{type(e).__name__}: {e}") from e

    @property
    def last_modified(self) -> int:
        return self._mtime

    def iter_body(self, chunk_size: int = BUFFER_SIZE) -> Iterator[bytes]:
        if self._ftp is None:
            raise TransferError(f"Not connected: {self.url}")
        try:
            with self._ftp.transfercmd(f'RETR {self.path}') as sock:
                while True:
                    chunk = sock.recv(chunk_size)
                    if not chunk:
                        break
                    yield chunk
            self._ftp.voidresp()
        except ftplib.all_errors as e:
            raise TransferError(f"{type(e).__name__}: {e}") from e

    def close(self) -> None:
        if self._ftp is not None:
            try:
                self._ftp.quit()
            except ftplib.all_errors:
                self._ftp.close()
            self._ftp = None
