"""
Handlers package - Contains the per-scheme connection implementations.
"""

from handlers.base_handler import BaseConnection, BUFFER_SIZE
from handlers.http_handler import HTTPConnection
from handlers.file_handler import FileConnection
from handlers.ftp_handler import FTPConnection

__all__ = [
    'BaseConnection',
    'BUFFER_SIZE',
    'HTTPConnection',
    'FileConnection',
    'FTPConnection'
]
