"""
Pytest configuration and fixtures.
"""

import pytest
import os
import sys
from types import SimpleNamespace
from unittest.mock import Mock, patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.state_manager import BuildStore
from utils.workspace import Workspace


def make_response(body=b'', last_modified=None, status_error=None):
    """Mock of a streamed requests.Response."""
    response = Mock()
    response.headers = {'Last-Modified': last_modified} if last_modified else {}
    response.raise_for_status = Mock(side_effect=status_error)
    response.iter_content = Mock(side_effect=lambda chunk_size=1: iter([body]))
    return response


@pytest.fixture
def http_server():
    """
    Patch requests.get with a table of URL -> response (or exception).

    Unknown URLs raise requests' ConnectionError.
    """
    import requests

    routes = {}

    def fake_get(url, **kwargs):
        outcome = routes.get(url)
        if outcome is None:
            raise requests.exceptions.ConnectionError(f"Failed to connect to {url}")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    with patch('handlers.http_handler.requests.get', side_effect=fake_get) as mock_get:
        yield SimpleNamespace(routes=routes, get=mock_get)


@pytest.fixture
def workspace(tmp_path):
    """Empty workspace directory."""
    root = tmp_path / 'workspace'
    root.mkdir()
    return Workspace(str(root))


@pytest.fixture
def store(tmp_path):
    """Build store backed by a temporary state file."""
    return BuildStore(str(tmp_path / 'state' / 'builds.json'))


@pytest.fixture
def remote_files(tmp_path):
    """Directory of "remote" files served through file:// URLs."""
    root = tmp_path / 'remote'
    root.mkdir()

    def add(name, content=b'', mtime=None):
        path = root / name
        path.write_bytes(content)
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path.as_uri()

    return add


@pytest.fixture
def mock_http_response():
    """Mock HTTP response headers."""
    return {
        'Last-Modified': 'Wed, 15 Jan 2025 10:30:00 GMT',
        'Content-Length': '12345',
    }
