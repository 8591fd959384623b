"""
Source configuration models.
"""

import posixpath
from dataclasses import dataclass, field
from typing import Iterable, Tuple
from urllib.parse import urlsplit


@dataclass(frozen=True)
class URLEntry:
    """A single remote resource to copy into the workspace."""

    url: str

    @property
    def filename(self) -> str:
        """Last segment of the URL path, '' when the path ends with '/'."""
        return posixpath.basename(urlsplit(self.url).path)


@dataclass(frozen=True)
class SourceConfiguration:
    """Ordered URLs of one job plus the clear-workspace flag."""

    urls: Tuple[URLEntry, ...] = field(default_factory=tuple)
    clear_workspace: bool = False

    @classmethod
    def from_urls(cls, urls: Iterable[str], clear_workspace: bool = False) -> 'SourceConfiguration':
        """Create a configuration from submitted URL strings."""
        return cls(
            urls=tuple(URLEntry(u) for u in urls),
            clear_workspace=bool(clear_workspace),
        )

    @classmethod
    def from_dict(cls, data: dict) -> 'SourceConfiguration':
        """Create a configuration from a parsed job file."""
        data = data or {}
        return cls.from_urls(
            data.get('urls') or [],
            clear_workspace=data.get('clear_workspace', False),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'urls': [entry.url for entry in self.urls],
            'clear_workspace': self.clear_workspace,
        }
