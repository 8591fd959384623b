"""
Workspace directory the resources are copied into.
"""

import os
import shutil
import logging
from typing import BinaryIO


class Workspace:
    """A job's working directory."""

    def __init__(self, root: str):
        self.root = os.path.abspath(root)
        self.logger = logging.getLogger('Workspace')

    def child(self, relative_path: str) -> str:
        """Absolute path of a file inside the workspace."""
        path = os.path.abspath(os.path.join(self.root, relative_path))
        if os.path.commonpath([self.root, path]) != self.root:
            raise ValueError(f"{relative_path} escapes the workspace")
        return path

    def exists(self, relative_path: str) -> bool:
        return os.path.exists(self.child(relative_path))

    def delete_contents(self) -> None:
        """Delete everything inside the workspace, keeping the directory itself."""
        if not os.path.isdir(self.root):
            return
        self.logger.debug(f"Clearing workspace {self.root}")
        for name in os.listdir(self.root):
            path = os.path.join(self.root, name)
            if os.path.isdir(path) and not os.path.islink(path):
                shutil.rmtree(path)
            else:
                os.unlink(path)

    def open_for_write(self, relative_path: str) -> BinaryIO:
        """Open a workspace file for binary writing, replacing any existing file."""
        path = self.child(relative_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        return open(path, 'wb')
