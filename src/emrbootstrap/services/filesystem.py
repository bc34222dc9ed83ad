"""Filesystem helpers for EMR Bootstrap."""

import atexit
import logging
import os
import sys

from rich.console import Console


class FileSystemService:
    """Encapsulates file and directory side effects."""

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def set_permissions(self, path: str, mode: int):
        if sys.platform == "win32":
            return

        try:
            os.chmod(path, mode)
        except Exception as exc:
            self.logger.warning("Could not set permissions on %s: %s", path, exc)

    def ensure_dir(self, path: str, mode: int):
        if os.path.isdir(path):
            return

        os.makedirs(path, exist_ok=True)
        self.set_permissions(path, mode)
        self.logger.debug("Created directory: %s", path)

    def remove_file(self, path: str) -> bool:
        """Removes ``path`` if present; returns False when it could not be removed."""
        if not os.path.exists(path):
            return True

        try:
            os.remove(path)
            self.logger.debug("Removed file: %s", path)
            return True
        except OSError as exc:
            message = f"Warning: Could not remove {path}: {exc}"
            self.console.print(f"[yellow]{message}[/yellow]")
            self.logger.warning(message)
            return False

    def discard_file(self, path: str):
        """Removes ``path`` now, or at interpreter exit if it is still busy."""
        if not self.remove_file(path):
            self.logger.debug("Scheduling %s for removal at exit", path)
            atexit.register(self._remove_at_exit, path)

    def _remove_at_exit(self, path: str):
        try:
            os.remove(path)
        except OSError as exc:
            self.logger.debug("Could not remove %s at exit: %s", path, exc)
