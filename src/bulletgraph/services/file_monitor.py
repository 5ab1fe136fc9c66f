"""Detection of outline files edited by someone else while we work on them."""

from pathlib import Path
from typing import Dict


class FileMonitor:
    """
    Remember file mtimes so a write-back can tell whether a file moved on.

    An outline is read, edited in memory and written back; the monitor
    catches an editor saving the same file in between.

    Example:
        >>> monitor = FileMonitor()
        >>> monitor.record(Path("notes.outline"))
        >>> monitor.is_modified(Path("notes.outline"))
        False
    """

    def __init__(self) -> None:
        self._mtimes: Dict[Path, float] = {}

    def record(self, path: Path) -> None:
        """
        Remember the current mtime of a file.

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        self._mtimes[path] = path.stat().st_mtime

    def is_modified(self, path: Path) -> bool:
        """
        Compare a file's mtime with the remembered one.

        Files never recorded count as modified.

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        mtime = path.stat().st_mtime
        return self._mtimes.get(path) != mtime

    def refresh(self, path: Path) -> None:
        """Remember the mtime left by our own write."""
        self.record(path)
