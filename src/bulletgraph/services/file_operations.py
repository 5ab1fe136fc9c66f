"""Safe reading and writing of outline and diagram files."""

import os
from pathlib import Path
from typing import Optional

import structlog

from bulletgraph.services.exceptions import FileModifiedError
from bulletgraph.services.file_monitor import FileMonitor

logger = structlog.get_logger()


def _ensure_unmodified(path: Path, file_monitor: Optional[FileMonitor], stage: str) -> None:
    # A file that does not exist yet cannot have been edited elsewhere
    if file_monitor is None or not path.exists():
        return
    if file_monitor.is_modified(path):
        raise FileModifiedError(str(path), f"Outline changed on disk ({stage} check)")


def atomic_write(path: Path, content: str, file_monitor: Optional[FileMonitor] = None) -> None:
    """
    Replace a file's content through a temporary sibling file.

    The new text is written next to the target, synced to disk and renamed
    over the target, so readers see either the old or the new file. With a
    monitor, the target's mtime is checked once before writing ("early")
    and once right before the rename ("late").

    Args:
        path: File to write
        content: New text (UTF-8)
        file_monitor: Monitor that recorded the file when it was read

    Raises:
        FileModifiedError: If the file changed since it was recorded
        OSError: On file I/O errors
    """
    _ensure_unmodified(path, file_monitor, "early")

    temp_path = path.with_name(f".{path.name}.tmp.{os.getpid()}")

    try:
        temp_path.write_text(content, encoding="utf-8")
        with temp_path.open("rb") as f:
            os.fsync(f.fileno())

        _ensure_unmodified(path, file_monitor, "late")
        temp_path.replace(path)
    except FileModifiedError:
        temp_path.unlink(missing_ok=True)
        raise
    except OSError as e:
        temp_path.unlink(missing_ok=True)
        logger.error("file_write_failed", path=str(path), error=str(e))
        raise

    if file_monitor:
        file_monitor.refresh(path)

    logger.debug("file_written", path=str(path), size=len(content))


def read_outline(path: Path, file_monitor: Optional[FileMonitor] = None) -> str:
    """
    Read an outline file and start tracking its modification time.

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    text = path.read_text(encoding="utf-8")
    if file_monitor:
        file_monitor.record(path)
    logger.debug("outline_read", path=str(path), size=len(text))
    return text
