"""Crash-safe replacement of barrel files."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def temp_path_for(path: Path) -> Path:
    """Hidden sibling that receives the new content before the rename."""
    return path.with_name(f".{path.name}.tmp")


def write_text_atomic(path: Path, text: str) -> None:
    """
    Replace *path* with *text* (UTF-8, ``\\n`` line endings).

    Readers only ever see the previous barrel or the complete new one.  On
    any failure (including an interrupt) the temporary sibling is removed
    and the error re-raised.
    """
    tmp = temp_path_for(path)
    try:
        with open(tmp, "w", encoding="utf-8", newline="") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    _sync_directory(path.parent)


def _sync_directory(directory: Path) -> None:
    # Persists the rename itself; not supported on Windows
    if os.name == "nt":
        return
    try:
        fd = os.open(directory, os.O_RDONLY)
    except OSError as exc:
        logger.debug(f"Cannot open {directory} for fsync: {exc}")
        return
    try:
        os.fsync(fd)
    except OSError as exc:
        logger.debug(f"fsync of {directory} failed: {exc}")
    finally:
        os.close(fd)
