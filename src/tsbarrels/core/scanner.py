"""
ts-barrels Module Scanner

Walks a target directory and builds an immutable snapshot of the modules
and sub-directories a barrel can re-export.  The snapshot is taken once at
the start of a run so recursive generation works over a fixed, finite tree
and never sees barrels written during the same run.
"""

import fnmatch
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from tsbarrels.core.config import BarrelConfig
from tsbarrels.exceptions import NotFoundError, ScanPermissionError

logger = logging.getLogger(__name__)


# =============================================================================
# Data Models
# =============================================================================

@dataclass(frozen=True)
class DirectoryNode:
    """One directory of the scan snapshot.

    ``modules`` and ``children`` are in lexicographic order.  A node whose
    directory could not be listed carries the failure in ``error`` and has
    no modules or children.
    """
    path: Path
    modules: Tuple[Path, ...] = ()
    children: Tuple["DirectoryNode", ...] = ()
    has_barrel: bool = False
    depth: int = 0
    error: Optional[ScanPermissionError] = None

    @property
    def is_empty(self) -> bool:
        return not self.modules and not self.children

    def walk(self) -> Iterator["DirectoryNode"]:
        """Yield this node and all descendants, parents before children."""
        yield self
        for child in self.children:
            yield from child.walk()

    def walk_post_order(self) -> Iterator["DirectoryNode"]:
        """Yield all descendants before this node (leaf-to-root order)."""
        for child in self.children:
            yield from child.walk_post_order()
        yield self


# =============================================================================
# Scanning
# =============================================================================

def is_excluded_file(name: str, config: BarrelConfig) -> bool:
    """True when *name* matches one of the configured exclude patterns."""
    return any(fnmatch.fnmatch(name, pattern) for pattern in config.exclude_patterns)


def list_directory(
    path: Path, barrel_name: str, config: BarrelConfig,
) -> Tuple[List[Path], List[Path], bool]:
    """
    List the candidate modules and sub-directories of *path*.

    Returns ``(modules, subdirs, has_barrel)`` with both lists sorted by
    name.  The barrel file itself is never a candidate module.

    Raises :class:`ScanPermissionError` when *path* cannot be listed.
    """
    modules: List[Path] = []
    subdirs: List[Path] = []
    has_barrel = False
    max_bytes = config.max_file_size_kb * 1024

    try:
        entries = list(os.scandir(path))
    except PermissionError as exc:
        raise ScanPermissionError(f"Cannot read directory {path}: {exc.strerror}") from exc

    for entry in entries:
        name = entry.name
        if name.startswith(".") and not config.include_hidden:
            continue
        try:
            if entry.is_dir(follow_symlinks=False):
                if name not in config.exclude_dirs:
                    subdirs.append(Path(entry.path))
                continue
            if not entry.is_file():
                continue
        except OSError as exc:
            logger.warning(f"Skipping unreadable entry {entry.path}: {exc}")
            continue

        if name == barrel_name:
            has_barrel = True
            continue

        _, ext = os.path.splitext(name)
        if ext not in config.target_extensions:
            continue
        if is_excluded_file(name, config):
            logger.debug(f"Excluded by pattern: {entry.path}")
            continue

        try:
            size = entry.stat().st_size
        except OSError as exc:
            logger.warning(f"Skipping unreadable file {entry.path}: {exc}")
            continue
        if size > max_bytes:
            logger.warning(
                f"Skipping large file: {entry.path} ({size / 1024:.1f}KB)"
            )
            continue
        modules.append(Path(entry.path))

    modules.sort(key=lambda p: p.name)
    subdirs.sort(key=lambda p: p.name)
    return modules, subdirs, has_barrel


def scan_directory(
    path: Path, barrel_name: str, config: BarrelConfig | None = None,
) -> DirectoryNode:
    """
    Scan a single directory without descending into sub-directories.

    The returned node lists its sub-directories as childless nodes so the
    caller can see them, but they are never processed in single-directory
    mode.
    """
    cfg = config or BarrelConfig()
    path = _check_root(path)
    modules, subdirs, has_barrel = list_directory(path, barrel_name, cfg)
    return DirectoryNode(
        path=path,
        modules=tuple(modules),
        children=tuple(DirectoryNode(path=d, depth=1) for d in subdirs),
        has_barrel=has_barrel,
    )


def build_tree(
    root: Path, barrel_name: str, config: BarrelConfig | None = None,
) -> DirectoryNode:
    """
    Recursively snapshot *root* for leaf-to-root generation.

    Unreadable sub-directories become nodes with ``error`` set; only a
    missing or unreadable *root* raises.
    """
    cfg = config or BarrelConfig()
    root = _check_root(root)
    return _build_node(root, barrel_name, cfg, depth=0, is_root=True)


def _build_node(
    path: Path, barrel_name: str, config: BarrelConfig, depth: int, is_root: bool = False,
) -> DirectoryNode:
    try:
        modules, subdirs, has_barrel = list_directory(path, barrel_name, config)
    except ScanPermissionError as exc:
        if is_root:
            raise
        logger.error(str(exc))
        return DirectoryNode(path=path, depth=depth, error=exc)

    children = tuple(
        _build_node(d, barrel_name, config, depth + 1) for d in subdirs
    )
    return DirectoryNode(
        path=path,
        modules=tuple(modules),
        children=children,
        has_barrel=has_barrel,
        depth=depth,
    )


def _check_root(path: Path) -> Path:
    path = Path(path)
    if not path.exists():
        raise NotFoundError(f"Directory does not exist: {path}")
    if not path.is_dir():
        raise NotFoundError(f"Path is not a directory: {path}")
    return path.resolve()
