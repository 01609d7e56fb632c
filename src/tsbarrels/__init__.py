"""
ts-barrels — TypeScript barrel file generator.

The ``tsbarrels`` package scans a directory of TypeScript modules, extracts
their exports with tree-sitter and (re)writes an ``index.ts`` that
re-exports them.  Recursive mode builds barrels from the leaves up so each
parent re-exports its children's barrels.

Quick start (programmatic API)::

    from tsbarrels import Barrels

    client = Barrels()                                   # reads env vars
    result = client.generate("./src/components", recursive=True)
    print(result.summary())

Quick start (CLI)::

    ts-barrels ./src/components --all
    ts-barrels ./src/hooks --force --name barrel.ts

Configuration override::

    from tsbarrels import Barrels, BarrelConfig

    client = Barrels(config=BarrelConfig(target_extensions=frozenset({".ts"})))
"""

__version__ = "1.0.0"

# Primary public API: the Barrels facade
from tsbarrels.client import Barrels

# Configuration
from tsbarrels.core.config import BarrelConfig

# Core data types that callers interact with
from tsbarrels.core.extractor import ExportDescriptor
from tsbarrels.core.generator import DirectoryResult, GenerationResult
from tsbarrels.core.writer import Outcome

# Exception hierarchy
from tsbarrels.exceptions import (
    BarrelError,
    CollisionWarning,
    ConfigError,
    InstallError,
    NotFoundError,
    ParseError,
    ScanPermissionError,
    WriteError,
)


def health(config: BarrelConfig | None = None) -> dict:
    """
    Return a small status dict for agents or health checks.

    When *config* is None, uses :meth:`BarrelConfig.from_env()` for the snapshot.
    """
    cfg = config or BarrelConfig.from_env()
    return {
        "version": __version__,
        "barrel_name": cfg.barrel_name,
        "extensions": sorted(cfg.target_extensions),
    }


__all__ = [
    "__version__",
    # Facade
    "Barrels",
    # Config
    "BarrelConfig",
    # Data types
    "ExportDescriptor",
    "DirectoryResult",
    "GenerationResult",
    "Outcome",
    # Exceptions
    "BarrelError",
    "ConfigError",
    "NotFoundError",
    "ScanPermissionError",
    "ParseError",
    "WriteError",
    "InstallError",
    "CollisionWarning",
    # Status
    "health",
]
