"""
ts-barrels Exception Hierarchy

Structured exceptions for clear error handling across CLI, API, and MCP
consumers.  Each exception type maps to a specific failure mode so that
callers can handle errors precisely without parsing message strings.

Only :class:`NotFoundError` and a :class:`WriteError` on the root barrel
abort a run; every other failure is recorded per directory or per module
and reported in the final summary.

Usage::

    from tsbarrels.exceptions import BarrelError, NotFoundError

    try:
        result = client.generate("./src", recursive=True)
    except NotFoundError:
        print("Target directory does not exist.")
    except BarrelError as exc:
        print(f"ts-barrels error: {exc}")
"""

from __future__ import annotations

from pathlib import Path


class BarrelError(Exception):
    """Base exception for all ts-barrels errors."""


class ConfigError(BarrelError, ValueError):
    """Configuration is invalid (e.g. a barrel name containing a path separator).

    Inherits from ``ValueError`` so callers validating user input can catch
    the builtin type.
    """


class NotFoundError(BarrelError, FileNotFoundError):
    """The target directory does not exist or is not a directory.

    Fatal: aborts the whole run.
    """


class ScanPermissionError(BarrelError, PermissionError):
    """A directory or file could not be read during scanning.

    Recorded against the directory; the rest of the run continues.
    """


class ParseError(BarrelError):
    """A module is syntactically invalid or cannot be decoded.

    Recorded against the module only.
    """

    def __init__(self, path: Path | str, message: str):
        self.path = Path(path)
        self.message = message
        super().__init__(f"{path}: {message}")


class WriteError(BarrelError, OSError):
    """Writing or renaming a barrel file failed.

    Per directory it is recorded like any other failure.  On the root
    directory it is fatal; :attr:`result` then carries the partial
    :class:`~tsbarrels.core.generator.GenerationResult`.
    """

    result = None


class InstallError(BarrelError):
    """The package manager failed to install ts-barrels into a project."""


class CollisionWarning(UserWarning):
    """Two sibling modules export the same name.

    Advisory only: the first module in scan order keeps the name and the
    later ones are dropped from the barrel.  Instances are recorded on the
    directory result rather than raised.
    """

    def __init__(self, name: str, kept: str, dropped: str):
        self.name = name
        self.kept = kept
        self.dropped = dropped
        super().__init__(
            f"export '{name}' from '{dropped}' collides with '{kept}' (kept first)"
        )

    def to_dict(self) -> dict:
        return {"name": self.name, "kept": self.kept, "dropped": self.dropped}
