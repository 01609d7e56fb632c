"""
ts-barrels Installer

Makes sure a project can run ts-barrels before a front end launches it.
The project's package manager is detected from its lockfile and used to
add ts-barrels as a development dependency when the executable is missing.
"""

import logging
import os
import shutil
import sys
from enum import Enum
from pathlib import Path
from typing import List, Optional

from tsbarrels.exceptions import InstallError
from tsbarrels.host.launcher import Host

logger = logging.getLogger(__name__)

PACKAGE_NAME = "ts-barrels"
EXECUTABLE_NAME = "ts-barrels"


class PackageManager(str, Enum):
    UV = "uv"
    POETRY = "poetry"
    PIPENV = "pipenv"
    PIP = "pip"


# First lockfile found wins
_LOCKFILES = (
    ("uv.lock", PackageManager.UV),
    ("poetry.lock", PackageManager.POETRY),
    ("Pipfile.lock", PackageManager.PIPENV),
)


def detect_package_manager(project_dir: Path) -> PackageManager:
    """Pick the package manager from the lockfile in *project_dir* (pip if none)."""
    for lockfile, manager in _LOCKFILES:
        if (Path(project_dir) / lockfile).exists():
            return manager
    return PackageManager.PIP


def install_command(
    manager: PackageManager, package: str = PACKAGE_NAME, python: Optional[Path] = None,
) -> List[str]:
    """
    argv that adds *package* as a development dependency.

    pip installs into *python* (the project's virtualenv interpreter) when
    given, else into the current interpreter.
    """
    if manager is PackageManager.UV:
        return ["uv", "add", "--dev", package]
    if manager is PackageManager.POETRY:
        return ["poetry", "add", "--group", "dev", package]
    if manager is PackageManager.PIPENV:
        return ["pipenv", "install", "--dev", package]
    return [str(python or sys.executable), "-m", "pip", "install", package]


def _bin_executable(prefix: Path, name: str) -> Path:
    """*name* inside the scripts directory of an environment rooted at *prefix*."""
    if os.name == "nt":
        return prefix / "Scripts" / f"{name}.exe"
    return prefix / "bin" / name


def _venv_executable(project_dir: Path, name: str) -> Path:
    return _bin_executable(Path(project_dir) / ".venv", name)


def _interpreter_executable(name: str) -> Path:
    """*name* next to the current interpreter, where pip puts console scripts."""
    scripts = Path(sys.executable).parent
    return scripts / (f"{name}.exe" if os.name == "nt" else name)


def find_executable(project_dir: Path, name: str = EXECUTABLE_NAME) -> Optional[Path]:
    """Locate *name* in the project's ``.venv`` first, then on ``PATH``."""
    local = _venv_executable(project_dir, name)
    if local.exists():
        return local
    found = shutil.which(name)
    return Path(found) if found else None


class Installer:
    """Install ts-barrels into a project through the host's process runner."""

    def __init__(self, host: Host):
        self.host = host

    def ensure_installed(self, project_dir: Path, package: str = PACKAGE_NAME) -> Path:
        """
        Return the ts-barrels executable for *project_dir*, installing the
        package first when it cannot be found.

        Raises:
            InstallError: The install command failed, or the executable is
                still missing afterwards.
        """
        project_dir = Path(project_dir)
        existing = find_executable(project_dir)
        if existing is not None:
            return existing

        manager = detect_package_manager(project_dir)
        venv_python = _bin_executable(project_dir / ".venv", "python")
        python = venv_python if venv_python.exists() else None
        argv = install_command(manager, package, python)
        self.host.report_progress(f"Installing {package} with {manager.value}...")
        logger.info(f"Installing {package}: {' '.join(argv)}")

        try:
            result = self.host.spawn_process(argv[0], argv[1:], project_dir)
        except OSError as exc:
            raise InstallError(f"Failed to run {manager.value}: {exc}") from exc
        if not result.ok:
            raise InstallError(
                f"Failed to install {package}.\nExit code: {result.exit_code}"
            )

        installed = find_executable(project_dir)
        if installed is None and manager is PackageManager.PIP and python is None:
            fallback = _interpreter_executable(EXECUTABLE_NAME)
            if fallback.exists():
                installed = fallback
        if installed is None:
            raise InstallError(
                f"{package} was installed but '{EXECUTABLE_NAME}' was not found "
                f"in {project_dir / '.venv'} or on PATH"
            )
        return installed
