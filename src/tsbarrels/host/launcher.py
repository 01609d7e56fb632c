"""
ts-barrels Launcher

The host side of an editor integration: turns the options a user picked
in a dialog into a ts-barrels command line, runs it as a child process and
converts the exit status into a single notification.

The front end (IDE plugin, web UI, another CLI) supplies a :class:`Host`.
:class:`SubprocessHost` is the stock implementation that spawns with
:mod:`subprocess` and reports through logging.  The generator core never
imports this module.
"""

import logging
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from tsbarrels.core.config import DEFAULT_BARREL_NAME

logger = logging.getLogger(__name__)

# Characters of process output shown in a failure notification
NOTIFICATION_OUTPUT_LIMIT = 500


# =============================================================================
# Data Models
# =============================================================================

@dataclass(frozen=True)
class LaunchOptions:
    """What the user chose: recursive, force, barrel filename."""
    all: bool = False
    force: bool = False
    filename: str = DEFAULT_BARREL_NAME

    def to_args(self) -> List[str]:
        """CLI flags for these options; the default filename is not passed."""
        args: List[str] = []
        if self.all:
            args.append("--all")
        if self.force:
            args.append("--force")
        name = self.filename.strip()
        if name and name != DEFAULT_BARREL_NAME:
            args.extend(["--name", name])
        return args


@dataclass(frozen=True)
class ExitResult:
    """Exit status and combined stdout/stderr of a child process."""
    exit_code: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class Notification:
    """A single user-facing message; ``level`` is ``info`` or ``error``."""
    level: str
    message: str


# =============================================================================
# Host capability interface
# =============================================================================

class Host:
    """Capabilities a front end provides to the launcher and installer."""

    def spawn_process(self, cmd: str, args: Sequence[str], cwd: Path) -> ExitResult:
        raise NotImplementedError

    def report_progress(self, text: str) -> None:
        raise NotImplementedError

    def report_result(self, notification: Notification) -> None:
        raise NotImplementedError


class SubprocessHost(Host):
    """Runs commands with :mod:`subprocess` and reports through logging."""

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout

    def spawn_process(self, cmd: str, args: Sequence[str], cwd: Path) -> ExitResult:
        logger.debug(f"Spawning {cmd} {' '.join(args)} (cwd={cwd})")
        completed = subprocess.run(
            [cmd, *args],
            cwd=str(cwd),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=self.timeout,
        )
        return ExitResult(exit_code=completed.returncode, output=completed.stdout or "")

    def report_progress(self, text: str) -> None:
        logger.info(text)

    def report_result(self, notification: Notification) -> None:
        if notification.level == "error":
            logger.error(notification.message)
        else:
            logger.info(notification.message)


# =============================================================================
# Launcher
# =============================================================================

def resolve_target_folder(selected: Optional[Path], base_path: Path) -> Path:
    """
    Folder to generate in: the selection when it is a directory, the
    selection's parent when it is a file, else the project base path.
    """
    if selected is None:
        return base_path
    selected = Path(selected)
    if selected.is_dir():
        return selected
    return selected.parent


def default_command() -> List[str]:
    """Run the generator with the current interpreter."""
    return [sys.executable, "-m", "tsbarrels"]


def success_message(target: Path) -> str:
    return f"Barrel files generated successfully in:\n{target}"


def failure_message(result: ExitResult) -> str:
    return (
        f"Failed to generate barrels (exit code {result.exit_code}):\n"
        f"{result.output[:NOTIFICATION_OUTPUT_LIMIT]}"
    )


class BarrelLauncher:
    """
    Spawn ts-barrels for a folder and report the outcome.

    Args:
        host: Front-end capabilities.
        command: argv prefix that runs the generator, already resolved by
            the caller (e.g. ``["node_modules/.bin/ts-barrels"]``).
            Defaults to ``python -m tsbarrels`` on the current interpreter.
    """

    def __init__(self, host: Host, command: Sequence[str] | None = None):
        self.host = host
        self.command = list(command) if command else default_command()

    def build_args(self, target: Path, options: LaunchOptions) -> List[str]:
        return [*self.command[1:], str(target), *options.to_args()]

    def run(self, target: Path, options: LaunchOptions, cwd: Path) -> Notification:
        """Run the generator for *target* and return (and report) the notification."""
        self.host.report_progress("Generating barrel files...")
        try:
            result = self.host.spawn_process(
                self.command[0], self.build_args(target, options), cwd,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            notification = Notification("error", f"Failed to run ts-barrels: {exc}")
        else:
            if result.ok:
                notification = Notification("info", success_message(target))
            else:
                notification = Notification("error", failure_message(result))
        self.host.report_result(notification)
        return notification
