"""
Host-side collaborators for editor integrations.

These run in the front end, never inside the generator: the launcher
spawns ts-barrels and turns its exit status into a notification, the
installer adds ts-barrels to a project that lacks it.
"""

from tsbarrels.host.installer import (
    Installer,
    PackageManager,
    detect_package_manager,
    find_executable,
    install_command,
)
from tsbarrels.host.launcher import (
    BarrelLauncher,
    ExitResult,
    Host,
    LaunchOptions,
    Notification,
    SubprocessHost,
    resolve_target_folder,
)

__all__ = [
    "BarrelLauncher",
    "ExitResult",
    "Host",
    "Installer",
    "LaunchOptions",
    "Notification",
    "PackageManager",
    "SubprocessHost",
    "detect_package_manager",
    "find_executable",
    "install_command",
    "resolve_target_folder",
]
