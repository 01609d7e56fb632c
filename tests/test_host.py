"""
Tests for tsbarrels.host — the launcher and installer used by editor front ends.
"""

import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from tsbarrels.exceptions import InstallError
from tsbarrels.host import (
    BarrelLauncher,
    ExitResult,
    Host,
    Installer,
    LaunchOptions,
    PackageManager,
    SubprocessHost,
    detect_package_manager,
    find_executable,
    install_command,
    resolve_target_folder,
)
from tsbarrels.host.launcher import NOTIFICATION_OUTPUT_LIMIT


class FakeHost(Host):
    """Records every call; spawn results come from a queue."""

    def __init__(self, *results, on_spawn=None):
        self.results = list(results)
        self.on_spawn = on_spawn
        self.spawned = []
        self.progress = []
        self.notifications = []

    def spawn_process(self, cmd, args, cwd):
        self.spawned.append((cmd, list(args), cwd))
        if self.on_spawn is not None:
            self.on_spawn()
        result = self.results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result

    def report_progress(self, text):
        self.progress.append(text)

    def report_result(self, notification):
        self.notifications.append(notification)


# =============================================================================
# Launcher
# =============================================================================

class TestLaunchOptions:

    def test_defaults_add_no_flags(self):
        assert LaunchOptions().to_args() == []

    def test_all_flags(self):
        opts = LaunchOptions(all=True, force=True, filename="barrel.ts")
        assert opts.to_args() == ["--all", "--force", "--name", "barrel.ts"]

    def test_blank_filename_ignored(self):
        assert LaunchOptions(filename="  ").to_args() == []


class TestResolveTargetFolder:

    def test_no_selection_uses_base(self, tmp_path):
        assert resolve_target_folder(None, tmp_path) == tmp_path

    def test_directory_selection(self, tmp_path):
        sub = tmp_path / "components"
        sub.mkdir()
        assert resolve_target_folder(sub, tmp_path) == sub

    def test_file_selection_uses_parent(self, tmp_path, write_module):
        module = write_module(tmp_path / "components" / "Button.tsx", "")
        assert resolve_target_folder(module, tmp_path) == tmp_path / "components"


class TestBarrelLauncher:
    """Verify command construction and notifications."""

    def test_success(self, tmp_path):
        host = FakeHost(ExitResult(0, "ok"))
        launcher = BarrelLauncher(host, command=["ts-barrels"])
        note = launcher.run(tmp_path / "src", LaunchOptions(all=True), cwd=tmp_path)
        assert host.spawned == [("ts-barrels", [str(tmp_path / "src"), "--all"], tmp_path)]
        assert host.progress == ["Generating barrel files..."]
        assert note.level == "info"
        assert str(tmp_path / "src") in note.message
        assert host.notifications == [note]

    def test_failure_truncates_output(self, tmp_path):
        host = FakeHost(ExitResult(1, "y" * 2000))
        note = BarrelLauncher(host, command=["ts-barrels"]).run(tmp_path, LaunchOptions(), tmp_path)
        assert note.level == "error"
        assert "exit code 1" in note.message
        assert note.message.count("y") == NOTIFICATION_OUTPUT_LIMIT

    def test_spawn_error(self, tmp_path):
        host = FakeHost(FileNotFoundError(2, "No such file"))
        note = BarrelLauncher(host, command=["ts-barrels"]).run(tmp_path, LaunchOptions(), tmp_path)
        assert note.level == "error"
        assert note.message.startswith("Failed to run ts-barrels:")

    def test_default_command_uses_interpreter(self, tmp_path):
        launcher = BarrelLauncher(FakeHost())
        assert launcher.command == [sys.executable, "-m", "tsbarrels"]
        assert launcher.build_args(tmp_path, LaunchOptions(force=True)) == [
            "-m", "tsbarrels", str(tmp_path), "--force",
        ]


class TestSubprocessHost:

    def test_spawn_captures_output(self, tmp_path):
        completed = subprocess.CompletedProcess(["x"], 3, stdout="boom")
        with patch("tsbarrels.host.launcher.subprocess.run", return_value=completed) as run:
            result = SubprocessHost(timeout=5).spawn_process("x", ["--y"], tmp_path)
        assert result == ExitResult(3, "boom")
        assert run.call_args.args[0] == ["x", "--y"]
        assert run.call_args.kwargs["cwd"] == str(tmp_path)
        assert run.call_args.kwargs["timeout"] == 5

    def test_base_host_is_abstract(self, tmp_path):
        with pytest.raises(NotImplementedError):
            Host().spawn_process("x", [], tmp_path)


# =============================================================================
# Installer
# =============================================================================

class TestPackageManager:

    @pytest.mark.parametrize("lockfile, manager", [
        ("uv.lock", PackageManager.UV),
        ("poetry.lock", PackageManager.POETRY),
        ("Pipfile.lock", PackageManager.PIPENV),
    ])
    def test_detect_from_lockfile(self, tmp_path, lockfile, manager):
        (tmp_path / lockfile).write_text("")
        assert detect_package_manager(tmp_path) is manager

    def test_defaults_to_pip(self, tmp_path):
        assert detect_package_manager(tmp_path) is PackageManager.PIP

    def test_uv_wins_over_poetry(self, tmp_path):
        (tmp_path / "uv.lock").write_text("")
        (tmp_path / "poetry.lock").write_text("")
        assert detect_package_manager(tmp_path) is PackageManager.UV

    def test_install_commands(self):
        assert install_command(PackageManager.UV) == ["uv", "add", "--dev", "ts-barrels"]
        assert install_command(PackageManager.POETRY) == [
            "poetry", "add", "--group", "dev", "ts-barrels",
        ]
        assert install_command(PackageManager.PIPENV) == [
            "pipenv", "install", "--dev", "ts-barrels",
        ]
        assert install_command(PackageManager.PIP)[1:] == ["-m", "pip", "install", "ts-barrels"]

    def test_pip_into_given_interpreter(self, tmp_path):
        python = tmp_path / ".venv" / "bin" / "python"
        assert install_command(PackageManager.PIP, python=python) == [
            str(python), "-m", "pip", "install", "ts-barrels",
        ]


@pytest.fixture
def no_path_lookup(monkeypatch, tmp_path):
    """No ts-barrels on PATH and a bare interpreter outside the project."""
    monkeypatch.setattr("tsbarrels.host.installer.shutil.which", lambda name: None)
    interpreter = tmp_path / "interpreter" / "bin" / "python"
    monkeypatch.setattr(sys, "executable", str(interpreter))
    return interpreter


def _venv_bin(project: Path) -> Path:
    return project / ".venv" / "bin" / "ts-barrels"


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX venv layout")
class TestInstaller:
    """Verify ensure_installed() against a fake host."""

    def test_existing_executable_not_reinstalled(self, tmp_path, no_path_lookup):
        exe = _venv_bin(tmp_path)
        exe.parent.mkdir(parents=True)
        exe.write_text("")
        host = FakeHost()
        assert Installer(host).ensure_installed(tmp_path) == exe
        assert host.spawned == []

    def test_installs_with_detected_manager(self, tmp_path, no_path_lookup):
        (tmp_path / "uv.lock").write_text("")

        def _create_exe():
            exe = _venv_bin(tmp_path)
            exe.parent.mkdir(parents=True)
            exe.write_text("")

        host = FakeHost(ExitResult(0), on_spawn=_create_exe)
        assert Installer(host).ensure_installed(tmp_path) == _venv_bin(tmp_path)
        assert host.spawned == [("uv", ["add", "--dev", "ts-barrels"], tmp_path)]
        assert host.progress == ["Installing ts-barrels with uv..."]

    def test_failed_install(self, tmp_path, no_path_lookup):
        host = FakeHost(ExitResult(1, "resolver error"))
        with pytest.raises(InstallError, match="Exit code: 1"):
            Installer(host).ensure_installed(tmp_path)

    def test_installed_but_missing(self, tmp_path, no_path_lookup):
        host = FakeHost(ExitResult(0))
        with pytest.raises(InstallError, match="was not found"):
            Installer(host).ensure_installed(tmp_path)

    def test_manager_not_on_path(self, tmp_path, no_path_lookup):
        (tmp_path / "poetry.lock").write_text("")
        host = FakeHost(FileNotFoundError(2, "No such file"))
        with pytest.raises(InstallError, match="Failed to run poetry"):
            Installer(host).ensure_installed(tmp_path)

    def test_find_executable_on_path(self, tmp_path, monkeypatch):
        monkeypatch.setattr(
            "tsbarrels.host.installer.shutil.which", MagicMock(return_value="/usr/bin/ts-barrels"),
        )
        assert find_executable(tmp_path) == Path("/usr/bin/ts-barrels")

    def test_pip_installs_into_project_venv(self, tmp_path, no_path_lookup):
        project = tmp_path / "project"
        venv_python = project / ".venv" / "bin" / "python"
        venv_python.parent.mkdir(parents=True)
        venv_python.write_text("")

        def _create_exe():
            _venv_bin(project).write_text("")

        host = FakeHost(ExitResult(0), on_spawn=_create_exe)
        assert Installer(host).ensure_installed(project) == _venv_bin(project)
        assert host.spawned == [
            (str(venv_python), ["-m", "pip", "install", "ts-barrels"], project),
        ]

    def test_pip_without_venv_finds_interpreter_script(self, tmp_path, no_path_lookup):
        project = tmp_path / "project"
        project.mkdir()
        script = no_path_lookup.parent / "ts-barrels"

        def _create_exe():
            script.parent.mkdir(parents=True)
            script.write_text("")

        host = FakeHost(ExitResult(0), on_spawn=_create_exe)
        assert Installer(host).ensure_installed(project) == script
        assert host.spawned[0][0] == str(no_path_lookup)
