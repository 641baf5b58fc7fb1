"""Unit tests for library resolvers."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any

import pytest

from daffodil_bin.builder.libraries import (
    INSTALL_MARKER,
    DirectoryLibraryResolver,
    PipLibraryResolver,
)
from daffodil_bin.errors import LibraryResolutionError


class TestDirectoryLibraryResolver:
    """Tests for per-version library directories."""

    def test_directory_then_sorted_archives(self, libraries_dir: Path) -> None:
        version_dir = libraries_dir / "daffodil360"
        version_dir.mkdir()
        (version_dir / "z-runtime.whl").write_bytes(b"")
        (version_dir / "a-core.zip").write_bytes(b"")
        (version_dir / "README.txt").write_text("ignored")

        entries = DirectoryLibraryResolver(libraries_dir).resolve("3.6.0")

        assert entries == [version_dir, version_dir / "a-core.zip", version_dir / "z-runtime.whl"]

    def test_missing_version(self, libraries_dir: Path) -> None:
        with pytest.raises(LibraryResolutionError, match="3.5.0"):
            DirectoryLibraryResolver(libraries_dir).resolve("3.5.0")


class FakeRun:
    """Stand-in for subprocess.run recording pip invocations."""

    def __init__(self, returncode: int = 0, stderr: str = "") -> None:
        self.returncode = returncode
        self.stderr = stderr
        self.commands: list[list[str]] = []

    def __call__(self, command: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        self.commands.append(command)
        return subprocess.CompletedProcess(command, self.returncode, "", self.stderr)


class TestPipLibraryResolver:
    """Tests for pip-installed library releases."""

    def test_installs_into_version_directory(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        fake_run = FakeRun()
        monkeypatch.setattr(subprocess, "run", fake_run)

        resolver = PipLibraryResolver(tmp_path, python="python3")
        entries = resolver.resolve("3.6.0")

        target = tmp_path / "daffodil360"
        assert entries == [target]
        assert fake_run.commands == [
            [
                "python3",
                "-m",
                "pip",
                "install",
                "--quiet",
                "--disable-pip-version-check",
                "--target",
                str(target),
                "daffodil==3.6.0",
            ]
        ]
        assert (target / INSTALL_MARKER).read_text() == "daffodil==3.6.0"

    def test_existing_install_is_reused(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        fake_run = FakeRun()
        monkeypatch.setattr(subprocess, "run", fake_run)
        resolver = PipLibraryResolver(tmp_path)

        resolver.resolve("3.6.0")
        resolver.resolve("3.6.0")

        assert len(fake_run.commands) == 1

    def test_pip_failure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(subprocess, "run", FakeRun(returncode=1, stderr="No matching distribution"))

        with pytest.raises(LibraryResolutionError, match="Could not install Daffodil 3.6.0"):
            PipLibraryResolver(tmp_path).resolve("3.6.0")
        assert not (tmp_path / "daffodil360" / INSTALL_MARKER).exists()
