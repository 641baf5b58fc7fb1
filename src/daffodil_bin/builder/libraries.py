"""Library resolution for target versions.

A library resolver maps a target library version to the import-path
entries holding that release. Two resolvers are provided:

- DirectoryLibraryResolver: releases laid out as ``<root>/daffodil360/``,
  the directory itself plus any archives inside it
- PipLibraryResolver: installs the release with pip into
  ``<root>/daffodil360/`` on first use
"""

from __future__ import annotations

import shutil
import subprocess
import sys
from pathlib import Path
from typing import Protocol

import structlog

from daffodil_bin.compat import library_requirements
from daffodil_bin.errors import LibraryResolutionError
from daffodil_bin.naming import ivy_config_name

logger = structlog.get_logger(__name__)

# Archives that can sit on an import path
ARCHIVE_SUFFIXES = frozenset({".whl", ".zip", ".jar", ".egg"})

# Written after a successful pip install, holds the installed requirements
INSTALL_MARKER = ".daffodil-bin-installed"


class LibraryResolver(Protocol):
    """Maps a library version to its import-path entries."""

    def resolve(self, library_version: str) -> list[Path]:
        """Return import-path entries for ``library_version``, in order."""
        ...


class DirectoryLibraryResolver:
    """Find releases in per-version directories.

    Attributes:
        root: Directory containing one ``daffodil<digits>`` directory per release.

    Example:
        >>> resolver = DirectoryLibraryResolver(Path("lib"))
        >>> resolver.resolve("3.6.0")
        [PosixPath('lib/daffodil360'), PosixPath('lib/daffodil360/daffodil-3.6.0.whl')]
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def resolve(self, library_version: str) -> list[Path]:
        """Return the version directory followed by its archives, sorted by name.

        Raises:
            LibraryResolutionError: If the version directory does not exist.
        """
        version_dir = self.root / ivy_config_name(library_version)
        if not version_dir.is_dir():
            raise LibraryResolutionError(
                f"No library found for Daffodil {library_version}",
                internal_details=f"expected directory {version_dir}",
            )

        archives = sorted(
            p for p in version_dir.iterdir() if p.is_file() and p.suffix in ARCHIVE_SUFFIXES
        )
        return [version_dir, *archives]


class PipLibraryResolver:
    """Install releases with pip into per-version target directories.

    An install is reused as long as its marker lists the same requirements.

    Attributes:
        root: Directory receiving one install directory per release.
        distribution: Distribution name of the library.
        python: Interpreter used to run pip.
    """

    def __init__(
        self,
        root: Path,
        distribution: str = "daffodil",
        python: str = sys.executable,
    ) -> None:
        self.root = root
        self.distribution = distribution
        self.python = python

    def requirements(self, library_version: str) -> list[str]:
        return library_requirements(library_version, self.distribution)

    def resolve(self, library_version: str) -> list[Path]:
        """Return the install directory, installing the release if needed.

        Raises:
            LibraryResolutionError: If pip cannot be run or fails.
        """
        target = self.root / ivy_config_name(library_version)
        requirements = self.requirements(library_version)
        marker = target / INSTALL_MARKER
        expected = "\n".join(requirements)

        if marker.is_file() and marker.read_text() == expected:
            logger.debug("library_install_reused", version=library_version, target=str(target))
            return [target]

        if target.exists():
            shutil.rmtree(target)

        command = [
            self.python,
            "-m",
            "pip",
            "install",
            "--quiet",
            "--disable-pip-version-check",
            "--target",
            str(target),
            *requirements,
        ]
        logger.info("library_install_started", version=library_version, target=str(target))
        try:
            result = subprocess.run(command, capture_output=True, text=True)
        except OSError as e:
            raise LibraryResolutionError(
                f"Could not install Daffodil {library_version}",
                internal_details=f"{command[0]}: {e}",
            ) from e

        if result.returncode != 0:
            raise LibraryResolutionError(
                f"Could not install Daffodil {library_version}",
                internal_details=result.stderr.strip() or result.stdout.strip(),
            )

        target.mkdir(parents=True, exist_ok=True)
        marker.write_text(expected)
        return [target]
