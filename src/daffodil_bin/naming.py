"""Deterministic names for saved processor artifacts.

Downstream consumers find saved processors purely by file name, so these
functions are a stable contract:

    <project>-<projectVersion>[-<label>]-daffodil<digits>.bin
"""

from __future__ import annotations

import re
from pathlib import Path

CONFIG_NAME_PREFIX = "daffodil"
ARTIFACT_EXTENSION = "bin"

_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")


def ivy_config_name(library_version: str) -> str:
    """Version specific configuration name.

    Example:
        >>> ivy_config_name("3.10.0")
        'daffodil3100'
    """
    return CONFIG_NAME_PREFIX + _NON_ALPHANUMERIC.sub("", library_version)


def classifier_name(label: str | None, library_version: str) -> str:
    """Artifact classifier from an optional label and a library version.

    Example:
        >>> classifier_name("file", "3.6.0")
        'file-daffodil360'
        >>> classifier_name(None, "3.6.0")
        'daffodil360'
    """
    parts = [label] if label else []
    parts.append(ivy_config_name(library_version))
    return "-".join(parts)


def artifact_file_name(
    project: str,
    project_version: str,
    label: str | None,
    library_version: str,
) -> str:
    """File name of a saved processor.

    Example:
        >>> artifact_file_name("dfdl-png", "1.0.0", None, "3.5.0")
        'dfdl-png-1.0.0-daffodil350.bin'
    """
    classifier = classifier_name(label, library_version)
    return f"{project}-{project_version}-{classifier}.{ARTIFACT_EXTENSION}"


def versioned_config_path(config: Path, library_version: str) -> Path:
    """Return the version specific sibling of a config file if it exists.

    ``config.xml`` becomes ``config.daffodil390.xml`` for 3.9.0. A leading
    dot does not start an extension, so ``.config`` becomes
    ``.config.daffodil390``.

    Args:
        config: Base configuration file.
        library_version: Library version being built.

    Returns:
        The versioned sibling when it exists, otherwise ``config``.
    """
    name = config.name
    index = name.rfind(".")
    base, ext = (name[:index], name[index:]) if index >= 1 else (name, "")
    versioned = config.with_name(f"{base}.{ivy_config_name(library_version)}{ext}")
    return versioned if versioned.exists() else config
