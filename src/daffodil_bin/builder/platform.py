"""Platform (JDK) version discovery.

The toolchain version a build uses can depend on the platform version.
It is taken, in order, from:
1. The ``platform_version`` setting
2. The ``DAFFODIL_BIN_PLATFORM_VERSION`` environment variable
3. ``java.specification.version`` reported by ``java`` on the PATH
"""

from __future__ import annotations

import os
import re
import subprocess

import structlog

logger = structlog.get_logger(__name__)

PLATFORM_VERSION_ENV_VAR = "DAFFODIL_BIN_PLATFORM_VERSION"

_SPEC_VERSION_PATTERN = re.compile(r"^\s*java\.specification\.version\s*=\s*(\S+)\s*$", re.M)


def normalize_platform_version(version: str) -> str:
    """Normalize legacy ``1.x`` platform versions to ``x``.

    Example:
        >>> normalize_platform_version("1.8")
        '8'
        >>> normalize_platform_version("21")
        '21'
    """
    version = version.strip()
    if version.startswith("1.") and version.count(".") == 1:
        return version[2:]
    return version


def detect_platform_version(java: str = "java", timeout: float = 30.0) -> str | None:
    """Ask the ``java`` executable for its specification version.

    Returns:
        The normalized version, or None if java is missing or silent.
    """
    try:
        result = subprocess.run(
            [java, "-XshowSettings:properties", "-version"],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("platform_detection_failed", java=java, error=str(e))
        return None

    # The settings dump goes to stderr
    match = _SPEC_VERSION_PATTERN.search(result.stderr + "\n" + result.stdout)
    if match is None:
        logger.debug("platform_version_not_reported", java=java)
        return None
    return normalize_platform_version(match.group(1))


def resolve_platform_version(configured: str | None = None, *, detect: bool = True) -> str | None:
    """Resolve the platform version from settings, environment or java.

    Args:
        configured: Explicitly configured version, wins when set.
        detect: Whether to fall back to running java.

    Returns:
        The platform version, or None if it cannot be determined.
    """
    if configured:
        return normalize_platform_version(configured)
    from_env = os.environ.get(PLATFORM_VERSION_ENV_VAR)
    if from_env:
        return normalize_platform_version(from_env)
    if detect:
        return detect_platform_version()
    return None
