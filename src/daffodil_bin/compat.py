"""Compatibility tables for Daffodil releases.

Each table maps Daffodil version selectors to what a build needs to know
about that release:
- the toolchain (Scala) version the release was built with
- the minimum toolchain version each platform (JDK) version supports
- the toolchain binary line of the published library
- the internal API generation the saver must use
- auxiliary test dependencies a schema project should declare

Minimum toolchain versions per platform come from
https://docs.scala-lang.org/overviews/jdk-compatibility/overview.html
"""

from __future__ import annotations

import structlog

from daffodil_bin.versions import VersionTable, compare_versions, resolve_all

logger = structlog.get_logger(__name__)

# Version of the library a project depends on when none is configured
DEFAULT_LIBRARY_VERSION = "3.11.0"

# Platform (JDK) version -> minimum toolchain version, one table per toolchain line
PLATFORM_TO_MIN_TOOLCHAIN_212: VersionTable[str] = VersionTable(
    "platform to minimum 2.12 toolchain",
    {
        ">=25     ": "2.12.21",
        "=24      ": "2.12.21",
        "=23      ": "2.12.20",
        "=22      ": "2.12.19",
        "=21      ": "2.12.18",
        ">=17 <=20": "2.12.15",
        ">=11 <=16": "2.12.4",
        "     <=10": "2.12.0",
    },
)

PLATFORM_TO_MIN_TOOLCHAIN_213: VersionTable[str] = VersionTable(
    "platform to minimum 2.13 toolchain",
    {
        ">=25     ": "2.13.17",
        "=24      ": "2.13.16",
        "=23      ": "2.13.15",
        "=22      ": "2.13.13",
        "=21      ": "2.13.11",
        ">=17 <=20": "2.13.6",
        ">=11 <=16": "2.13.4",
        "     <=10": "2.13.0",
    },
)

PLATFORM_TO_MIN_TOOLCHAIN_3: VersionTable[str] = VersionTable(
    "platform to minimum 3.x toolchain",
    {
        ">=25     ": "3.3.6",
        "=24      ": "3.3.6",
        "=23      ": "3.3.5",
        "=22      ": "3.3.4",
        "=21      ": "3.3.1",
        ">=17 <=20": "3.3.0",
        ">=11 <=16": "3.3.0",
        "     <=10": "3.3.0",
    },
)

# Different Daffodil releases use different toolchain lines, which decides
# which of the platform tables above applies
LIBRARY_TO_PLATFORM_TABLE: VersionTable[VersionTable[str]] = VersionTable(
    "library to platform table",
    {
        ">=4.0.0 ": PLATFORM_TO_MIN_TOOLCHAIN_3,
        "=3.11.0 ": PLATFORM_TO_MIN_TOOLCHAIN_213,
        "<=3.10.0": PLATFORM_TO_MIN_TOOLCHAIN_212,
    },
)

# Toolchain versions each Daffodil release was published with
LIBRARY_TO_TOOLCHAIN: VersionTable[str] = VersionTable(
    "library to toolchain",
    {
        ">=4.0.0": "3.3.5",
        "=3.11.0": "2.13.16",
        "=3.10.0": "2.12.20",
        "=3.9.0 ": "2.12.20",
        "=3.8.0 ": "2.12.19",
        "=3.7.0 ": "2.12.19",
        "=3.6.0 ": "2.12.18",
        "=3.5.0 ": "2.12.18",
        "=3.4.0 ": "2.12.17",
        "=3.3.0 ": "2.12.15",
        "=3.2.0 ": "2.12.15",
        "=3.1.0 ": "2.12.13",
        "<3.1.0 ": "2.12.11",
    },
)

# Binary line of the published library artifacts
LIBRARY_TO_TOOLCHAIN_LINE: VersionTable[str] = VersionTable(
    "library to toolchain line",
    {
        ">=4.0.0 ": "3",
        "=3.11.0 ": "2.13",
        "<=3.10.0": "2.12",
    },
)

# The saver runs without any version tooling, so each Daffodil release is
# mapped to a small integer naming the API shape it must drive:
#   1: compile_source(uri, root, namespace)
#   2: compile_resource(name, root, namespace), added in 3.9.0
LIBRARY_TO_API_GENERATION: VersionTable[int] = VersionTable(
    "library to internal API generation",
    {
        ">3.8.0": 2,
        "<=3.8.0": 1,
    },
)

# Test dependencies for schema projects. Every matching entry contributes.
# "{version}" is replaced with the Daffodil version being resolved.
VERSIONED_TEST_DEPENDENCIES: VersionTable[tuple[str, ...]] = VersionTable(
    "versioned test dependencies",
    {
        # 3.10.0 and newer ship the compact TDML runner directly
        ">=3.10.0": ("daffodil-tdml-runner=={version}",),
        # Older releases pair their own TDML processor with the 3.10.0 runner,
        # which works with any processor from 3.2.0 on. The runner is pinned
        # since later runners may require matching processors
        ">=3.2.0 <3.10.0": (
            "daffodil-tdml-processor=={version}",
            "daffodil-tdml-runner==3.10.0",
        ),
        # The runner API did not exist before 3.2.0
        ">=3.0.0 <3.2.0": ("daffodil-tdml-processor=={version}",),
        ">=3.0.0": ("pytest>=8.0",),
    },
)


def resolve_toolchain_version(library_version: str, platform_version: str) -> str:
    """Pick the toolchain version to build against for a library release.

    The release's own toolchain version is used unless the platform needs
    a newer one, in which case the platform minimum wins. The result is
    never older than the release's toolchain.

    Args:
        library_version: Daffodil version, e.g. "3.6.0".
        platform_version: Platform (JDK) specification version, e.g. "21".

    Returns:
        Toolchain version string.

    Raises:
        NoCompatibleMappingError: If either version has no table entry.

    Example:
        >>> resolve_toolchain_version("3.3.0", "21")
        '2.12.18'
    """
    default = default_toolchain_version(library_version)
    minimum = minimum_toolchain_version(library_version, platform_version)

    if compare_versions(default, minimum) < 0:
        logger.debug(
            "toolchain_upgraded_for_platform",
            library_version=library_version,
            platform_version=platform_version,
            default=default,
            minimum=minimum,
        )
        return minimum
    return default


def default_toolchain_version(library_version: str) -> str:
    """Toolchain version a library release was published with."""
    return LIBRARY_TO_TOOLCHAIN.resolve_one(library_version)


def minimum_toolchain_version(library_version: str, platform_version: str) -> str:
    """Minimum toolchain version the platform supports for the release's toolchain line."""
    platform_table = LIBRARY_TO_PLATFORM_TABLE.resolve_one(library_version)
    return platform_table.resolve_one(platform_version)


def toolchain_line(library_version: str) -> str:
    """Binary line ("2.12", "2.13", "3") of a library release."""
    return LIBRARY_TO_TOOLCHAIN_LINE.resolve_one(library_version)


def api_generation(library_version: str) -> int:
    """Internal API generation the saver uses for a library release.

    Example:
        >>> api_generation("3.8.0"), api_generation("3.9.0")
        (1, 2)
    """
    return LIBRARY_TO_API_GENERATION.resolve_one(library_version)


def versioned_test_dependencies(library_version: str) -> list[str]:
    """Test dependency requirements for a schema project on ``library_version``."""
    templates = resolve_all(VERSIONED_TEST_DEPENDENCIES, library_version)
    return [template.format(version=library_version) for template in templates]


def library_requirements(library_version: str, distribution: str = "daffodil") -> list[str]:
    """Requirements to install the library itself for ``library_version``."""
    return [f"{distribution}=={library_version}"]
