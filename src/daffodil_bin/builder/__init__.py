"""Build orchestration: planning, library resolution, caching and launching."""

from __future__ import annotations

from daffodil_bin.builder.cache import CacheState, IncrementalCache, expand_watched
from daffodil_bin.builder.libraries import (
    DirectoryLibraryResolver,
    LibraryResolver,
    PipLibraryResolver,
)
from daffodil_bin.builder.orchestrator import (
    BuildOrchestrator,
    BuildTarget,
    Launcher,
    build_classpath,
    check_unique_labels,
    launch_logged,
    plugin_location,
)
from daffodil_bin.builder.platform import (
    PLATFORM_VERSION_ENV_VAR,
    detect_platform_version,
    normalize_platform_version,
    resolve_platform_version,
)

__all__: list[str] = [
    "BuildOrchestrator",
    "BuildTarget",
    "CacheState",
    "DirectoryLibraryResolver",
    "IncrementalCache",
    "Launcher",
    "LibraryResolver",
    "PLATFORM_VERSION_ENV_VAR",
    "PipLibraryResolver",
    "build_classpath",
    "check_unique_labels",
    "detect_platform_version",
    "expand_watched",
    "launch_logged",
    "normalize_platform_version",
    "plugin_location",
    "resolve_platform_version",
]
