"""Version selectors and range-keyed version tables."""

from __future__ import annotations

from daffodil_bin.versions.selector import (
    Clause,
    VersionSelector,
    compare_versions,
    matches,
    parse_selector,
    parse_version,
    strip_suffix,
)
from daffodil_bin.versions.table import VersionTable, resolve_all

__all__: list[str] = [
    "Clause",
    "VersionSelector",
    "VersionTable",
    "compare_versions",
    "matches",
    "parse_selector",
    "parse_version",
    "resolve_all",
    "strip_suffix",
]
