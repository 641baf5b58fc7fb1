"""daffodil-bin: build saved Daffodil parsers for many library versions.

For each requested library version and each requested schema, a schema
is compiled inside an isolated child interpreter whose import path holds
exactly that library release, and the resulting processor is saved as a
versioned ``.bin`` artifact.
"""

from __future__ import annotations

from daffodil_bin.errors import (
    ArtifactBuildError,
    ConfigurationError,
    DaffodilBinError,
    DuplicateLabelError,
    LibraryResolutionError,
    NoCompatibleMappingError,
    SelectorSyntaxError,
)
from daffodil_bin.naming import (
    artifact_file_name,
    classifier_name,
    ivy_config_name,
    versioned_config_path,
)
from daffodil_bin.schemas import ArtifactSpec, BuildSpec, assemble
from daffodil_bin.versions import VersionSelector, VersionTable, matches, resolve_all

__version__ = "0.1.0"

__all__: list[str] = [
    "__version__",
    # Models
    "ArtifactSpec",
    "BuildSpec",
    "assemble",
    # Versions
    "VersionSelector",
    "VersionTable",
    "matches",
    "resolve_all",
    # Naming
    "artifact_file_name",
    "classifier_name",
    "ivy_config_name",
    "versioned_config_path",
    # Errors
    "ArtifactBuildError",
    "ConfigurationError",
    "DaffodilBinError",
    "DuplicateLabelError",
    "LibraryResolutionError",
    "NoCompatibleMappingError",
    "SelectorSyntaxError",
]
