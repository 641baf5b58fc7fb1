"""Build description models for daffodil-bin."""

from __future__ import annotations

from daffodil_bin.schemas.artifact_spec import ArtifactSpec
from daffodil_bin.schemas.build_spec import (
    ACCUMULATING_KEYS,
    BUILD_FILE_NAME,
    BuildSpec,
    Contribution,
    assemble,
)

__all__: list[str] = [
    "ArtifactSpec",
    "BuildSpec",
    "Contribution",
    "assemble",
    "ACCUMULATING_KEYS",
    "BUILD_FILE_NAME",
]
