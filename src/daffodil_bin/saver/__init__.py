"""Isolated saver process.

The modules in this package run in the child interpreter launched by the
orchestrator, with the import path set up for one library release.
"""

from __future__ import annotations

from daffodil_bin.saver.api import (
    API_MODULE,
    ApiBindingError,
    DaffodilApi,
    Diagnostic,
    ResourceSchemaRef,
    SchemaRef,
    UnsupportedGenerationError,
    UriSchemaRef,
    schema_ref,
)
from daffodil_bin.saver.dispatcher import (
    EXIT_FAILURE,
    EXIT_SUCCESS,
    EXIT_USAGE,
    read_tunables,
    run,
)
from daffodil_bin.saver.resources import SchemaResource, find_resource

# Module run with "python -m" in the child interpreter
SAVER_MODULE = "daffodil_bin.saver"

__all__: list[str] = [
    "API_MODULE",
    "SAVER_MODULE",
    "ApiBindingError",
    "DaffodilApi",
    "Diagnostic",
    "ResourceSchemaRef",
    "SchemaRef",
    "SchemaResource",
    "UnsupportedGenerationError",
    "UriSchemaRef",
    "EXIT_FAILURE",
    "EXIT_SUCCESS",
    "EXIT_USAGE",
    "find_resource",
    "read_tunables",
    "run",
    "schema_ref",
]
