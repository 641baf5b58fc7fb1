"""ArtifactSpec model.

An ArtifactSpec requests one saved processor per target library version:
the schema resource to compile, an optional root element, an optional
label that disambiguates artifacts sharing a target version, and an
optional configuration file with compiler tunables.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Labels end up inside file names and classifiers
LABEL_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9._-]*$"


class ArtifactSpec(BaseModel):
    """A requested saved processor.

    Attributes:
        schema_path: Absolute resource path of the schema (starts with "/").
        root: Root element name. None lets the compiler pick the first element.
        label: Optional label prepended to the classifier.
        config: Optional configuration file holding a "tunables" section.

    Example:
        >>> spec = ArtifactSpec(schema="/com/example/format.dfdl.xsd", label="file")
        >>> spec.schema_path
        '/com/example/format.dfdl.xsd'

        >>> # Older build descriptions used (schema, root, label) triples
        >>> ArtifactSpec.model_validate(("/a/b.xsd", "record", None)).root
        'record'
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    schema_path: str = Field(
        ...,
        alias="schema",
        min_length=2,
        description="Absolute resource path of the schema",
    )
    root: str | None = Field(
        default=None,
        min_length=1,
        description="Root element name",
    )
    label: str | None = Field(
        default=None,
        pattern=LABEL_PATTERN,
        description="Label distinguishing artifacts for the same version",
    )
    config: Path | None = Field(
        default=None,
        description="Configuration file with compiler tunables",
    )

    @model_validator(mode="before")
    @classmethod
    def _from_triple(cls, data: Any) -> Any:
        """Accept the (schema, root, label) triple form."""
        if isinstance(data, list | tuple):
            if len(data) != 3:
                raise ValueError(
                    "artifact triples must have exactly three items: (schema, root, label)"
                )
            schema, root, label = data
            return {"schema": schema, "root": root, "label": label}
        return data

    @field_validator("schema_path")
    @classmethod
    def _schema_is_resource_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError(f"schema must be a resource path that starts with '/': {value}")
        return value

    def with_base_dir(self, base_dir: Path) -> ArtifactSpec:
        """Return a copy with a relative config path resolved against ``base_dir``."""
        if self.config is None or self.config.is_absolute():
            return self
        return self.model_copy(update={"config": base_dir / self.config})
