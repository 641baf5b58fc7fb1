"""Dynamic bindings to the versioned Daffodil library.

The saver is never linked against a particular library release. The
library module is imported by name from whatever import path the child was
started with, and every member is looked up by name when it is used.

Only the compile entry point differs between API generations:

- generation 1: ``compiler.compile_source(uri, root, namespace)``
- generation 2: ``compiler.compile_resource(name, root, namespace)``,
  added in Daffodil 3.9.0 for reproducible saved processors

Both are modeled as a SchemaRef whose ``compile`` method produces a
processor factory; ``schema_ref`` picks the constructor for a generation.
Everything downstream of compilation is shared.
"""

from __future__ import annotations

import importlib
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from types import ModuleType
from typing import Any, ClassVar

from daffodil_bin.saver.resources import SchemaResource

# Import name of the library driven by the saver
API_MODULE = "daffodil"


class ApiBindingError(RuntimeError):
    """Raised when the library lacks a member the selected generation needs."""

    pass


class UnsupportedGenerationError(ValueError):
    """Raised for an API generation the saver does not know."""

    pass


def bind(target: Any, name: str) -> Callable[..., Any]:
    """Look up a callable member of a library object by name.

    Raises:
        ApiBindingError: If the member is missing or not callable.
    """
    member = getattr(target, name, None)
    if member is None or not callable(member):
        owner = target.__name__ if isinstance(target, ModuleType) else type(target).__name__
        raise ApiBindingError(f"{owner} has no callable '{name}'")
    return member  # type: ignore[no-any-return]


class SchemaRef(ABC):
    """Reference to a schema in the form one API generation compiles from."""

    generation: ClassVar[int]
    compile_method: ClassVar[str]

    @property
    @abstractmethod
    def argument(self) -> str:
        """First argument of the compile entry point."""

    def compile(self, compiler: Any, root: str | None) -> Any:
        """Compile the schema, returning the library's processor factory."""
        return bind(compiler, self.compile_method)(self.argument, root, None)


@dataclass(frozen=True)
class UriSchemaRef(SchemaRef):
    """Generation 1: compile from the resource URI."""

    generation: ClassVar[int] = 1
    compile_method: ClassVar[str] = "compile_source"

    uri: str

    @property
    def argument(self) -> str:
        return self.uri


@dataclass(frozen=True)
class ResourceSchemaRef(SchemaRef):
    """Generation 2: compile from the resource path."""

    generation: ClassVar[int] = 2
    compile_method: ClassVar[str] = "compile_resource"

    name: str

    @property
    def argument(self) -> str:
        return self.name


SCHEMA_REF_CONSTRUCTORS: dict[int, Callable[[SchemaResource], SchemaRef]] = {
    UriSchemaRef.generation: lambda resource: UriSchemaRef(resource.uri),
    ResourceSchemaRef.generation: lambda resource: ResourceSchemaRef(resource.name),
}

SUPPORTED_GENERATIONS = frozenset(SCHEMA_REF_CONSTRUCTORS)


def schema_ref(generation: int, resource: SchemaResource) -> SchemaRef:
    """Build the schema reference for an API generation.

    Raises:
        UnsupportedGenerationError: If the generation is unknown.
    """
    try:
        constructor = SCHEMA_REF_CONSTRUCTORS[generation]
    except KeyError:
        raise UnsupportedGenerationError(
            f"unsupported API generation {generation}, "
            f"expected one of {sorted(SUPPORTED_GENERATIONS)}"
        ) from None
    return constructor(resource)


@dataclass(frozen=True)
class Diagnostic:
    """A compiler or processor diagnostic."""

    message: str
    is_error: bool

    @property
    def level(self) -> str:
        return "error" if self.is_error else "warning"

    def __str__(self) -> str:
        return f"[{self.level}] {self.message}"


class DaffodilApi:
    """Name-based access to the library's compiler objects.

    Attributes:
        module: The imported library module.

    Example:
        >>> api = DaffodilApi.load()
        >>> compiler = api.with_tunable(api.compiler(), "maxOccursBounds", "1024")
    """

    def __init__(self, module: ModuleType) -> None:
        self.module = module

    @classmethod
    def load(cls, module_name: str = API_MODULE) -> DaffodilApi:
        """Import the library module from the current import path."""
        return cls(importlib.import_module(module_name))

    def compiler(self) -> Any:
        return bind(self.module, "compiler")()

    def with_tunable(self, compiler: Any, name: str, value: str) -> Any:
        return bind(compiler, "with_tunable")(name, value)

    def diagnostics(self, target: Any) -> list[Diagnostic]:
        return [
            Diagnostic(message=str(d), is_error=bool(bind(d, "is_error")()))
            for d in bind(target, "get_diagnostics")()
        ]

    def is_error(self, target: Any) -> bool:
        return bool(bind(target, "is_error")())

    def on_path(self, factory: Any, path: str) -> Any:
        return bind(factory, "on_path")(path)

    def save(self, processor: Any, output: Any) -> None:
        bind(processor, "save")(output)
