"""Shared pytest fixtures for daffodil-bin tests.

Provides structlog configuration, CliRunner fixtures, and an on-disk fake
``daffodil`` library that behaves like one release of the real library.
"""

from __future__ import annotations

import importlib.util
import sys
from collections.abc import Callable
from pathlib import Path
from types import ModuleType

import pytest
import structlog
from click.testing import CliRunner

from daffodil_bin.compat import api_generation
from daffodil_bin.naming import ivy_config_name

SCHEMA_RESOURCE = "/com/example/format.dfdl.xsd"

# Fake library. The root element name drives its diagnostics:
#   "bad"     -> schema definition error on the factory
#   "warn"    -> warning on the factory
#   "badproc" -> error on the processor
FAKE_LIBRARY_TEMPLATE = '''\
"""Fake daffodil {version} (API generation {generation})."""

import json

VERSION = "{version}"
GENERATION = {generation}


class Diagnostic:
    def __init__(self, message, error):
        self.message = message
        self.error = error

    def is_error(self):
        return self.error

    def __str__(self):
        return self.message


class DataProcessor:
    def __init__(self, factory, path, diagnostics):
        self.factory = factory
        self.path = path
        self.diagnostics = diagnostics

    def get_diagnostics(self):
        return list(self.diagnostics)

    def is_error(self):
        return any(d.is_error() for d in self.diagnostics)

    def save(self, output):
        record = {{
            "version": VERSION,
            "generation": GENERATION,
            "source": self.factory.source,
            "root": self.factory.root,
            "path": self.path,
            "tunables": [list(t) for t in self.factory.tunables],
        }}
        output.write(json.dumps(record).encode())


class ProcessorFactory:
    def __init__(self, source, root, tunables):
        self.source = source
        self.root = root
        self.tunables = tunables
        self.diagnostics = []
        if root == "bad":
            self.diagnostics.append(Diagnostic("Schema Definition Error: bad root", True))
        if root == "warn":
            self.diagnostics.append(Diagnostic("Schema Definition Warning: facet ignored", False))

    def get_diagnostics(self):
        return list(self.diagnostics)

    def is_error(self):
        return any(d.is_error() for d in self.diagnostics)

    def on_path(self, path):
        diagnostics = []
        if self.root == "badproc":
            diagnostics.append(Diagnostic("Runtime Schema Definition Error: processor", True))
        return DataProcessor(self, path, diagnostics)


class Compiler:
    def __init__(self, tunables=()):
        self.tunables = tuple(tunables)

    def with_tunable(self, name, value):
        return Compiler(self.tunables + ((name, value),))

{compile_method}


def compiler():
    return Compiler()
'''

GENERATION_1_METHOD = """\
    def compile_source(self, uri, root, namespace):
        return ProcessorFactory(uri, root, self.tunables)"""

GENERATION_2_METHOD = """\
    def compile_resource(self, name, root, namespace):
        return ProcessorFactory(name, root, self.tunables)"""


def fake_library_source(version: str) -> str:
    generation = api_generation(version)
    method = GENERATION_1_METHOD if generation == 1 else GENERATION_2_METHOD
    return FAKE_LIBRARY_TEMPLATE.format(
        version=version,
        generation=generation,
        compile_method=method,
    )


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def libraries_dir(tmp_path: Path) -> Path:
    """Root of the per-version library directories."""
    path = tmp_path / "lib"
    path.mkdir()
    return path


@pytest.fixture
def fake_library(libraries_dir: Path) -> Callable[[str], Path]:
    """Factory fixture writing a fake library release.

    Returns:
        Function that writes ``lib/daffodil<digits>/daffodil/__init__.py``
        for a version and returns the version directory.
    """

    def _create(version: str) -> Path:
        version_dir = libraries_dir / ivy_config_name(version)
        package = version_dir / "daffodil"
        package.mkdir(parents=True, exist_ok=True)
        (package / "__init__.py").write_text(fake_library_source(version))
        return version_dir

    return _create


@pytest.fixture
def load_fake_api(fake_library: Callable[[str], Path]) -> Callable[[str], ModuleType]:
    """Load a fake library release in-process without touching sys.modules."""

    def _load(version: str) -> ModuleType:
        init_file = fake_library(version) / "daffodil" / "__init__.py"
        spec = importlib.util.spec_from_file_location(
            f"fake_daffodil_{ivy_config_name(version)}", init_file
        )
        assert spec is not None and spec.loader is not None
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module

    return _load


@pytest.fixture
def schema_dir(tmp_path: Path) -> Path:
    """Project resource directory holding one schema."""
    resources = tmp_path / "schemas"
    schema = resources / SCHEMA_RESOURCE.lstrip("/")
    schema.parent.mkdir(parents=True)
    schema.write_text(
        '<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema">'
        '<xs:element name="record" type="xs:string"/>'
        "</xs:schema>"
    )
    return resources
