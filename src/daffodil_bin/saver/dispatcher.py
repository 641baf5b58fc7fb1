"""Saver entry point run inside the isolated child interpreter.

Usage::

    python -P -m daffodil_bin.saver <apiGeneration> <schemaResource> <outputFile> <root> <config>

``<root>`` and ``<config>`` must be empty strings when not provided.

The child is started with an import path holding exactly one release of
the library, so it can only drive that release. The generation argument
says which compile entry point that release offers.

Exit codes:
- 0: saved processor written
- 1: schema resource missing, bad config file, or error diagnostics
- 2: malformed argument vector
"""

from __future__ import annotations

import os
import sys
import xml.etree.ElementTree as ET
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Any, TextIO

from daffodil_bin.observability import LOG_LEVEL_ENV_VAR, configure_logging
from daffodil_bin.saver.api import (
    DaffodilApi,
    Diagnostic,
    UnsupportedGenerationError,
    schema_ref,
)
from daffodil_bin.saver.resources import find_resource

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

ARGUMENT_COUNT = 5

USAGE = "usage: daffodil_bin.saver <apiGeneration> <schemaResource> <outputFile> <root> <config>"


def read_tunables(config_file: Path) -> list[tuple[str, str]]:
    """Read compiler tunables from a configuration file.

    Every child element of each ``tunables`` element directly below the
    document root becomes a (name, value) pair, in document order.
    Namespaces are ignored.

    Example:
        Given::

            <dfdlConfig xmlns="urn:ogf:dfdl:2013:imp:daffodil.apache.org:2018:ext">
              <tunables>
                <maxOccursBounds>1024</maxOccursBounds>
              </tunables>
            </dfdlConfig>

        returns ``[("maxOccursBounds", "1024")]``.
    """
    root = ET.parse(config_file).getroot()
    tunables: list[tuple[str, str]] = []
    for section in root:
        if _local_name(section.tag) != "tunables":
            continue
        for node in section:
            if not isinstance(node.tag, str):
                continue  # comments and processing instructions
            tunables.append((_local_name(node.tag), (node.text or "").strip()))
    return tunables


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def print_diagnostics(diagnostics: Iterable[Diagnostic], err: TextIO) -> None:
    for diagnostic in diagnostics:
        print(diagnostic, file=err)


def run(
    argv: Sequence[str],
    *,
    api_loader: Callable[[], DaffodilApi] = DaffodilApi.load,
    search_path: Sequence[str] | None = None,
    err: TextIO | None = None,
) -> int:
    """Compile a schema and save the processor.

    Args:
        argv: The five positional arguments.
        api_loader: Returns the library binding; replaced in tests.
        search_path: Import path searched for the schema [default: sys.path].
        err: Stream for diagnostics [default: sys.stderr].

    Returns:
        Process exit code.
    """
    err = err or sys.stderr

    if len(argv) != ARGUMENT_COUNT:
        print(
            f"expected {ARGUMENT_COUNT} arguments but got {len(argv)}\n{USAGE}",
            file=err,
        )
        return EXIT_USAGE

    generation_arg, schema_name, output_arg, root_arg, config_arg = argv
    try:
        generation = int(generation_arg)
    except ValueError:
        print(f"invalid API generation: {generation_arg!r}\n{USAGE}", file=err)
        return EXIT_USAGE

    resource = find_resource(schema_name, sys.path if search_path is None else search_path)
    if resource is None:
        print(f"failed to find schema resource: {schema_name}", file=err)
        return EXIT_FAILURE

    try:
        ref = schema_ref(generation, resource)
    except UnsupportedGenerationError as e:
        print(f"{e}\n{USAGE}", file=err)
        return EXIT_USAGE

    root = root_arg or None
    config = Path(config_arg) if config_arg else None

    with open(output_arg, "wb") as output:
        api = api_loader()
        compiler: Any = api.compiler()

        if config is not None:
            try:
                tunables = read_tunables(config)
            except (OSError, ET.ParseError) as e:
                print(f"failed to load config file {config}: {e}", file=err)
                return EXIT_FAILURE
            for name, value in tunables:
                compiler = api.with_tunable(compiler, name, value)

        factory = ref.compile(compiler, root)
        print_diagnostics(api.diagnostics(factory), err)
        if api.is_error(factory):
            return EXIT_FAILURE

        processor = api.on_path(factory, "/")
        print_diagnostics(api.diagnostics(processor), err)
        if api.is_error(processor):
            return EXIT_FAILURE

        api.save(processor, output)

    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """Console entry point of the child interpreter."""
    configure_logging(
        log_level=os.environ.get(LOG_LEVEL_ENV_VAR, "WARNING"),
        add_timestamp=False,
    )
    return run(sys.argv[1:] if argv is None else argv)
