"""daffodil-bin deps command - List test dependencies for a library version."""

from __future__ import annotations

import click

from daffodil_bin.cli.errors import cli_errors, load_build_spec
from daffodil_bin.cli.output import info, warning
from daffodil_bin.schemas import BUILD_FILE_NAME


@click.command("deps")
@click.argument("version", required=False)
@click.option(
    "-f",
    "--file",
    "file_path",
    type=click.Path(exists=False),
    default=f"./{BUILD_FILE_NAME}",
    help=f"Build file supplying the default VERSION [default: ./{BUILD_FILE_NAME}]",
)
def deps(version: str | None, file_path: str) -> None:
    """List the test dependencies a schema project on VERSION should declare.

    Without VERSION, the library_version of the build file is used.

    Examples:

        daffodil-bin deps 3.6.0 >> requirements-test.txt

        daffodil-bin deps --file schemas/daffodil-bin.yaml
    """
    from daffodil_bin.compat import versioned_test_dependencies

    if version is None:
        version = load_build_spec(file_path).library_version

    with cli_errors():
        requirements = versioned_test_dependencies(version)

    if not requirements:
        warning(f"No test dependencies for Daffodil {version}")
        return

    for requirement in requirements:
        info(requirement)
