"""daffodil-bin package command - Build saved parsers."""

from __future__ import annotations

import click

from daffodil_bin.cli.errors import cli_errors, load_build_spec
from daffodil_bin.cli.output import success, warning
from daffodil_bin.schemas import BUILD_FILE_NAME


@click.command("package")
@click.option(
    "-f",
    "--file",
    "file_path",
    type=click.Path(exists=False),
    default=f"./{BUILD_FILE_NAME}",
    help=f"Path to {BUILD_FILE_NAME} [default: ./{BUILD_FILE_NAME}]",
)
@click.option(
    "--no-cache",
    is_flag=True,
    default=False,
    help="Rebuild even if no input changed.",
)
@click.option(
    "--keep-going",
    is_flag=True,
    default=False,
    help="Build the remaining artifacts after a failure.",
)
def package(file_path: str, no_cache: bool, keep_going: bool) -> None:
    """Build one saved parser per target version and artifact.

    Examples:

        daffodil-bin package

        daffodil-bin package --file schemas/daffodil-bin.yaml --no-cache
    """
    spec = load_build_spec(file_path)

    if not spec.artifacts or not spec.target_versions:
        warning(
            "No saved parsers to build: "
            f"{len(spec.artifacts)} artifact(s), {len(spec.target_versions)} target version(s)"
        )
        return

    # Import here to keep --help fast
    from daffodil_bin.builder import BuildOrchestrator, resolve_platform_version

    with cli_errors():
        orchestrator = BuildOrchestrator(
            spec,
            platform_version=resolve_platform_version(spec.platform_version, detect=False),
            fail_fast=False if keep_going else None,
        )
        outputs = orchestrator.run(use_cache=not no_cache)

    for output in outputs:
        success(f"Saved {output}")
