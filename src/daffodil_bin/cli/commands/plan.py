"""daffodil-bin plan command - Show the build targets without building."""

from __future__ import annotations

import click

from daffodil_bin.cli.errors import cli_errors, load_build_spec
from daffodil_bin.cli.output import info, print_table, warning
from daffodil_bin.schemas import BUILD_FILE_NAME


@click.command("plan")
@click.option(
    "-f",
    "--file",
    "file_path",
    type=click.Path(exists=False),
    default=f"./{BUILD_FILE_NAME}",
    help=f"Path to {BUILD_FILE_NAME} [default: ./{BUILD_FILE_NAME}]",
)
@click.option(
    "--export",
    is_flag=True,
    default=False,
    help="Print the equivalent shell command of each compilation.",
)
@click.option(
    "--platform-version",
    type=str,
    default=None,
    help="Platform (JDK) version for toolchain selection [default: detected]",
)
def plan(file_path: str, export: bool, platform_version: str | None) -> None:
    """Show what `package` would build.

    Examples:

        daffodil-bin plan

        daffodil-bin plan --export > build.sh
    """
    spec = load_build_spec(file_path)

    from daffodil_bin.builder import BuildOrchestrator, resolve_platform_version

    with cli_errors():
        orchestrator = BuildOrchestrator(
            spec,
            platform_version=resolve_platform_version(
                platform_version or spec.platform_version, detect=not export
            ),
        )
        targets = orchestrator.plan()

    if not targets:
        warning("No saved parsers to build")
        return

    if export:
        for target in targets:
            info(orchestrator.export_command(target), soft_wrap=True, markup=False)
        return

    print_table(
        "Build plan",
        ["Version", "Generation", "Toolchain", "Classifier", "Target", "Config"],
        [
            [
                target.library_version,
                str(target.generation),
                target.toolchain_version or target.toolchain_line,
                target.classifier,
                target.target_file.name,
                str(target.config_file) if target.config_file else "-",
            ]
            for target in targets
        ],
    )
