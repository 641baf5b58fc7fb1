"""daffodil-bin toolchain command - Show the toolchain a library version needs."""

from __future__ import annotations

import click

from daffodil_bin.cli.errors import cli_errors, load_build_spec
from daffodil_bin.cli.output import info, warning
from daffodil_bin.schemas import BUILD_FILE_NAME


@click.command("toolchain")
@click.argument("version", required=False)
@click.option(
    "-f",
    "--file",
    "file_path",
    type=click.Path(exists=False),
    default=f"./{BUILD_FILE_NAME}",
    help=f"Build file supplying the default VERSION [default: ./{BUILD_FILE_NAME}]",
)
@click.option(
    "--platform-version",
    type=str,
    default=None,
    help="Platform (JDK) version [default: detected]",
)
def toolchain(version: str | None, file_path: str, platform_version: str | None) -> None:
    """Show the toolchain version used for a library VERSION.

    Without VERSION, the library_version of the build file is used.

    Examples:

        daffodil-bin toolchain 3.6.0

        daffodil-bin toolchain 3.3.0 --platform-version 21
    """
    from daffodil_bin import compat
    from daffodil_bin.builder import resolve_platform_version

    if version is None:
        version = load_build_spec(file_path).library_version

    with cli_errors():
        line = compat.toolchain_line(version)
        default = compat.default_toolchain_version(version)
        generation = compat.api_generation(version)
        platform = resolve_platform_version(platform_version)

        info(f"Library version: {version}")
        info(f"API generation: {generation}")
        info(f"Toolchain line: {line}")
        info(f"Default toolchain: {default}")

        if platform is None:
            warning("Platform version unknown, using the default toolchain")
            info(f"Toolchain: {default}")
            return

        info(f"Platform version: {platform}")
        info(f"Platform minimum: {compat.minimum_toolchain_version(version, platform)}")
        info(f"Toolchain: {compat.resolve_toolchain_version(version, platform)}")
