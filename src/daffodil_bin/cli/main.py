"""CLI entry point for daffodil-bin.

Commands are registered through a LazyGroup so ``daffodil-bin --help``
does not import the build machinery.
"""

from __future__ import annotations

import importlib
from typing import Any

import click
import rich_click as rclick

from daffodil_bin import __version__
from daffodil_bin.cli.output import set_no_color
from daffodil_bin.observability import configure_logging

rclick.rich_click.TEXT_MARKUP = "markdown"
rclick.rich_click.SHOW_ARGUMENTS = True
rclick.rich_click.GROUP_ARGUMENTS_OPTIONS = True

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LazyGroup(rclick.RichGroup):
    """Click group that imports commands only when they are invoked.

    Attributes:
        lazy_subcommands: Mapping of command names to "module.attribute" paths.
    """

    def __init__(
        self,
        *args: Any,
        lazy_subcommands: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.lazy_subcommands: dict[str, str] = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        commands = set(super().list_commands(ctx))
        commands.update(self.lazy_subcommands.keys())
        return sorted(commands)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        cmd = super().get_command(ctx, cmd_name)  # type: ignore[arg-type]
        if cmd is not None:
            return cmd

        if cmd_name not in self.lazy_subcommands:
            return None

        module_name, attr_name = self.lazy_subcommands[cmd_name].rsplit(".", 1)
        mod = importlib.import_module(module_name)
        return getattr(mod, attr_name)  # type: ignore[no-any-return]


LAZY_COMMANDS = {
    "package": "daffodil_bin.cli.commands.package.package",
    "plan": "daffodil_bin.cli.commands.plan.plan",
    "toolchain": "daffodil_bin.cli.commands.toolchain.toolchain",
    "deps": "daffodil_bin.cli.commands.deps.deps",
}


@click.command(cls=LazyGroup, lazy_subcommands=LAZY_COMMANDS)
@click.version_option(version=__version__, prog_name="daffodil-bin")
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output.",
    is_eager=True,
    expose_value=False,
    callback=lambda ctx, param, value: set_no_color(value) if value else None,
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log level of the build.",
)
def cli(log_level: str) -> None:
    """Build saved Daffodil parsers for multiple library versions.

    Reads `daffodil-bin.yaml` and compiles every listed schema once per
    target library version, in an isolated interpreter per compilation.

    **Getting Started:**

    - `daffodil-bin plan` - Show what would be built
    - `daffodil-bin package` - Build the saved parsers
    - `daffodil-bin toolchain 3.6.0` - Show the toolchain a version needs
    """
    configure_logging(log_level=log_level.upper())


if __name__ == "__main__":
    cli()
