"""CLI error handling for daffodil-bin.

Wraps daffodil-bin exceptions in click exceptions with user-friendly
messages and exit codes.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

import click
import yaml
from pydantic import ValidationError as PydanticValidationError

from daffodil_bin.cli.output import error
from daffodil_bin.errors import ConfigurationError, DaffodilBinError

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails

    from daffodil_bin.schemas import BuildSpec


# Exit codes following sysexits.h convention
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1  # Configuration or build failure
EXIT_SYSTEM_ERROR = 2  # Missing file, permissions


class CLIError(click.ClickException):
    """CLI-specific exception with exit code support.

    Attributes:
        message: User-facing error message.
        exit_code: Exit code for the CLI (default: 1).
    """

    def __init__(self, message: str, exit_code: int = EXIT_USER_ERROR) -> None:
        super().__init__(message)
        self.exit_code = exit_code

    def show(self, file: object = None) -> None:
        """Display the error message using Rich formatting."""
        error(self.format_message())


def format_pydantic_error(err: PydanticValidationError) -> str:
    """Format Pydantic validation error into user-friendly message.

    Example:
        >>> format_pydantic_error(err)
        "Validation failed:\\n  - artifacts.0.schema: Value error, schema must be ..."
    """
    errors: list[ErrorDetails] = err.errors()
    lines = ["Validation failed:"]

    for e in errors:
        loc = ".".join(str(x) for x in e["loc"])
        lines.append(f"  - {loc}: {e['msg']}")

    return "\n".join(lines)


def handle_yaml_error(err: yaml.YAMLError, file_path: str) -> NoReturn:
    """Raise a CLIError carrying the YAML error position, when known."""
    error_msg = str(err)
    mark = getattr(err, "problem_mark", None)
    if mark is not None:
        problem = getattr(err, "problem", None)
        error_msg = f"YAML syntax error at line {mark.line + 1}, column {mark.column + 1}: {problem}"

    raise CLIError(f"Invalid YAML in {file_path}: {error_msg}")


def handle_file_not_found(file_path: str) -> NoReturn:
    raise CLIError(
        f"File not found: {file_path}\n\nUse --file to specify the build description.",
        exit_code=EXIT_SYSTEM_ERROR,
    )


def load_build_spec(file_path: str) -> BuildSpec:
    """Load a build description, converting failures to CLIError."""
    from daffodil_bin.schemas import BuildSpec

    path = Path(file_path)
    if not path.exists():
        handle_file_not_found(file_path)

    try:
        return BuildSpec.from_yaml(path)
    except yaml.YAMLError as e:
        handle_yaml_error(e, file_path)
    except PydanticValidationError as e:
        raise CLIError(f"Invalid configuration in {file_path}:\n{format_pydantic_error(e)}") from None


@contextmanager
def cli_errors() -> Iterator[None]:
    """Convert daffodil-bin exceptions raised inside the block to CLIError."""
    try:
        yield
    except ConfigurationError as e:
        raise CLIError(f"Invalid configuration: {e.user_message}") from None
    except DaffodilBinError as e:
        raise CLIError(e.user_message) from None
    except PermissionError as e:
        raise CLIError(f"Permission denied: {e.filename}", exit_code=EXIT_SYSTEM_ERROR) from None
