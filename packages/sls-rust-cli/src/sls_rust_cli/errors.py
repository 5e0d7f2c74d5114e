"""Mapping of sls-rust failures to CLI messages and exit codes.

Every failure leaves the CLI as a CLIError: exit code 1 for problems with
the descriptor or the build itself, 2 for problems with the filesystem.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import click
import yaml
from pydantic import ValidationError as PydanticValidationError
from rich.markup import escape

from sls_rust_cli.output import error

if TYPE_CHECKING:
    from sls_rust_core.errors import SlsRustError


EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1  # Descriptor problems, nothing to build, failed build
EXIT_SYSTEM_ERROR = 2  # Missing, unreadable or unwritable files

_SCALARS = (str, int, float, bool)


class CLIError(click.ClickException):
    """A failure already phrased for the user.

    Attributes:
        exit_code: Process exit status (EXIT_USER_ERROR by default).
    """

    def __init__(self, message: str, exit_code: int = EXIT_USER_ERROR) -> None:
        super().__init__(message)
        self.exit_code = exit_code

    def show(self, file: object = None) -> None:
        """Print the message through the CLI console with markup escaped."""
        error(escape(self.format_message()))


def format_pydantic_error(err: PydanticValidationError) -> str:
    """Render one line per invalid field, using the descriptor's key names.

    Example:
        >>> print(format_pydantic_error(err))
        Validation failed:
          - rust.maxWorkers: Input should be greater than or equal to 1 (got 0)
    """
    lines = ["Validation failed:"]
    for detail in err.errors():
        location = ".".join(str(part) for part in detail["loc"]) or "<root>"
        line = f"  - {location}: {detail['msg']}"
        if isinstance(detail["input"], _SCALARS):
            line += f" (got {detail['input']!r})"
        lines.append(line)
    return "\n".join(lines)


def handle_yaml_error(err: yaml.YAMLError, file_path: str) -> NoReturn:
    """Raise a CLIError pointing at the YAML syntax problem."""
    detail = str(err)
    if isinstance(err, yaml.MarkedYAMLError) and err.problem_mark is not None:
        mark = err.problem_mark
        detail = (
            f"YAML syntax error at line {mark.line + 1}, column {mark.column + 1}: {err.problem}"
        )
    raise CLIError(f"Invalid YAML in {file_path}: {detail}")


def handle_validation_error(err: PydanticValidationError, file_path: str) -> NoReturn:
    """Raise a CLIError listing every invalid descriptor field."""
    raise CLIError(f"Invalid configuration in {file_path}:\n{format_pydantic_error(err)}")


def handle_file_not_found(file_path: str) -> NoReturn:
    """Raise a system-error CLIError for a missing descriptor."""
    raise CLIError(
        f"File not found: {file_path}\n\n"
        "Run sls-rust from your service directory or pass --file.",
        exit_code=EXIT_SYSTEM_ERROR,
    )


def handle_permission_error(path: str, operation: str = "access") -> NoReturn:
    """Raise a system-error CLIError for a file that cannot be read or written."""
    raise CLIError(f"Permission denied: Cannot {operation} {path}", exit_code=EXIT_SYSTEM_ERROR)


def handle_write_error(path: str, err: OSError) -> NoReturn:
    """Raise a system-error CLIError for a descriptor that cannot be written.

    Covers a missing parent directory or a destination that is a directory.
    """
    raise CLIError(
        f"Cannot write {path}: {err.strerror or err}",
        exit_code=EXIT_SYSTEM_ERROR,
    )


def handle_sls_rust_error(err: SlsRustError) -> NoReturn:
    """Raise a CLIError carrying a core error's prefixed message.

    Covers an empty build, malformed handlers and failed builds.
    """
    raise CLIError(str(err), exit_code=EXIT_USER_ERROR)
