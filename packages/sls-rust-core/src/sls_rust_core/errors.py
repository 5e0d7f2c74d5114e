"""Custom exception hierarchy for sls-rust-core.

This module defines the exception classes raised while building Rust functions:
- SlsRustError: Base exception for all sls-rust errors
- NoRustFunctionsError: Raised when no function is tagged for Rust
- WrongHandlerError: Raised when a handler locator is malformed
- ConfigurationError: Raised when the deployment descriptor cannot be used
- CommandError: Raised when an external process fails
- CompileError / PackageError: Raised when one target's pipeline fails
- BuildFailedError: Raised when any target of a build fails

User-facing messages are safe to display. Technical details are logged
internally via structlog and never shown to the user.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from sls_rust_core.builder.models import BuildReport
    from sls_rust_core.schemas.target import BuildTarget

logger = structlog.get_logger(__name__)

MESSAGE_PREFIX = "[sls-rust] "


class SlsRustError(Exception):
    """Base exception for sls-rust.

    Args:
        user_message: Safe message to display to the user.
        internal_details: Optional technical details for logging. This is
            logged internally but NEVER exposed to the user.

    Example:
        >>> raise SlsRustError(
        ...     "Build failed",
        ...     internal_details="cargo exited with 101 in /work/hello",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        """Initialize SlsRustError with user message and optional internal details.

        Args:
            user_message: Safe message to display to the user.
            internal_details: Technical details for internal logging only.
        """
        super().__init__(f"{MESSAGE_PREFIX}{user_message}")
        self.user_message = user_message

        if internal_details:
            logger.error(
                "sls_rust_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )


class NoRustFunctionsError(SlsRustError):
    """Raised when the build is asked to run with nothing to build."""

    def __init__(self) -> None:
        super().__init__(
            "no Rust functions found. In order to use this plugin, you must put "
            "`tags.rust: true` in your function configuration, like this:\n"
            "\n"
            "# serverless.yml\n"
            "functions:\n"
            "  rust:\n"
            "    handler: your_rust_project_path.your_rust_project_name\n"
            "    runtime: provided.al2\n"
            "    tags:\n"
            "      rust: true\n"
        )


class WrongHandlerError(SlsRustError):
    """Raised when a handler does not follow ``project_path.project_name``.

    Attributes:
        handler: The offending handler string.
        function_name: Name of the function that declared it (if known).
    """

    def __init__(self, handler: str, *, function_name: str | None = None) -> None:
        """Initialize WrongHandlerError.

        Args:
            handler: The offending handler string.
            function_name: Name of the function that declared it (optional).
        """
        where = f" (function '{function_name}', got '{handler}')" if function_name else ""
        super().__init__(
            "the handler of your function must follow the pattern: "
            "project_path.project_name, where `project_path` is the path of your "
            "project, and `project_name` is the name of your project in Cargo.toml"
            f"{where}."
        )
        self.handler = handler
        self.function_name = function_name


class ConfigurationError(SlsRustError):
    """Raised when the deployment descriptor cannot be loaded or validated.

    Attributes:
        file_path: Path to the descriptor (if known).
        field_path: Dot-separated path to the invalid field (e.g., "functions.hello.handler").

    Example:
        >>> raise ConfigurationError(
        ...     "Invalid rust configuration",
        ...     file_path="serverless.yml",
        ...     field_path="rust.maxWorkers",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        file_path: str | None = None,
        field_path: str | None = None,
        internal_details: str | None = None,
    ) -> None:
        """Initialize ConfigurationError with context.

        Args:
            user_message: Safe message to display to the user.
            file_path: Path to the descriptor (optional).
            field_path: Dot-separated path to the field (optional).
            internal_details: Technical details for internal logging only.
        """
        context_parts: list[str] = []
        if file_path:
            context_parts.append(f"in {file_path}")
        if field_path:
            context_parts.append(f"field '{field_path}'")

        if context_parts:
            full_message = f"{user_message} ({', '.join(context_parts)})"
        else:
            full_message = user_message

        super().__init__(full_message, internal_details=internal_details)

        self.file_path = file_path
        self.field_path = field_path


class CommandError(SlsRustError):
    """Raised when an external command cannot be spawned or exits non-zero.

    Attributes:
        argv: The command that was run.
        exit_code: Process exit code, or None if the process never started.
    """

    def __init__(
        self,
        argv: Sequence[str],
        *,
        exit_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        """Initialize CommandError.

        Args:
            argv: The command that was run.
            exit_code: Process exit code (None if spawning failed).
            reason: Spawn failure description (e.g., "No such file or directory").
        """
        command = " ".join(argv)
        if exit_code is not None:
            message = f"command '{command}' exited with code {exit_code}"
        else:
            message = f"command '{command}' could not be started: {reason or 'unknown error'}"
        super().__init__(message)
        self.argv = list(argv)
        self.exit_code = exit_code
        self.reason = reason


class TargetBuildError(SlsRustError):
    """Base class for failures of a single target's build pipeline.

    Attributes:
        target: The target whose pipeline failed.
        cause: The underlying exception.
        stage: Pipeline stage that failed ("compile" or "package").
    """

    stage = "build"
    summary = "Error building project"

    def __init__(self, target: BuildTarget, cause: BaseException) -> None:
        """Initialize TargetBuildError.

        Args:
            target: The target whose pipeline failed.
            cause: The underlying exception.
        """
        super().__init__(
            f"{self.summary} {target.project_name}: {_cause_message(cause)}",
            internal_details=f"{type(cause).__name__}: {cause!r}",
        )
        self.target = target
        self.cause = cause

    @property
    def exit_code(self) -> int | None:
        """Exit code of the failed process, if the cause was a process exit."""
        if isinstance(self.cause, CommandError):
            return self.cause.exit_code
        return None


class CompileError(TargetBuildError):
    """Raised when the toolchain fails to compile a target."""

    stage = "compile"


class PackageError(TargetBuildError):
    """Raised when the compiled executable cannot be packaged into a zip."""

    stage = "package"
    summary = "Error trying to zip artefact in"


class BuildFailedError(SlsRustError):
    """Raised when one or more targets failed to build.

    Attributes:
        errors: Per-target failures, in target order.
        report: The full build report, including successful targets.
    """

    def __init__(self, errors: Sequence[TargetBuildError], report: BuildReport) -> None:
        """Initialize BuildFailedError.

        Args:
            errors: Per-target failures, in target order.
            report: The full build report.
        """
        lines = [f"{len(errors)} of {len(report.results)} Rust function(s) failed to build:"]
        lines.extend(
            f"  - {err.target.function_name} ({err.stage}): {err.user_message}" for err in errors
        )
        super().__init__("\n".join(lines))
        self.errors = list(errors)
        self.report = report

    @property
    def failed_targets(self) -> list[BuildTarget]:
        """Targets whose pipeline failed."""
        return [err.target for err in self.errors]


def _cause_message(cause: BaseException) -> str:
    if isinstance(cause, SlsRustError):
        return cause.user_message
    return str(cause) or type(cause).__name__
