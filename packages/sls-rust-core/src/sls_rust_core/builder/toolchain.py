"""Toolchain invocation.

Runs ``cross``/``cargo`` as argument vectors (never through a shell) and
optionally streams their output, one labelled line at a time. Output is
decoded as UTF-8; undecodable bytes become U+FFFD.
"""

from __future__ import annotations

import subprocess
from collections import deque
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from sls_rust_core.errors import CommandError

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

    from sls_rust_core.schemas.config import RustConfig

logger = structlog.get_logger(__name__)

OutputSink = Callable[[str, str, int], None]
"""Receives (label, line, index) for each line of process output."""

TAIL_LINES = 20


def build_command(config: RustConfig) -> list[str]:
    """Compile command for the configured toolchain.

    Example:
        >>> build_command(RustConfig())
        ['cross', 'build', '--release', '--target', 'aarch64-unknown-linux-musl']
    """
    return [config.toolchain.value, "build", "--release", "--target", config.target_runtime]


class CommandRunner:
    """Runs external commands and reports failures as CommandError.

    Attributes:
        verbose: Forward process output to the sink
        sink: Receives labelled output lines in verbose mode

    Example:
        >>> runner = CommandRunner()
        >>> runner.run(["cargo", "build"], cwd=Path("hello"), label="hello")
    """

    def __init__(
        self,
        *,
        verbose: bool = False,
        sink: OutputSink | None = None,
        log: BoundLogger | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            verbose: Forward process output to the sink.
            sink: Output sink (lines are dropped when None).
            log: Logger to use (defaults to the module logger).
        """
        self.verbose = verbose
        self.sink = sink
        self._log = log or logger.bind(component="command_runner")

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Path,
        label: str = "",
        index: int = 0,
    ) -> None:
        """Run a command to completion.

        Args:
            argv: Command and arguments.
            cwd: Working directory.
            label: Prefix for streamed output lines (usually the project name).
            index: Target ordinal, used by the sink to pick a color.

        Raises:
            CommandError: If the command cannot be started or exits non-zero.
        """
        self._log.debug("command_started", argv=list(argv), cwd=str(cwd), label=label)
        tail: deque[str] = deque(maxlen=TAIL_LINES)

        try:
            process = subprocess.Popen(
                list(argv),
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            raise CommandError(argv, reason=exc.strerror or str(exc)) from exc

        assert process.stdout is not None  # Type narrowing for mypy
        with process:
            for raw_line in process.stdout:
                line = raw_line.rstrip("\n")
                tail.append(line)
                if self.verbose and self.sink is not None:
                    self.sink(label, line, index)
            exit_code = process.wait()

        if exit_code != 0:
            self._log.warning(
                "command_failed",
                argv=list(argv),
                exit_code=exit_code,
                label=label,
                output_tail="\n".join(tail),
            )
            raise CommandError(argv, exit_code=exit_code)

        self._log.debug("command_completed", argv=list(argv), label=label)
