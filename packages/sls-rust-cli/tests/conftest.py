"""Shared test fixtures for sls-rust-cli tests.

Provides CliRunner fixtures, serverless.yml helpers, and a fake toolchain
patched over CommandRunner.run so no Rust toolchain is needed.
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Generator, Sequence
from pathlib import Path
from typing import Any

import pytest
import structlog
import yaml
from click.testing import CliRunner
from rich.console import Console

from sls_rust_core.builder.toolchain import CommandRunner
from sls_rust_core.errors import CommandError

SERVERLESS_YML_FILENAME = "serverless.yml"


@pytest.fixture(autouse=True)
def configure_structlog_for_tests(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    """Route structlog to stdout and record configure_logging() calls.

    Returns:
        List of keyword arguments passed to configure_logging().
    """
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )
    calls: list[dict[str, Any]] = []
    monkeypatch.setattr(
        "sls_rust_core.observability.configure_logging",
        lambda **kwargs: calls.append(kwargs),
    )
    return calls


@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Use a wide, colorless console so messages are not wrapped in assertions."""
    monkeypatch.setattr("sls_rust_cli.output.console", Console(width=200, no_color=True))


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def isolated_runner(cli_runner: CliRunner) -> Generator[CliRunner, None, None]:
    """Create a Click test runner with an isolated filesystem.

    Yields:
        CliRunner instance with isolated filesystem.
    """
    with cli_runner.isolated_filesystem():
        yield cli_runner


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def valid_serverless_yml(fixtures_dir: Path, tmp_path: Path) -> Path:
    """Copy the two-function serverless.yml fixture into tmp_path.

    Returns:
        Path to serverless.yml in tmp_path.
    """
    dst = tmp_path / SERVERLESS_YML_FILENAME
    dst.write_text((fixtures_dir / "serverless.yml").read_text())
    return dst


@pytest.fixture
def create_serverless_yml(tmp_path: Path) -> Callable[[dict[str, Any]], Path]:
    """Factory fixture to write serverless.yml with custom content.

    Returns:
        Function that writes the given mapping and returns its path.
    """

    def _create(content: dict[str, Any]) -> Path:
        path = tmp_path / SERVERLESS_YML_FILENAME
        path.write_text(yaml.safe_dump(content, sort_keys=False))
        return path

    return _create


class ToolchainCalls:
    """Records fake toolchain invocations; labels in ``fail`` exit with 101."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.fail: set[str] = set()
        self.output: list[str] = []


@pytest.fixture
def fake_toolchain(monkeypatch: pytest.MonkeyPatch) -> ToolchainCalls:
    """Replace CommandRunner.run with a fake that writes the compiled executable.

    Returns:
        ToolchainCalls recorder; add project names to ``fail`` to make them fail.
    """
    recorder = ToolchainCalls()

    def fake_run(
        self: CommandRunner,
        argv: Sequence[str],
        *,
        cwd: Path,
        label: str = "",
        index: int = 0,
    ) -> None:
        recorder.calls.append({"argv": list(argv), "cwd": Path(cwd), "label": label})
        if self.verbose and self.sink is not None:
            for line in recorder.output:
                self.sink(label, line, index)
        if label in recorder.fail:
            raise CommandError(argv, exit_code=101)
        release_dir = Path(cwd) / "target" / argv[-1] / "release"
        release_dir.mkdir(parents=True, exist_ok=True)
        (release_dir / label).write_bytes(b"ELF")

    monkeypatch.setattr(CommandRunner, "run", fake_run)
    return recorder
