"""Shared pytest fixtures for sls-rust-core tests.

Provides structlog configuration for capture, a fake toolchain runner that
stands in for cross/cargo, and sample descriptors.
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest
import structlog

from sls_rust_core.errors import CommandError


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,  # Important for test isolation
    )


class FakeToolchainRunner:
    """Stands in for CommandRunner.

    Each ``run`` writes the executable cargo would produce
    (``<cwd>/target/<triple>/release/<label>``) unless the label is listed in
    ``fail`` (exit code 101) or ``no_output`` (succeeds without an executable).
    """

    def __init__(
        self,
        *,
        fail: Sequence[str] = (),
        no_output: Sequence[str] = (),
        on_run: Callable[[str], None] | None = None,
    ) -> None:
        self.fail = set(fail)
        self.no_output = set(no_output)
        self.on_run = on_run
        self.calls: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def run(self, argv: Sequence[str], *, cwd: Path, label: str = "", index: int = 0) -> None:
        with self._lock:
            self.calls.append(
                {"argv": list(argv), "cwd": Path(cwd), "label": label, "index": index}
            )
        if self.on_run is not None:
            self.on_run(label)
        if label in self.fail:
            raise CommandError(argv, exit_code=101)
        if label in self.no_output:
            return
        release_dir = Path(cwd) / "target" / argv[-1] / "release"
        release_dir.mkdir(parents=True, exist_ok=True)
        (release_dir / label).write_bytes(f"ELF {label}".encode())

    @property
    def labels(self) -> list[str]:
        return [call["label"] for call in self.calls]


@pytest.fixture
def fake_runner_factory() -> Callable[..., FakeToolchainRunner]:
    """Factory for fake toolchain runners.

    Returns:
        Function accepting FakeToolchainRunner keyword arguments.
    """
    return FakeToolchainRunner


@pytest.fixture
def fake_runner() -> FakeToolchainRunner:
    """Fake toolchain runner where every build succeeds."""
    return FakeToolchainRunner()


@pytest.fixture
def sample_service_dict() -> dict[str, Any]:
    """Return a descriptor with two Rust functions and one Node function.

    Returns:
        Dictionary representing a serverless.yml structure.
    """
    return {
        "service": "rust-demo",
        "provider": {"name": "aws", "region": "eu-west-1"},
        "functions": {
            "a": {"handler": "svc-a.handler_a", "tags": {"rust": True}},
            "node": {"handler": "index.handler", "runtime": "nodejs20.x"},
            "b": {
                "handler": "svc-b.handler_b",
                "runtime": "provided.al2023",
                "tags": {"rust": "true"},
            },
        },
    }
