"""Build coordinator.

Runs one compile-then-package pipeline per target, all at once (or up to
``RustConfig.max_workers`` at a time), waits for every pipeline to finish,
and reduces the outcomes to a single success or BuildFailedError.
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from sls_rust_core.builder.models import BuildReport, BuildResult, BuildStage, BuildStatus
from sls_rust_core.builder.output import print_process_line
from sls_rust_core.builder.packager import ArtifactPackager
from sls_rust_core.builder.toolchain import CommandRunner, build_command
from sls_rust_core.errors import (
    BuildFailedError,
    CommandError,
    CompileError,
    NoRustFunctionsError,
    PackageError,
    TargetBuildError,
)
from sls_rust_core.observability import span
from sls_rust_core.schemas.config import DEFAULT_RUNTIME

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

    from sls_rust_core.schemas.config import RustConfig
    from sls_rust_core.schemas.function import FunctionDefinition
    from sls_rust_core.schemas.service import ServiceDefinition
    from sls_rust_core.schemas.target import BuildTarget

logger = structlog.get_logger(__name__)


class BuildCoordinator:
    """Builds Rust targets concurrently and reports aggregate success.

    Attributes:
        config: Rust build configuration
        base_dir: Service directory that target project paths are relative to

    Example:
        >>> coordinator = BuildCoordinator(RustConfig(), base_dir=Path("."))
        >>> report = coordinator.build_all(service.build_targets())
        >>> report.artifacts
        {'hello': 'hello/target/aarch64-unknown-linux-musl/release/hello.zip'}
    """

    def __init__(
        self,
        config: RustConfig,
        *,
        base_dir: Path | None = None,
        runner: CommandRunner | None = None,
        packager: ArtifactPackager | None = None,
        log: BoundLogger | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            config: Rust build configuration.
            base_dir: Service directory (defaults to the working directory).
            runner: Process runner (defaults to one printing to stderr in verbose mode).
            packager: Artifact packager.
            log: Logger to use (defaults to the module logger).
        """
        self.config = config
        self.base_dir = base_dir if base_dir is not None else Path(".")
        self._log = log or logger.bind(component="build_coordinator")
        self.runner = runner or CommandRunner(
            verbose=config.verbose, sink=print_process_line, log=self._log
        )
        self.packager = packager or ArtifactPackager(log=self._log)

    def build_all(self, targets: Sequence[BuildTarget]) -> BuildReport:
        """Build every target and wait for all of them.

        A failing target never cancels its siblings.

        Args:
            targets: Targets to build, in display order.

        Returns:
            BuildReport with one successful result per target.

        Raises:
            NoRustFunctionsError: If ``targets`` is empty (nothing is spawned).
            BuildFailedError: If any target failed; carries every failure and
                the full report.
        """
        if not targets:
            raise NoRustFunctionsError()

        start_time = time.monotonic()
        started_at = datetime.now(UTC)
        max_workers = self.config.max_workers or len(targets)

        self._log.info(
            "build_started",
            targets=len(targets),
            toolchain=self.config.toolchain.value,
            target_runtime=self.config.target_runtime,
            max_workers=max_workers,
        )

        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="sls-rust") as pool:
            futures = [pool.submit(self._run_pipeline, target) for target in targets]
            wait(futures)

        outcomes = [future.result() for future in futures]
        results = [result for result, _ in outcomes]
        errors = [err for _, err in outcomes if err is not None]

        report = BuildReport(
            results=results,
            started_at=started_at,
            finished_at=datetime.now(UTC),
            total_duration_ms=int((time.monotonic() - start_time) * 1000),
        )

        self._log.info(
            "build_completed",
            succeeded=len(results) - len(errors),
            failed=len(errors),
            total_duration_ms=report.total_duration_ms,
        )

        if errors:
            raise BuildFailedError(errors, report)
        return report

    def build_one(self, target: BuildTarget) -> BuildResult:
        """Compile and package a single target.

        Args:
            target: Target to build.

        Returns:
            Successful BuildResult with the artifact path.

        Raises:
            CompileError: If the toolchain fails; the package stage is skipped.
            PackageError: If packaging fails.
        """
        start_time = time.monotonic()
        runtime = self.config.target_runtime
        project_dir = self.base_dir / target.project_path
        release_dir = self.base_dir / target.release_dir(runtime)
        attrs = {"function": target.function_name, "project": target.project_name}

        self._log.info(
            "target_build_started",
            handler=target.handler,
            target_runtime=runtime,
            toolchain=self.config.toolchain.value,
            **attrs,
        )

        with span(BuildStage.COMPILE.value, attributes=attrs, logger=self._log):
            try:
                self.runner.run(
                    build_command(self.config),
                    cwd=project_dir,
                    label=target.project_name,
                    index=target.index,
                )
            except CommandError as exc:
                raise CompileError(target, exc) from exc

        with span(BuildStage.PACKAGE.value, attributes=attrs, logger=self._log):
            try:
                self.packager.package(release_dir, target.project_name)
            except OSError as exc:
                raise PackageError(target, exc) from exc

        self._log.info("target_build_finished", **attrs)
        return BuildResult(
            target=target,
            status=BuildStatus.SUCCEEDED,
            stage=BuildStage.PACKAGE,
            artifact_path=target.artifact_path(runtime).as_posix(),
            duration_ms=int((time.monotonic() - start_time) * 1000),
        )

    def _run_pipeline(
        self, target: BuildTarget
    ) -> tuple[BuildResult, TargetBuildError | None]:
        start_time = time.monotonic()
        try:
            return self.build_one(target), None
        except TargetBuildError as err:
            self._log.error(
                "target_build_failed",
                function=target.function_name,
                stage=err.stage,
                error=err.user_message,
            )
            result = BuildResult(
                target=target,
                status=BuildStatus.FAILED,
                stage=BuildStage(err.stage),
                message=err.user_message,
                exit_code=err.exit_code,
                duration_ms=int((time.monotonic() - start_time) * 1000),
            )
            return result, err


def attach_artifacts(
    functions: Mapping[str, FunctionDefinition],
    report: BuildReport,
    *,
    default_runtime: str = DEFAULT_RUNTIME,
) -> None:
    """Point each built function at its artifact.

    Args:
        functions: Function definitions by name.
        report: Successful build report.
        default_runtime: Runtime set on functions that declare none.
    """
    for function_name, artifact_path in report.artifacts.items():
        functions[function_name].attach_artifact(artifact_path, default_runtime)


def build_service(
    service: ServiceDefinition,
    *,
    config: RustConfig | None = None,
    base_dir: Path | None = None,
    runner: CommandRunner | None = None,
) -> BuildReport | None:
    """Build every Rust function of a service and attach the artifacts.

    Nothing is built for providers other than AWS.

    Args:
        service: Loaded deployment descriptor (updated in place on success).
        config: Build configuration (defaults to the descriptor's ``rust:`` section).
        base_dir: Service directory.
        runner: Process runner.

    Returns:
        The build report, or None if the provider is not supported.

    Raises:
        NoRustFunctionsError: If no function is tagged for Rust.
        WrongHandlerError: If a Rust function's handler is malformed.
        BuildFailedError: If any target failed (no artifact is attached).
    """
    log = logger.bind(component="build_service", service=service.service)
    if not service.is_supported_provider:
        log.info("build_skipped", provider=service.provider.name)
        return None

    targets = service.build_targets()
    coordinator = BuildCoordinator(config or service.rust, base_dir=base_dir, runner=runner)
    report = coordinator.build_all(targets)
    attach_artifacts(service.functions, report)

    log.info("rust_functions_built", artifacts=len(report.artifacts))
    return report
