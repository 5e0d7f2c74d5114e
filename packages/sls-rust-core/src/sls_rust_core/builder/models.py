"""Build result models.

Models for representing per-target and aggregate build outcomes.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from sls_rust_core.schemas.target import BuildTarget


class BuildStage(str, Enum):
    """Stage of a target's build pipeline.

    Attributes:
        COMPILE: Toolchain invocation
        PACKAGE: Repackaging the executable into a zip
    """

    COMPILE = "compile"
    PACKAGE = "package"


class BuildStatus(str, Enum):
    """Terminal status of a target's build pipeline."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


class BuildResult(BaseModel):
    """Outcome of one target's build pipeline.

    Attributes:
        target: The target that was built
        status: Terminal status
        stage: Last stage reached (the failing stage on failure)
        artifact_path: Packaged zip, relative to the service directory (on success)
        message: Failure message (empty on success)
        exit_code: Exit code of the failing process, if any
        duration_ms: Pipeline duration in milliseconds

    Example:
        >>> result = BuildResult(
        ...     target=target,
        ...     status=BuildStatus.SUCCEEDED,
        ...     stage=BuildStage.PACKAGE,
        ...     artifact_path="hello/target/aarch64-unknown-linux-musl/release/hello.zip",
        ... )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    target: BuildTarget = Field(..., description="Built target")
    status: BuildStatus = Field(..., description="Terminal status")
    stage: BuildStage = Field(..., description="Last stage reached")
    artifact_path: str | None = Field(default=None, description="Packaged zip path")
    message: str = Field(default="", description="Failure message")
    exit_code: int | None = Field(default=None, description="Failing process exit code")
    duration_ms: int = Field(default=0, ge=0, description="Duration in milliseconds")

    @property
    def succeeded(self) -> bool:
        """Check if the pipeline produced an artifact."""
        return self.status == BuildStatus.SUCCEEDED

    @property
    def failed(self) -> bool:
        """Check if the pipeline failed."""
        return self.status == BuildStatus.FAILED


class BuildReport(BaseModel):
    """Aggregated result of building every target.

    Attributes:
        results: Per-target results, in target order
        started_at: When the build started
        finished_at: When the last pipeline finished
        total_duration_ms: Total duration in milliseconds
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    results: list[BuildResult] = Field(default_factory=list, description="Target results")
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Start time"
    )
    finished_at: datetime | None = Field(default=None, description="End time")
    total_duration_ms: int = Field(default=0, ge=0, description="Total duration")

    @property
    def succeeded(self) -> bool:
        """Check if every target built."""
        return bool(self.results) and all(r.succeeded for r in self.results)

    @property
    def failed_results(self) -> list[BuildResult]:
        """Results of targets that failed."""
        return [r for r in self.results if r.failed]

    @property
    def artifacts(self) -> dict[str, str]:
        """Artifact paths by function name, for successful targets."""
        return {
            r.target.function_name: r.artifact_path
            for r in self.results
            if r.succeeded and r.artifact_path is not None
        }
