"""Build pipeline for Rust functions.

Compiles each target with cross/cargo, packages the executable into a
deployable zip, and coordinates all targets concurrently.
"""

from __future__ import annotations

from sls_rust_core.builder.coordinator import BuildCoordinator, attach_artifacts, build_service
from sls_rust_core.builder.models import BuildReport, BuildResult, BuildStage, BuildStatus
from sls_rust_core.builder.output import (
    format_plan_table,
    format_report_table,
    print_process_line,
)
from sls_rust_core.builder.packager import BOOTSTRAP_ENTRY, ArtifactPackager
from sls_rust_core.builder.toolchain import CommandRunner, build_command

__all__ = [
    "BOOTSTRAP_ENTRY",
    "ArtifactPackager",
    "BuildCoordinator",
    "BuildReport",
    "BuildResult",
    "BuildStage",
    "BuildStatus",
    "CommandRunner",
    "attach_artifacts",
    "build_command",
    "build_service",
    "format_plan_table",
    "format_report_table",
    "print_process_line",
]
