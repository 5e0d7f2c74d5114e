"""sls-rust-core: Build Rust functions for serverless deployments.

This package provides:
- ServiceDefinition: Pydantic schema for the deployment descriptor
- BuildTarget: A Rust function resolved from its handler locator
- BuildCoordinator: Compile and package every target concurrently
- Exception hierarchy for build failures
"""

from __future__ import annotations

__version__ = "0.1.0"

# Build pipeline
from sls_rust_core.builder import (
    ArtifactPackager,
    BuildCoordinator,
    BuildReport,
    BuildResult,
    BuildStage,
    BuildStatus,
    CommandRunner,
    attach_artifacts,
    build_service,
)

# Error types
from sls_rust_core.errors import (
    BuildFailedError,
    CommandError,
    CompileError,
    ConfigurationError,
    NoRustFunctionsError,
    PackageError,
    SlsRustError,
    TargetBuildError,
    WrongHandlerError,
)

# Logging
from sls_rust_core.observability import configure_logging

# Schema models
from sls_rust_core.schemas import (
    DEFAULT_RUNTIME,
    DEFAULT_TARGET_RUNTIME,
    BuildTarget,
    FunctionDefinition,
    RustConfig,
    ServiceDefinition,
    Toolchain,
)

__all__ = [
    "__version__",
    # Build pipeline
    "ArtifactPackager",
    "BuildCoordinator",
    "BuildReport",
    "BuildResult",
    "BuildStage",
    "BuildStatus",
    "CommandRunner",
    "attach_artifacts",
    "build_service",
    # Errors
    "BuildFailedError",
    "CommandError",
    "CompileError",
    "ConfigurationError",
    "NoRustFunctionsError",
    "PackageError",
    "SlsRustError",
    "TargetBuildError",
    "WrongHandlerError",
    # Logging
    "configure_logging",
    # Schemas
    "DEFAULT_RUNTIME",
    "DEFAULT_TARGET_RUNTIME",
    "BuildTarget",
    "FunctionDefinition",
    "RustConfig",
    "ServiceDefinition",
    "Toolchain",
]
