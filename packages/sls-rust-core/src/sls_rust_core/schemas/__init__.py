"""Schemas for the deployment descriptor and build targets."""

from __future__ import annotations

from sls_rust_core.schemas.config import (
    DEFAULT_RUNTIME,
    DEFAULT_TARGET_RUNTIME,
    RustConfig,
    Toolchain,
)
from sls_rust_core.schemas.function import FunctionDefinition, PackageConfig
from sls_rust_core.schemas.service import ProviderConfig, ServiceDefinition
from sls_rust_core.schemas.target import BuildTarget, parse_handler

__all__ = [
    "DEFAULT_RUNTIME",
    "DEFAULT_TARGET_RUNTIME",
    "BuildTarget",
    "FunctionDefinition",
    "PackageConfig",
    "ProviderConfig",
    "RustConfig",
    "ServiceDefinition",
    "Toolchain",
    "parse_handler",
]
