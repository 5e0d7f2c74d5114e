"""Rust build configuration model.

Read from the optional top-level ``rust:`` section of the deployment
descriptor and overridable from the command line.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

DEFAULT_TARGET_RUNTIME = "aarch64-unknown-linux-musl"
"""Target triple used when the descriptor does not name one."""

DEFAULT_RUNTIME = "provided.al2"
"""Managed runtime identifier set on functions that do not declare one."""


class Toolchain(str, Enum):
    """External toolchain used to compile a target.

    Attributes:
        CROSS: Sandboxed cross-compilation wrapper (``cross``)
        CARGO: Native toolchain (``cargo``)
    """

    CROSS = "cross"
    CARGO = "cargo"


class RustConfig(BaseModel):
    """Configuration for building Rust functions.

    Attributes:
        use_cross: Compile with ``cross`` instead of ``cargo``
        target_runtime: Target triple passed to ``--target``
        max_workers: Maximum number of targets built at once (None = all at once)
        verbose: Stream toolchain output, prefixed by project name

    Example:
        >>> config = RustConfig.model_validate({"useCross": False})
        >>> config.toolchain
        <Toolchain.CARGO: 'cargo'>
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    use_cross: bool = Field(
        default=True,
        alias="useCross",
        description="Compile with cross instead of cargo",
    )
    target_runtime: str = Field(
        default=DEFAULT_TARGET_RUNTIME,
        alias="targetRuntime",
        min_length=1,
        description="Target triple",
    )
    max_workers: int | None = Field(
        default=None,
        alias="maxWorkers",
        ge=1,
        description="Concurrency cap (unbounded when unset)",
    )
    verbose: bool = Field(default=False, description="Stream toolchain output")

    @field_validator("use_cross", "target_runtime", mode="before")
    @classmethod
    def _null_means_default(cls, value: Any, info: ValidationInfo) -> Any:
        """Treat explicit nulls in YAML as "use the default"."""
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @property
    def toolchain(self) -> Toolchain:
        """Toolchain selected by ``use_cross``."""
        return Toolchain.CROSS if self.use_cross else Toolchain.CARGO

    def with_overrides(self, **overrides: Any) -> RustConfig:
        """Return a copy with the non-None overrides applied.

        Args:
            **overrides: Field values (by field name); None values are ignored.

        Returns:
            New RustConfig instance.

        Example:
            >>> RustConfig().with_overrides(use_cross=False, target_runtime=None).use_cross
            False
        """
        update = {key: value for key, value in overrides.items() if value is not None}
        if not update:
            return self
        return RustConfig.model_validate({**self.model_dump(), **update})
