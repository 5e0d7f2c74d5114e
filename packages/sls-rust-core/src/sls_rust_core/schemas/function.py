"""Function definition model.

Typed view over one entry of the descriptor's ``functions:`` mapping. Keys
this package does not use are kept as extras so the descriptor round-trips.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

RUST_TAG = "rust"


class PackageConfig(BaseModel):
    """Per-function ``package:`` section.

    Attributes:
        artifact: Path of the prebuilt artifact to deploy
    """

    model_config = ConfigDict(extra="allow")

    artifact: str | None = Field(default=None, description="Prebuilt artifact path")


class FunctionDefinition(BaseModel):
    """One function of the deployment descriptor.

    Attributes:
        handler: Handler locator (``project_path.project_name`` for Rust functions)
        runtime: Managed runtime identifier
        package: Packaging section, receives the artifact path
        tags: Free-form tags; ``rust: true`` marks the function for this build

    Example:
        >>> fn = FunctionDefinition(handler="hello.hello", tags={"rust": "true"})
        >>> fn.is_rust
        True
    """

    model_config = ConfigDict(extra="allow")

    handler: str = Field(default="", description="Handler locator")
    runtime: str | None = Field(default=None, description="Managed runtime identifier")
    package: PackageConfig | None = Field(default=None, description="Packaging section")
    tags: dict[str, Any] = Field(default_factory=dict, description="Function tags")

    @property
    def is_rust(self) -> bool:
        """Whether the function is tagged for the Rust build.

        Accepts a YAML boolean or the string "true" (any case), since
        provider tags are strings once deployed.
        """
        value = self.tags.get(RUST_TAG)
        if isinstance(value, bool):
            return value
        return isinstance(value, str) and value.strip().lower() == "true"

    def attach_artifact(self, artifact_path: str, default_runtime: str) -> None:
        """Point the function at a packaged artifact.

        Args:
            artifact_path: Path of the packaged zip.
            default_runtime: Runtime to set when the function declares none.
        """
        if self.package is None:
            self.package = PackageConfig()
        self.package.artifact = artifact_path
        if self.runtime is None:
            self.runtime = default_runtime
