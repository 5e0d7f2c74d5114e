"""Deployment descriptor model.

Loads a ``serverless.yml``-style document, validates the parts this package
relies on, and enumerates the Rust build targets. Everything else in the
document is preserved so the descriptor can be written back after artifacts
are attached.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)

from sls_rust_core.errors import ConfigurationError
from sls_rust_core.schemas.config import RustConfig
from sls_rust_core.schemas.function import FunctionDefinition
from sls_rust_core.schemas.target import BuildTarget

SUPPORTED_PROVIDER = "aws"

NULLABLE_SECTIONS = ("rust", "functions")


class ProviderConfig(BaseModel):
    """Descriptor ``provider:`` section.

    Attributes:
        name: Cloud provider name
    """

    model_config = ConfigDict(extra="allow")

    name: str = Field(default=SUPPORTED_PROVIDER, description="Cloud provider name")


class ServiceDefinition(BaseModel):
    """Deployment descriptor.

    Attributes:
        service: Service name
        provider: Provider section
        rust: Rust build configuration (top-level ``rust:`` section)
        functions: Function definitions by name, in document order

    Example:
        >>> service = ServiceDefinition.from_yaml("serverless.yml")
        >>> [t.project_name for t in service.build_targets()]
        ['hello']
    """

    model_config = ConfigDict(extra="allow")

    service: str | None = Field(default=None, description="Service name")
    provider: ProviderConfig = Field(default_factory=ProviderConfig, description="Provider")
    rust: RustConfig = Field(default_factory=RustConfig, description="Rust build config")
    functions: dict[str, FunctionDefinition] = Field(
        default_factory=dict,
        description="Function definitions",
    )
    _null_sections: frozenset[str] = PrivateAttr(default_factory=frozenset)

    @field_validator("rust", "functions", mode="before")
    @classmethod
    def _null_section_is_empty(cls, value: Any) -> Any:
        """An empty YAML section (``rust:`` with nothing below) means defaults."""
        return {} if value is None else value

    @model_validator(mode="wrap")
    @classmethod
    def _remember_null_sections(
        cls, data: Any, handler: ValidatorFunctionWrapHandler
    ) -> ServiceDefinition:
        """Record sections written as bare keys so they are written back that way."""
        service = handler(data)
        if isinstance(data, dict):
            service._null_sections = frozenset(
                key for key in NULLABLE_SECTIONS if key in data and data[key] is None
            )
        return service  # type: ignore[no-any-return]

    @property
    def is_supported_provider(self) -> bool:
        """Whether the provider is one this build targets."""
        return self.provider.name == SUPPORTED_PROVIDER

    def rust_function_names(self) -> list[str]:
        """Names of functions tagged for the Rust build, in document order."""
        return [name for name, fn in self.functions.items() if fn.is_rust]

    def build_targets(self) -> list[BuildTarget]:
        """Resolve every Rust function into a build target.

        Returns:
            Targets in document order, indexed from 0.

        Raises:
            WrongHandlerError: If any Rust function has a malformed handler.
        """
        return [
            BuildTarget.from_handler(name, self.functions[name].handler, index=index)
            for index, name in enumerate(self.rust_function_names())
        ]

    @classmethod
    def from_yaml(cls, path: str | Path) -> ServiceDefinition:
        """Load and validate a descriptor from a YAML file.

        Args:
            path: Path to serverless.yml.

        Returns:
            Validated ServiceDefinition instance.

        Raises:
            FileNotFoundError: If file doesn't exist.
            yaml.YAMLError: If YAML syntax is invalid.
            ConfigurationError: If the document is not a mapping.
            pydantic.ValidationError: If schema validation fails.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        with path.open("r") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ConfigurationError(
                "Deployment descriptor must be a YAML mapping",
                file_path=str(path),
            )

        return cls.model_validate(data)

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to descriptor form, keeping only keys that were set."""
        data = self.model_dump(mode="json", by_alias=True, exclude_unset=True)
        for key in self._null_sections:
            if data.get(key) == {}:
                data[key] = None
        return data

    def to_yaml(self, path: str | Path) -> Path:
        """Write the descriptor to a YAML file.

        Args:
            path: Destination path.

        Returns:
            The path written.
        """
        path = Path(path)
        with path.open("w") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False, default_flow_style=False)
        return path
