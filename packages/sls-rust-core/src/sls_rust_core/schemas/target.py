"""Build target model.

A BuildTarget is one Rust function resolved from its handler locator
(``project_path.project_name``). Targets are immutable for the duration of a
build.
"""

from __future__ import annotations

from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field

from sls_rust_core.errors import WrongHandlerError

HANDLER_SEPARATOR = "."


def parse_handler(handler: str, *, function_name: str | None = None) -> tuple[str, str]:
    """Split a handler locator into project path and project name.

    The locator is split on its first separator; anything after it is the
    project name.

    Args:
        handler: Handler string from the function definition.
        function_name: Function name, used in the error message.

    Returns:
        Tuple of (project_path, project_name).

    Raises:
        WrongHandlerError: If the separator is missing or either half is empty.

    Example:
        >>> parse_handler("svc-a.handler_a")
        ('svc-a', 'handler_a')
    """
    project_path, separator, project_name = handler.partition(HANDLER_SEPARATOR)
    if not separator or not project_path or not project_name:
        raise WrongHandlerError(handler, function_name=function_name)
    return project_path, project_name


class BuildTarget(BaseModel):
    """One buildable Rust function.

    Attributes:
        function_name: Function key in the deployment descriptor
        handler: Raw handler locator
        project_path: Cargo project directory, relative to the service directory
        project_name: Binary name from Cargo.toml
        index: Ordinal of the target, used only to label output

    Example:
        >>> target = BuildTarget.from_handler("hello", "hello_dir.hello", index=0)
        >>> target.project_path
        'hello_dir'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    function_name: str = Field(..., min_length=1, description="Function name")
    handler: str = Field(..., description="Handler locator")
    project_path: str = Field(..., min_length=1, description="Cargo project directory")
    project_name: str = Field(..., min_length=1, description="Binary name")
    index: int = Field(default=0, ge=0, description="Display ordinal")

    @classmethod
    def from_handler(cls, function_name: str, handler: str, *, index: int = 0) -> BuildTarget:
        """Create a target from a function's handler locator.

        Raises:
            WrongHandlerError: If the handler is malformed.
        """
        project_path, project_name = parse_handler(handler, function_name=function_name)
        return cls(
            function_name=function_name,
            handler=handler,
            project_path=project_path,
            project_name=project_name,
            index=index,
        )

    def release_dir(self, target_runtime: str) -> PurePosixPath:
        """Toolchain output directory, relative to the service directory."""
        return PurePosixPath(self.project_path, "target", target_runtime, "release")

    def artifact_path(self, target_runtime: str) -> PurePosixPath:
        """Path of the packaged zip, relative to the service directory."""
        return self.release_dir(target_runtime) / f"{self.project_name}.zip"
