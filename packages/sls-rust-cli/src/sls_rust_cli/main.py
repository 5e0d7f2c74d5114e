"""CLI entry point for sls-rust.

``sls-rust --help`` lists every command without importing the build
pipeline; a command's module is imported the first time it is looked up.
"""

from __future__ import annotations

import importlib
from collections.abc import Mapping
from typing import Any

import click
import rich_click as rclick

from sls_rust_cli import __version__
from sls_rust_cli.output import set_no_color

rclick.rich_click.TEXT_MARKUP = "markdown"
rclick.rich_click.SHOW_ARGUMENTS = True
rclick.rich_click.OPTION_GROUPS = {
    "sls-rust build": [
        {"name": "Descriptor", "options": ["--file", "--output", "--write"]},
        {"name": "Toolchain", "options": ["--cross", "--target-runtime", "--max-workers"]},
        {"name": "Output", "options": ["--verbose", "--log-level", "--log-format"]},
    ],
}

LAZY_COMMANDS = {
    "build": "sls_rust_cli.commands.build.build",
    "validate": "sls_rust_cli.commands.validate.validate",
}


class LazyGroup(rclick.RichGroup):
    """Rich group whose subcommands are imported on first lookup.

    Attributes:
        lazy_subcommands: Command name to ``module.attribute`` path.
    """

    def __init__(
        self,
        *args: Any,
        lazy_subcommands: Mapping[str, str] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.lazy_subcommands: dict[str, str] = dict(lazy_subcommands or {})

    def list_commands(self, ctx: click.Context) -> list[str]:
        return sorted({*super().list_commands(ctx), *self.lazy_subcommands})

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Return a command, importing and registering it on first use."""
        if cmd_name in self.lazy_subcommands and cmd_name not in self.commands:
            self.add_command(self._load(cmd_name), cmd_name)
        return super().get_command(ctx, cmd_name)  # type: ignore[arg-type]

    def _load(self, cmd_name: str) -> click.Command:
        import_path = self.lazy_subcommands[cmd_name]
        module_name, _, attr_name = import_path.rpartition(".")
        command = getattr(importlib.import_module(module_name), attr_name)
        if not isinstance(command, click.Command):
            raise TypeError(f"{import_path} is not a click command")
        return command


def _disable_color(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    if value:
        set_no_color(True)


@click.command(cls=LazyGroup, lazy_subcommands=LAZY_COMMANDS)
@click.version_option(version=__version__, prog_name="sls-rust")
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    is_eager=True,
    expose_value=False,
    callback=_disable_color,
    help="Disable colored output.",
)
def cli() -> None:
    """sls-rust - Build Rust functions for serverless deployments.

    Cross-compiles every function tagged `rust: true` in serverless.yml,
    packages each binary as a `bootstrap` zip, and points the function at it.

    **Getting Started:**

    - `sls-rust validate` - Check handlers and show the build plan
    - `sls-rust build` - Build every Rust function and update serverless.yml
    """


if __name__ == "__main__":
    cli()
