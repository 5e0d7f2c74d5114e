"""sls-rust validate command - Check handlers and show the build plan."""

from __future__ import annotations

from pathlib import Path

import click

from sls_rust_cli import output
from sls_rust_cli.commands._service import load_service
from sls_rust_cli.errors import handle_sls_rust_error


@click.command()
@click.option(
    "-f",
    "--file",
    "file_path",
    type=click.Path(exists=False),
    default="./serverless.yml",
    help="Path to serverless.yml [default: ./serverless.yml]",
)
def validate(file_path: str) -> None:
    """Validate Rust function definitions without building.

    Resolves every function tagged `rust: true` into its project path and
    name, and shows where each artifact will be written. No process is
    started.

    Examples:

        sls-rust validate

        sls-rust validate --file path/to/serverless.yml
    """
    from sls_rust_core.builder.output import format_plan_table
    from sls_rust_core.errors import NoRustFunctionsError, SlsRustError

    path = Path(file_path)
    service = load_service(path)

    if not service.is_supported_provider:
        output.warning(
            f"Provider '{service.provider.name}' is not supported; nothing would be built."
        )
        return

    try:
        targets = service.build_targets()
        if not targets:
            raise NoRustFunctionsError()
    except SlsRustError as e:
        handle_sls_rust_error(e)

    format_plan_table(targets, service.rust.target_runtime, console=output.console)
    output.success(
        f"{len(targets)} Rust function(s) valid, "
        f"toolchain: {service.rust.toolchain.value}, target: {service.rust.target_runtime}"
    )
