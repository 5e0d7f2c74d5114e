"""sls-rust build command - Build every Rust function.

Loads serverless.yml, compiles and packages every function tagged
``rust: true``, and writes the descriptor back with each function pointing
at its artifact.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import click

from sls_rust_cli import output
from sls_rust_cli.commands._service import load_service
from sls_rust_cli.errors import (
    handle_permission_error,
    handle_sls_rust_error,
    handle_write_error,
)


@dataclass
class BuildOptions:
    """Grouped build CLI options."""

    file_path: str
    output_path: str | None
    write: bool
    use_cross: bool | None
    target_runtime: str | None
    max_workers: int | None
    verbose: bool
    log_level: str
    log_format: str


def _run_build(opts: BuildOptions) -> None:
    """Build the service described by ``opts.file_path``.

    Raises:
        CLIError: On any failure, with the exit code for the failure kind.
    """
    from sls_rust_core.builder import CommandRunner, build_service, format_report_table
    from sls_rust_core.errors import BuildFailedError, SlsRustError
    from sls_rust_core.observability import configure_logging

    configure_logging(log_level=opts.log_level, json_format=opts.log_format == "json")

    path = Path(opts.file_path)
    service = load_service(path)
    config = service.rust.with_overrides(
        use_cross=opts.use_cross,
        target_runtime=opts.target_runtime,
        max_workers=opts.max_workers,
        verbose=opts.verbose or None,
    )

    if opts.verbose:
        output.info(
            f"Building Rust functions for {config.target_runtime}"
            f"{' using cross' if config.use_cross else '...'}"
        )

    runner = CommandRunner(verbose=config.verbose, sink=output.print_process_line)

    try:
        report = build_service(
            service,
            config=config,
            base_dir=path.parent,
            runner=runner,
        )
    except BuildFailedError as e:
        format_report_table(e.report, console=output.console)
        handle_sls_rust_error(e)
    except SlsRustError as e:
        handle_sls_rust_error(e)

    if report is None:
        output.warning(
            f"Provider '{service.provider.name}' is not supported; skipping Rust build."
        )
        return

    format_report_table(report, console=output.console)

    if opts.write:
        destination = Path(opts.output_path) if opts.output_path else path
        try:
            service.to_yaml(destination)
        except PermissionError:
            handle_permission_error(str(destination), "write")
        except OSError as e:
            handle_write_error(str(destination), e)
        output.info(f"Updated {destination}")

    output.success("finished building all rust functions!")


@click.command()
@click.option(
    "-f",
    "--file",
    "file_path",
    type=click.Path(exists=False),
    default="./serverless.yml",
    help="Path to serverless.yml [default: ./serverless.yml]",
)
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(),
    default=None,
    help="Write the updated descriptor here instead of overwriting --file",
)
@click.option(
    "--write/--no-write",
    default=True,
    help="Write the updated descriptor [default: write]",
)
@click.option(
    "--cross/--no-cross",
    "use_cross",
    default=None,
    help="Compile with cross (default) or the native cargo toolchain",
)
@click.option(
    "--target-runtime",
    type=str,
    default=None,
    help="Target triple [default: aarch64-unknown-linux-musl]",
)
@click.option(
    "--max-workers",
    type=click.IntRange(min=1),
    default=None,
    help="Build at most this many functions at once [default: all at once]",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=False,
    help="Stream toolchain output, prefixed by project name",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Structured log level [default: WARNING]",
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default="console",
    help="Structured log format [default: console]",
)
def build(
    file_path: str,
    output_path: str | None,
    write: bool,
    use_cross: bool | None,
    target_runtime: str | None,
    max_workers: int | None,
    verbose: bool,
    log_level: str,
    log_format: str,
) -> None:
    """Build every Rust function in serverless.yml.

    Each function tagged `rust: true` with handler `project_path.project_name`
    is compiled for the target runtime, packaged as a zip holding a single
    `bootstrap` executable, and its `package.artifact` is set to that zip.

    Options given here override the `rust:` section of serverless.yml.

    Examples:

        sls-rust build

        sls-rust build --no-cross --target-runtime x86_64-unknown-linux-musl

        sls-rust build --verbose --max-workers 2
    """
    opts = BuildOptions(
        file_path=file_path,
        output_path=output_path,
        write=write,
        use_cross=use_cross,
        target_runtime=target_runtime,
        max_workers=max_workers,
        verbose=verbose,
        log_level=log_level,
        log_format=log_format,
    )
    _run_build(opts)
