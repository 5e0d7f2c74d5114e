"""Build output formatters.

Labelled process output for verbose builds, and Rich tables for build
reports and build plans.
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from sls_rust_core.builder.models import BuildReport, BuildResult
from sls_rust_core.schemas.target import BuildTarget

LABEL_COLORS = ("blue", "yellow", "green", "red", "cyan", "magenta")

_console = Console(stderr=True, highlight=False)


def color_for_index(index: int) -> str:
    """Color used to label output of the target at ``index``.

    Example:
        >>> color_for_index(7)
        'yellow'
    """
    if index < 0:
        return LABEL_COLORS[0]
    return LABEL_COLORS[index % len(LABEL_COLORS)]


def print_process_line(label: str, line: str, index: int, console: Console | None = None) -> None:
    """Print one line of toolchain output prefixed by its project label.

    Args:
        label: Project name.
        line: Output line (without trailing newline).
        index: Target ordinal.
        console: Optional Rich console (defaults to stderr).
    """
    target_console = console or _console
    color = color_for_index(index)
    target_console.print(f"[{color}]{escape(label)} |[/{color}] {escape(line)}")


def _status_text(result: BuildResult) -> Text:
    if result.succeeded:
        return Text("✓", style="green")
    return Text("✗", style="red")


def format_report_table(report: BuildReport, console: Console | None = None) -> None:
    """Format a build report as a Rich table.

    Args:
        report: BuildReport to display
        console: Optional Rich console (creates one if not provided)
    """
    if console is None:
        console = Console()

    table = Table(show_header=True, header_style="bold", title="Rust functions")
    table.add_column("Status", width=6, justify="center")
    table.add_column("Function", min_width=12)
    table.add_column("Stage", width=8)
    table.add_column("Artifact / Error", min_width=30)
    table.add_column("Duration", justify="right", width=10)

    for result in report.results:
        detail = result.artifact_path if result.succeeded else result.message
        table.add_row(
            _status_text(result),
            Text(result.target.function_name, style=color_for_index(result.target.index)),
            result.stage.value,
            Text(detail or "-", style="" if result.succeeded else "red"),
            f"{result.duration_ms}ms" if result.duration_ms > 0 else "-",
        )

    console.print(table)


def format_plan_table(
    targets: Sequence[BuildTarget],
    target_runtime: str,
    console: Console | None = None,
) -> None:
    """Format the build plan (targets and where their artifacts will land).

    Args:
        targets: Resolved build targets
        target_runtime: Target triple
        console: Optional Rich console (creates one if not provided)
    """
    if console is None:
        console = Console()

    table = Table(show_header=True, header_style="bold", title="Build plan")
    table.add_column("#", justify="right", width=3)
    table.add_column("Function", min_width=12)
    table.add_column("Project path", min_width=12)
    table.add_column("Project name", min_width=12)
    table.add_column("Artifact", min_width=30)

    for target in targets:
        table.add_row(
            str(target.index),
            Text(target.function_name, style=color_for_index(target.index)),
            target.project_path,
            target.project_name,
            target.artifact_path(target_runtime).as_posix(),
        )

    console.print(table)
