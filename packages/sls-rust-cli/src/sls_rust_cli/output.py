"""Console output for sls-rust-cli.

All user-facing text goes through the module-level Rich ``console`` so that
``--no-color`` and ``NO_COLOR`` apply everywhere, including the labelled
toolchain lines streamed from build threads.
"""

from __future__ import annotations

import os
from typing import Any

from rich.console import Console


def _color_disabled_by_env() -> bool:
    return "NO_COLOR" in os.environ


def create_console(no_color: bool = False) -> Console:
    """Create the CLI console.

    Args:
        no_color: Disable color. ``NO_COLOR`` in the environment does the same.

    Returns:
        Console writing to stdout without automatic highlighting.
    """
    disabled = no_color or _color_disabled_by_env()
    return Console(
        force_terminal=False if disabled else None,
        no_color=disabled,
        highlight=False,
    )


console = create_console()


def set_no_color(no_color: bool) -> None:
    """Replace the module console (used by the ``--no-color`` flag)."""
    global console
    console = create_console(no_color=no_color)


def _emit(mark: str | None, message: str, **kwargs: Any) -> None:
    console.print(f"{mark} {message}" if mark else message, **kwargs)


def success(message: str, **kwargs: Any) -> None:
    """Print ``✓ message``.

    Example:
        >>> success("finished building all rust functions!")
        ✓ finished building all rust functions!
    """
    _emit("[green]✓[/green]", message, **kwargs)


def error(message: str, **kwargs: Any) -> None:
    """Print ``✗ message``."""
    _emit("[red]✗[/red]", message, **kwargs)


def warning(message: str, **kwargs: Any) -> None:
    """Print ``⚠ message``."""
    _emit("[yellow]⚠[/yellow]", message, **kwargs)


def info(message: str, **kwargs: Any) -> None:
    _emit(None, message, **kwargs)


def print_process_line(label: str, line: str, index: int) -> None:
    """Toolchain output sink bound to the CLI console.

    Args:
        label: Project name.
        line: Output line.
        index: Target ordinal (selects the label color).
    """
    from sls_rust_core.builder.output import print_process_line as _print

    _print(label, line, index, console=console)
