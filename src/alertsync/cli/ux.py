"""
Console output helpers built on rich.

Respects NO_COLOR and FORCE_COLOR; anything that is meant to be piped
(rendered YAML) goes to stdout unstyled via ``print_yaml``.
"""

from __future__ import annotations

import os

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.theme import Theme

# Nord palette
ALERTSYNC_THEME = Theme(
    {
        "info": "#88C0D0",
        "success": "#A3BE8C",
        "warning": "#EBCB8B",
        "error": "#BF616A bold",
        "muted": "#D8DEE9",
    }
)

console = Console(
    theme=ALERTSYNC_THEME,
    force_terminal=os.environ.get("FORCE_COLOR") is not None,
    no_color=os.environ.get("NO_COLOR") is not None,
)

# Status messages go to stderr so stdout stays machine readable.
err_console = Console(
    theme=ALERTSYNC_THEME,
    stderr=True,
    force_terminal=os.environ.get("FORCE_COLOR") is not None,
    no_color=os.environ.get("NO_COLOR") is not None,
)


def success(message: str) -> None:
    """Print a success message."""
    err_console.print(f"[success]✓ {message}[/success]")


def error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]✗ {message}[/error]")


def warning(message: str) -> None:
    err_console.print(f"[warning]⚠ {message}[/warning]")


def info(message: str) -> None:
    err_console.print(f"[info]ℹ {message}[/info]")


def header(title: str) -> None:
    """Print a boxed section header."""
    err_console.print(Panel(title, style="info", expand=False))


def print_yaml(document: str) -> None:
    """Print a YAML document, highlighted only on a terminal."""
    if console.is_terminal:
        console.print(Syntax(document.rstrip("\n"), "yaml", background_color="default"))
    else:
        console.print(document, end="", markup=False, highlight=False, soft_wrap=True)
