"""
Console helpers for status messages.

Status output goes to stderr through rich so stdout stays clean for JSON,
YAML and name listings. Respects NO_COLOR and FORCE_COLOR.
"""

from __future__ import annotations

import os

from rich.console import Console
from rich.theme import Theme

# Nord color palette (https://www.nordtheme.com/)
VPCCTL_THEME = Theme(
    {
        "info": "#88C0D0",  # Nord frost - light blue
        "success": "#A3BE8C",  # Nord aurora - green
        "warning": "#EBCB8B",  # Nord aurora - yellow
        "error": "#BF616A bold",  # Nord aurora - red
        "muted": "#D8DEE9",  # Nord snow storm - light grey
    }
)

console = Console(
    theme=VPCCTL_THEME,
    stderr=True,
    force_terminal=os.environ.get("FORCE_COLOR") is not None,
    no_color=os.environ.get("NO_COLOR") is not None,
)


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]✓ {message}[/success]")


def error(message: str) -> None:
    """Print an error message."""
    console.print(f"[error]✗ {message}[/error]")


def warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[warning]⚠ {message}[/warning]")


def info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]ℹ {message}[/info]")
