"""Console output helpers for consistent CLI feedback.

Console functions (success, error, info, warning, plain) are for the person
at the terminal; structured logging (``logger.*``) is for troubleshooting.
"""

from __future__ import annotations

from enum import Enum

import typer


class OutputColor(str, Enum):
    """Valid color options for plain text output."""

    WHITE = "WHITE"
    CYAN = "CYAN"
    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "RED"


def success(message: str, *, prefix: bool = True) -> None:
    """Display a success message in green with checkmark emoji.

    Example:
        success("Chart written to gdp.svg")
        # Output: ✅ Chart written to gdp.svg
    """
    formatted = f"✅ {message}" if prefix else message
    typer.secho(formatted, fg=typer.colors.GREEN)


def error(message: str, *, prefix: bool = True, err: bool = True) -> None:
    """Display an error message in red with cross emoji (stderr by default)."""
    formatted = f"❌ {message}" if prefix else message
    typer.secho(formatted, fg=typer.colors.RED, err=err)


def info(message: str, *, prefix: bool = True) -> None:
    formatted = f"ℹ️  {message}" if prefix else message
    typer.secho(formatted, fg=typer.colors.CYAN)


def warning(message: str, *, prefix: bool = True) -> None:
    formatted = f"⚠️  {message}" if prefix else message
    typer.secho(formatted, fg=typer.colors.YELLOW)


def plain(message: str, *, color: OutputColor | None = None) -> None:
    """Display a plain message without emoji prefix, optionally colored."""
    if color:
        typer.secho(message, fg=getattr(typer.colors, color.value))
    else:
        typer.echo(message)
