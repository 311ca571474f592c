"""
Error reporting and exit codes for the boardsync CLI.

Library errors are translated into a one-line problem, an optional reason
and a suggested next step, then mapped onto an exit code.
"""

from enum import IntEnum

import typer
from rich.console import Console

from boardsync.core.exceptions import (
    BoardSyncError,
    ConfigError,
    FieldValidationError,
    ReadOnlyAccessError,
    TransportConnectionError,
)

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Exit codes of boardsync commands."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    """The API failed or could not be reached."""

    USER_ERROR = 2
    """Bad input, bad configuration or missing credentials."""


def print_error(problem: str, *, reason: str | None = None, solution: str | None = None) -> None:
    """
    Print an error to stderr.

    Example:
        >>> print_error(
        ...     "card 'abc' not found",
        ...     solution="boardsync show card <24-character id>",
        ... )
    """
    lines = [f"[red]Error:[/red] {problem}"]
    if reason:
        lines.append(f"[dim]{reason}[/dim]")
    if solution:
        lines.append(f"[cyan]→ Try:[/cyan] {solution}")
    for line in lines:
        console.print(line)


def exit_with_error(error: BoardSyncError) -> None:
    """Print a library error with guidance and exit with the matching code."""
    if isinstance(error, ConfigError):
        hint = error.context.get("hint")
        print_error(
            str(error),
            reason=str(hint) if hint else None,
            solution="boardsync config  # inspect the effective configuration",
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    if isinstance(error, ReadOnlyAccessError):
        print_error(
            str(error),
            reason="The session has an application key but no user token",
            solution="export BOARDSYNC_USER_TOKEN=...",
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    if isinstance(error, FieldValidationError):
        print_error(str(error), reason=f"Rejected by rule {error.rule}")
        raise typer.Exit(ExitCode.USER_ERROR)

    if isinstance(error, TransportConnectionError):
        print_error(
            "Could not reach the API",
            reason=str(error),
            solution="Check your network connection and BOARDSYNC_BASE_URL",
        )
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    hint = error.context.get("hint")
    print_error(str(error), reason=str(hint) if hint else None)
    raise typer.Exit(ExitCode.GENERAL_ERROR)
