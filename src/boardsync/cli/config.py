"""
boardsync CLI - config command.
"""

import typer
from rich.console import Console

from boardsync.cli import session
from boardsync.cli.errors import exit_with_error
from boardsync.core.config import get_project_config_path, get_user_config_path
from boardsync.core.exceptions import BoardSyncError

console = Console()


def show_config(
    paths: bool = typer.Option(False, "--paths", help="Also show the config file locations"),
) -> None:
    """Print the effective configuration (credentials masked)."""
    try:
        config = session.load_settings()
    except BoardSyncError as e:
        exit_with_error(e)
        return

    console.print_json(data=config.masked())
    if paths:
        console.print(f"[dim]User config:[/dim] {get_user_config_path()}")
        console.print(f"[dim]Project config:[/dim] {get_project_config_path()}")
