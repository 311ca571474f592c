"""
boardsync CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import typer

from boardsync import __version__
from boardsync.cli import config, entities, requests
from boardsync.cli.session import setup_logging
from boardsync.core.config.env import load_layered_env

# Help panel names for command grouping
PANEL_ENTITIES = "Work with Entities"
PANEL_REQUESTS = "Held Requests"
PANEL_SETUP = "Setup"

# Create the main Typer app
app = typer.Typer(
    name="boardsync",
    help="Inspect and edit boards, cards and organizations from the terminal",
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"boardsync {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """
    boardsync - synchronizing client for board/card APIs.

    Credentials come from BOARDSYNC_APP_KEY and BOARDSYNC_USER_TOKEN, a .env
    file, .boardsync.json or ~/.config/boardsync/config.json.

    Examples:
        boardsync show card 5f1a2b3c4d5e6f7a8b9c0d1e
        boardsync set card 5f1a2b3c4d5e6f7a8b9c0d1e name "Ship it"
        boardsync set card 5f1a2b3c4d5e6f7a8b9c0d1e position top --hold
        boardsync pending
        boardsync flush
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()
    setup_logging(debug)

    # Store debug flag in context for subcommands
    ctx.obj = {"debug": debug}


app.command(name="show", rich_help_panel=PANEL_ENTITIES)(entities.show)
app.command(name="set", rich_help_panel=PANEL_ENTITIES)(entities.set_property)
app.command(name="pending", rich_help_panel=PANEL_REQUESTS)(requests.pending)
app.command(name="flush", rich_help_panel=PANEL_REQUESTS)(requests.flush)
app.command(name="config", rich_help_panel=PANEL_SETUP)(config.show_config)


def cli_main() -> None:
    """Console script entry point."""
    app()


__all__ = ["app", "cli_main"]
