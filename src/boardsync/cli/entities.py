"""
boardsync CLI - entity commands.

Show an entity's properties or write one of them.
"""

from datetime import datetime
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from boardsync.cli import session
from boardsync.cli.errors import ExitCode, exit_with_error, print_error
from boardsync.core.entities import Entity, Position, list_entity_kinds
from boardsync.core.exceptions import BoardSyncError
from boardsync.core.sync.values import parse_datetime

console = Console()

_NULL_WORDS = ("null", "none")
_TRUE_WORDS = ("true", "yes", "1")
_FALSE_WORDS = ("false", "no", "0")


def _check_kind(kind: str) -> str:
    kind = kind.lower()
    if kind not in list_entity_kinds():
        print_error(
            f"Unknown entity kind '{kind}'",
            solution=f"Use one of: {', '.join(list_entity_kinds())}",
        )
        raise typer.Exit(ExitCode.USER_ERROR)
    return kind


def format_value(value: Any) -> str:
    """Render a property value for display."""
    if value is None:
        return "[dim]-[/dim]"
    if isinstance(value, Entity):
        return value.context.identifier
    if isinstance(value, Position):
        return str(value.to_json())
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, list):
        return ", ".join(str(v) for v in value) or "[dim]-[/dim]"
    return str(value)


def coerce_value(name: str, raw: str, current: Any) -> Any:
    """
    Convert a command-line string to the type a property holds.

    ``null``/``none`` clear the property; positions and dates are parsed;
    booleans follow the current value's type.
    """
    if raw.lower() in _NULL_WORDS:
        return None
    if name == "position":
        try:
            return Position(raw)
        except ValueError as e:
            raise typer.BadParameter(f"'{raw}' is not a position (top, bottom or a number)") from e
    if isinstance(current, bool):
        lowered = raw.lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        raise typer.BadParameter(f"'{raw}' is not a boolean")
    if isinstance(current, datetime) or name.endswith("_date"):
        try:
            return parse_datetime(raw)
        except ValueError as e:
            raise typer.BadParameter(f"'{raw}' is not an ISO-8601 date") from e
    return raw


def _retrieve(service: Any, kind: str, identifier: str) -> Entity:
    entity = service.retrieve(kind, identifier)
    if entity is None:
        print_error(f"{kind} '{identifier}' not found")
        raise typer.Exit(ExitCode.USER_ERROR)
    return entity  # type: ignore[no-any-return]


def show(
    kind: Annotated[str, typer.Argument(help="Entity kind (card, board, organization, ...)")],
    identifier: Annotated[str, typer.Argument(help="Identifier, name or username")],
) -> None:
    """
    Show an entity's properties.

    Examples:
        boardsync show card 5f1a2b3c4d5e6f7a8b9c0d1e
        boardsync show organization acme_inc
    """
    kind = _check_kind(kind)
    try:
        config = session.load_settings()
        with session.open_service(config) as service:
            entity = _retrieve(service, kind, identifier)
            table = Table(title=f"{kind} {entity.context.identifier}", show_header=False)
            table.add_column("Property", style="cyan")
            table.add_column("Value")
            for name, field in entity.fields.items():
                table.add_row(name, format_value(field.get()))
            console.print(table)
    except BoardSyncError as e:
        exit_with_error(e)


def set_property(
    kind: Annotated[str, typer.Argument(help="Entity kind")],
    identifier: Annotated[str, typer.Argument(help="Identifier, name or username")],
    name: Annotated[str, typer.Argument(help="Property name, e.g. name or position")],
    value: Annotated[str, typer.Argument(help="New value ('null' clears it)")],
    hold: Annotated[
        bool,
        typer.Option("--hold", help="Persist the write to the queue file instead of sending it"),
    ] = False,
) -> None:
    """
    Write one property of an entity.

    Examples:
        boardsync set card 5f1a2b3c4d5e6f7a8b9c0d1e name "Ship it"
        boardsync set card 5f1a2b3c4d5e6f7a8b9c0d1e position top --hold
    """
    kind = _check_kind(kind)
    try:
        config = session.load_settings()
        with session.open_service(config) as service:
            entity = _retrieve(service, kind, identifier)
            try:
                field = entity.field(name)
            except KeyError as e:
                print_error(str(e.args[0]))
                raise typer.Exit(ExitCode.USER_ERROR) from e

            new_value = coerce_value(name, value, field.get())

            if hold:
                service.hold_requests()
                field.set(new_value)
                entity.context.schedule_submit()
                pending = service.get_unsent_requests()
                store = session.queue_store(config)
                store.append(pending)
                console.print(
                    f"[yellow]Held[/yellow] {len(pending)} request(s) in {store.path}"
                )
                return

            field.set(new_value)
            entity.submit()
            console.print(f"[green]✓[/green] {kind}.{name} = {format_value(field.get())}")
    except BoardSyncError as e:
        exit_with_error(e)
