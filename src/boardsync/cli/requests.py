"""
boardsync CLI - held request commands.

Inspect and send the requests persisted by ``boardsync set --hold``.
"""

import json
from concurrent.futures import wait

import typer
from rich.console import Console
from rich.table import Table

from boardsync.cli import session
from boardsync.cli.errors import ExitCode, exit_with_error, print_error
from boardsync.core.exceptions import BoardSyncError
from boardsync.core.requests import QueuedRequest, RequestState

console = Console()


def _failure(request: QueuedRequest) -> str | None:
    """Why a request has to stay in the queue file; None once it was (or may have been) sent."""
    future = request.future
    if future.cancelled():
        return "cancelled"
    if not future.done():
        return "not sent" if request.state is RequestState.QUEUED else None
    error = future.exception()
    return str(error) if error is not None else None


def pending() -> None:
    """List requests held in the queue file."""
    try:
        config = session.load_settings()
        store = session.queue_store(config)
        requests = store.load()
    except BoardSyncError as e:
        exit_with_error(e)
        return

    if not requests:
        console.print("[dim]No pending requests[/dim]")
        return

    table = Table(title=f"Pending requests ({store.path})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Method", style="cyan")
    table.add_column("Endpoint")
    table.add_column("Body")
    table.add_column("Result")
    for index, request in enumerate(requests, start=1):
        table.add_row(
            str(index),
            request.method.value,
            request.endpoint,
            json.dumps(request.body) if request.body is not None else "-",
            request.result_type or "-",
        )
    console.print(table)


def flush(
    timeout: float = typer.Option(
        60.0,
        "--timeout",
        help="Seconds to wait for the requests to complete",
    ),
) -> None:
    """
    Send held requests.

    Sent requests are removed from the queue file. Failed requests and those
    never dispatched before the timeout stay for the next flush; a request
    still in flight at shutdown is dropped so it is never sent twice.
    """
    try:
        config = session.load_settings()
        store = session.queue_store(config)
        persisted = store.load()
        if not persisted:
            console.print("[dim]No pending requests[/dim]")
            return

        with session.open_service(config) as service:
            restored = service.restore_requests(persisted)
            wait([r.future for r in restored], timeout=timeout)
    except BoardSyncError as e:
        exit_with_error(e)
        return

    # Outcomes are final once the service is closed
    failed = []
    in_flight = 0
    for p, r in zip(persisted, restored):
        if r.state is RequestState.DISPATCHED and not r.future.done():
            console.print(
                f"[yellow]?[/yellow] {p.method.value} {p.endpoint}: still in flight, not kept"
            )
            in_flight += 1
            continue
        reason = _failure(r)
        if reason is not None:
            failed.append(p)
            console.print(f"[red]✗[/red] {p.method.value} {p.endpoint}: {reason}")

    if failed:
        store.save(failed)
        print_error(
            f"{len(failed)} of {len(persisted)} request(s) not sent",
            solution="boardsync flush  # retry the remaining requests",
        )
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    store.clear()
    console.print(f"[green]✓[/green] Sent {len(persisted) - in_flight} request(s)")
