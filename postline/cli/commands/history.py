"""postline history — Browse, search, and prune request history."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich import box
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from postline.cli.commands._common import console, fail, load_workspace

_STATUS_COLOR = {2: "green", 3: "cyan", 4: "yellow", 5: "red"}


async def _history(
    workspace_id: str,
    search: str,
    status: Optional[str],
    days: Optional[int],
    limit: int,
    clear: bool,
    prune: bool,
) -> None:
    from postline.config import PostlineConfig
    from postline.exceptions import HistoryError
    from postline.history import HistoryRecorder
    from postline.types import DateRange, StatusFilter

    status_filter = None
    if status:
        try:
            status_filter = StatusFilter(status.lower())
        except ValueError:
            fail(f"Unknown status filter '{status}' (use 2xx, 3xx, 4xx or 5xx)")

    try:
        recorder, engine = await HistoryRecorder.open(PostlineConfig())
    except (SQLAlchemyError, OSError) as exc:
        fail(f"History database unavailable: {exc}")
    try:
        if clear:
            removed = await recorder.clear(workspace_id)
            console.print(f"[green]Cleared {removed} history entr{'y' if removed == 1 else 'ies'}[/green]")
            return
        if prune:
            removed = await recorder.prune()
            console.print(f"[green]Pruned {removed} history entr{'y' if removed == 1 else 'ies'}[/green]")
            return

        if search or status_filter or days:
            date_range = DateRange.last_days(days) if days else None
            entries = await recorder.search(workspace_id, search, status_filter, date_range)
            entries = entries[:limit]
        else:
            entries = await recorder.fetch(workspace_id, limit)
    except HistoryError as exc:
        fail(str(exc))
    finally:
        await engine.dispose()

    if not entries:
        console.print("[yellow]No history yet.[/yellow]")
        return

    table = Table(box=box.ROUNDED, header_style="bold dim", title="[bold]Request History[/bold]")
    table.add_column("When", style="dim", width=19)
    table.add_column("Method", width=7)
    table.add_column("Name", style="cyan")
    table.add_column("URL")
    table.add_column("Status", justify="right")
    table.add_column("Time", justify="right", style="dim")
    for e in entries:
        if e.status_code is None:
            status_cell = "[red]failed[/red]"
        else:
            color = _STATUS_COLOR.get(e.status_code // 100, "white")
            status_cell = f"[{color}]{e.status_code}[/{color}]"
        table.add_row(
            e.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            e.method,
            e.request_name,
            e.url,
            status_cell,
            f"{e.duration_ms} ms" if e.status_code is not None else "",
        )
    console.print(table)


def history_list(
    workspace: Optional[Path] = typer.Option(None, "--workspace", "-w", help="Workspace file"),
    search: str = typer.Option("", "--search", "-s", help="Match URL or request name"),
    status: Optional[str] = typer.Option(None, "--status", help="2xx, 3xx, 4xx or 5xx"),
    days: Optional[int] = typer.Option(None, "--days", help="Only the last N days"),
    limit: int = typer.Option(100, "--limit", "-n", help="Max entries to show"),
    clear: bool = typer.Option(False, "--clear", help="Delete this workspace's history"),
    prune: bool = typer.Option(False, "--prune", help="Apply retention (age and max entries)"),
):
    """Show recent sends for the workspace.

    Example:
        postline history --status 5xx --days 7
    """
    ws = load_workspace(workspace)
    asyncio.run(_history(ws.workspace.id, search, status, days, limit, clear, prune))
