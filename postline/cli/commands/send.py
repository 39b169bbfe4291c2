"""postline send — Assemble a request from the workspace file and send it."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich import box
from rich.panel import Panel
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from postline.cli.commands._common import (
    console, err_console, fail, load_workspace, open_secrets, select_request,
)
from postline.core.assembler import redact_url

logger = logging.getLogger(__name__)

_STATUS_COLOR = {2: "green", 3: "cyan", 4: "yellow", 5: "red"}


async def _send(request_name: str, workspace_path: Optional[Path], env_name: Optional[str], record: bool):
    from postline.callbacks import LoggingCallback
    from postline.config import PostlineConfig
    from postline.core.runner import RequestRunner
    from postline.history import HistoryRecorder
    from postline.transport import TransportExecutor

    cfg = PostlineConfig()
    ws = load_workspace(workspace_path)
    template, scopes = select_request(ws, request_name, env_name)

    settings = ws.workspace.settings
    transport = TransportExecutor(
        cfg,
        timeout_seconds=settings.timeout_ms / 1000,
        follow_redirects=settings.follow_redirects,
        verify_ssl=settings.validate_ssl,
    )

    history = engine = None
    if record:
        try:
            history, engine = await HistoryRecorder.open(cfg)
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("History disabled for this send: %s", exc, exc_info=True)
            err_console.print(f"[yellow]⚠ History unavailable, sending without it:[/yellow] {type(exc).__name__}")
    try:
        runner = RequestRunner(
            transport=transport,
            history=history,
            secrets=open_secrets(cfg),
            callbacks=[LoggingCallback()],
        )
        missing = runner.unresolved_variables(template, scopes)
        if missing:
            console.print(f"[yellow]⚠ Unresolved variables:[/yellow] {', '.join(missing)}")
        outcome = await runner.send(template, scopes, workspace_id=ws.workspace.id)
    finally:
        if engine is not None:
            await engine.dispose()
    return template, outcome


def send_request(
    request: str = typer.Argument(..., help="Request name or id"),
    workspace: Optional[Path] = typer.Option(None, "--workspace", "-w", help="Workspace file (default: ./postline.yaml)"),
    env: Optional[str] = typer.Option(None, "--env", "-e", help="Environment name or id"),
    no_history: bool = typer.Option(False, "--no-history", help="Do not record this send"),
    show_headers: bool = typer.Option(False, "--headers", "-H", help="Print response headers"),
):
    """Send a request and print the response.

    Example:
        postline send "List users" --env staging
    """
    template, outcome = asyncio.run(_send(request, workspace, env, not no_history))

    if outcome.error is not None:
        fail(f"{outcome.error_type}: {outcome.error}")

    response = outcome.response
    color = _STATUS_COLOR.get(response.status_code // 100, "white")
    console.print(Panel(
        f"[bold {color}]{response.status_code} {response.reason}[/bold {color}]  "
        f"[dim]{response.formatted_duration} · {response.formatted_size}[/dim]\n"
        f"[dim]{template.method.value} {redact_url(response.url)}[/dim]",
        title=f"[bold]{template.name}[/bold]",
        border_style=color,
    ))

    if show_headers:
        table = Table(box=box.SIMPLE, header_style="bold dim")
        table.add_column("Header", style="cyan")
        table.add_column("Value")
        for name, value in response.headers:
            table.add_row(name, value)
        console.print(table)

    console.print(response.pretty_body())
    if not response.is_success:
        raise typer.Exit(code=2)
