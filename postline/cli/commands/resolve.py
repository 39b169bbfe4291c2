"""postline resolve / vars — Inspect a request without sending it."""

from pathlib import Path
from typing import Optional

import typer
from rich import box
from rich.table import Table

from postline.cli.commands._common import console, fail, load_workspace, open_secrets, select_request


def resolve_request(
    request: str = typer.Argument(..., help="Request name or id"),
    workspace: Optional[Path] = typer.Option(None, "--workspace", "-w", help="Workspace file"),
    env: Optional[str] = typer.Option(None, "--env", "-e", help="Environment name or id"),
):
    """Show the fully resolved request that `send` would put on the wire.

    Sensitive header values are masked.
    """
    from postline.config import PostlineConfig
    from postline.core.assembler import redact_url
    from postline.core.runner import RequestRunner
    from postline.exceptions import PostlineError
    from postline.secrets import sanitize_headers
    from postline.types import ApiKeyAuth, ApiKeyLocation

    cfg = PostlineConfig()
    ws = load_workspace(workspace)
    template, scopes = select_request(ws, request, env)
    runner = RequestRunner(secrets=open_secrets(cfg))

    try:
        resolved = runner.resolve(template, scopes)
    except PostlineError as exc:
        fail(f"{type(exc).__name__}: {exc}")

    extra = frozenset()
    shown_url = resolved.url
    if isinstance(template.auth, ApiKeyAuth):
        if template.auth.location == ApiKeyLocation.HEADER:
            extra = frozenset({runner.interpolator.interpolate(template.auth.key, runner.variables_for(scopes))})
        else:
            shown_url = f"{redact_url(resolved.url)}?***"

    console.print(f"[bold]{resolved.method.value}[/bold] {shown_url}")
    table = Table(box=box.SIMPLE, header_style="bold dim")
    table.add_column("Header", style="cyan")
    table.add_column("Value")
    for name, value in sanitize_headers(resolved.wire_headers(), extra):
        table.add_row(name, value)
    console.print(table)
    if resolved.body is not None:
        console.print(f"[dim]Body ({len(resolved.body)} bytes, {resolved.content_type})[/dim]")
        console.print(resolved.body.decode("utf-8", errors="replace"))


def list_unresolved(
    request: str = typer.Argument(..., help="Request name or id"),
    workspace: Optional[Path] = typer.Option(None, "--workspace", "-w", help="Workspace file"),
    env: Optional[str] = typer.Option(None, "--env", "-e", help="Environment name or id"),
):
    """List placeholders no scope defines. Exits 1 if any are missing."""
    from postline.core.runner import RequestRunner

    ws = load_workspace(workspace)
    template, scopes = select_request(ws, request, env)
    missing = RequestRunner().unresolved_variables(template, scopes)
    if not missing:
        console.print("[green]✓ All variables resolve[/green]")
        return
    for name in missing:
        console.print(f"[yellow]{{{{{name}}}}}[/yellow]")
    raise typer.Exit(code=1)
