"""postline curl — Export a request as a cURL command."""

from pathlib import Path
from typing import Optional

import typer

from postline.cli.commands._common import load_workspace, select_request


def curl_export(
    request: str = typer.Argument(..., help="Request name or id"),
    workspace: Optional[Path] = typer.Option(None, "--workspace", "-w", help="Workspace file"),
    env: Optional[str] = typer.Option(None, "--env", "-e", help="Environment name or id"),
    single_line: bool = typer.Option(False, "--single-line", "-1", help="One line instead of \\-continued lines"),
):
    """Print a cURL command for a request.

    Credentials are redacted (<token>, <password>, <api-key>) and
    secret-backed variables stay as {{name}}.

    Example:
        postline curl "Create user" --env staging | pbcopy
    """
    from postline.core.runner import RequestRunner

    ws = load_workspace(workspace)
    template, scopes = select_request(ws, request, env)
    # plain print: rich markup would eat [brackets] in URLs and bodies
    typer.echo(RequestRunner().curl(template, scopes, multiline=not single_line))
