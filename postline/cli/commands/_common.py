"""Helpers shared by CLI commands: workspace loading, scopes, secrets, errors."""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from postline.config import PostlineConfig, load_workspace_file
from postline.config.schema import WorkspaceFile
from postline.core.scopes import ScopeSet
from postline.exceptions import PostlineError
from postline.secrets import SecretEncryption, SecretStore
from postline.types import RequestTemplate

console = Console()
err_console = Console(stderr=True)


def setup_logging(cfg: PostlineConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def fail(message: str, code: int = 1) -> None:
    err_console.print(f"[bold red]✗[/bold red] {message}")
    raise typer.Exit(code=code)


def load_workspace(path: Optional[Path]) -> WorkspaceFile:
    try:
        return load_workspace_file(path)
    except PostlineError as exc:
        fail(str(exc))


def open_secrets(cfg: PostlineConfig) -> SecretStore:
    try:
        return SecretStore(SecretEncryption(cfg.secret_encryption_key), path=Path(cfg.secrets_path))
    except PostlineError as exc:
        fail(str(exc))


def select_request(
    ws: WorkspaceFile,
    request_name: str,
    env_name: Optional[str],
) -> tuple[RequestTemplate, ScopeSet]:
    """Find the request and build its four scopes, or exit with a message."""
    template = ws.find_request(request_name)
    if template is None:
        fail(f"Request not found: {request_name}")
    environment = ws.find_environment(env_name)
    if env_name and environment is None:
        fail(f"Environment not found: {env_name}")
    scopes = ScopeSet.for_request(
        template,
        environment=environment,
        workspace=ws.workspace,
        collection=ws.find_collection(template.collection_id),
    )
    return template, scopes
