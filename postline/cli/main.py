"""postline CLI — Typer application."""

import typer
from rich.console import Console

from postline.version import __version__

app = typer.Typer(
    name="postline",
    help="postline — send templated HTTP requests from a workspace file.",
    no_args_is_help=True,
    invoke_without_command=True,
)
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", is_eager=True, help="Show version"),
):
    """postline CLI."""
    if version:
        console.print(f"postline v{__version__}")
        raise typer.Exit()
    from postline.cli.commands._common import setup_logging
    from postline.config import PostlineConfig
    setup_logging(PostlineConfig())
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


# ── Requests ───────────────────────────────────────────────────────────────────
from postline.cli.commands import send, resolve, curl  # noqa: E402

app.command(name="send", help="Assemble and send a request")(send.send_request)
app.command(name="resolve", help="Show the fully resolved request without sending")(resolve.resolve_request)
app.command(name="vars", help="List variables no scope defines")(resolve.list_unresolved)
app.command(name="curl", help="Export a request as a cURL command")(curl.curl_export)

# ── History & settings ─────────────────────────────────────────────────────────
from postline.cli.commands import history, config  # noqa: E402

app.command(name="history", help="Browse, search or prune request history")(history.history_list)
app.command(name="config", help="Show resolved configuration")(config.config_show)

# ── Secrets ────────────────────────────────────────────────────────────────────
from postline.cli.commands import secret as secret_cmd  # noqa: E402

secret_app = typer.Typer(name="secret", help="Encrypted secret values.")
secret_app.command("set", help="Store a secret value")(secret_cmd.secret_set)
secret_app.command("delete", help="Remove a secret value")(secret_cmd.secret_delete)
secret_app.command("keygen", help="Print a new encryption key")(secret_cmd.secret_keygen)
app.add_typer(secret_app)


if __name__ == "__main__":
    app()
