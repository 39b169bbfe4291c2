"""postline secret — Store and remove encrypted secret values.

Workspace variables point at secrets with ``secret_ref.secret_id``; the
value set here is what they resolve to at send time.
"""

import typer

from postline.cli.commands._common import console, open_secrets


def secret_set(
    secret_id: str = typer.Argument(..., help="secret_id referenced by a workspace variable"),
    service: str = typer.Option("postline.secrets", "--service", help="Secret namespace"),
):
    """Encrypt and store a secret value (read from a hidden prompt).

    Example:
        postline secret set 3f6c...-api-token
    """
    from postline.config import PostlineConfig
    from postline.types import SecretRef

    value = typer.prompt("Secret value", hide_input=True, confirmation_prompt=True)
    store = open_secrets(PostlineConfig())
    store.store(value, SecretRef(secret_id=secret_id, service=service))
    console.print(f"[green]✓[/green] Stored secret [cyan]{secret_id}[/cyan]")


def secret_delete(
    secret_id: str = typer.Argument(..., help="secret_id to remove"),
    service: str = typer.Option("postline.secrets", "--service", help="Secret namespace"),
):
    """Remove a stored secret. Removing a missing secret is not an error."""
    from postline.config import PostlineConfig
    from postline.types import SecretRef

    ref = SecretRef(secret_id=secret_id, service=service)
    store = open_secrets(PostlineConfig())
    existed = store.exists(ref)
    store.delete(ref)
    if existed:
        console.print(f"[green]✓[/green] Deleted secret [cyan]{secret_id}[/cyan]")
    else:
        console.print(f"[yellow]No secret stored under {secret_id}[/yellow]")


def secret_keygen():
    """Print a new value for POSTLINE_SECRET_ENCRYPTION_KEY.

    Example:
        echo "POSTLINE_SECRET_ENCRYPTION_KEY=$(postline secret keygen)" >> .env
    """
    from postline.secrets import SecretEncryption

    typer.echo(SecretEncryption.generate_key())
