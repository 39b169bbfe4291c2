"""postline config — Show resolved postline configuration."""

from rich import box
from rich.table import Table

from postline.cli.commands._common import console


def config_show():
    """Show the resolved postline configuration.

    Reads from environment variables and .env file.
    The encryption key is masked.

    Example:
        postline config
    """
    from postline.config import PostlineConfig
    cfg = PostlineConfig()

    def mask(val: str) -> str:
        if not val:
            return "[dim](not set, secrets live only in memory)[/dim]"
        if len(val) <= 8:
            return "***"
        return val[:4] + "…" + "***"

    table = Table(
        box=box.ROUNDED,
        header_style="bold dim",
        show_lines=False,
        title="[bold]postline Configuration[/bold]",
    )
    table.add_column("Key", style="cyan", width=32)
    table.add_column("Value", width=45)
    table.add_column("Env Var", style="dim", width=42)

    sections = [
        ("App", ["debug", "log_level"]),
        ("Transport", [
            "request_timeout_seconds",
            "request_timeout_ceiling_seconds",
            "follow_redirects",
            "verify_ssl",
            "response_size_limit_kb",
        ]),
        ("History", ["database_url", "history_max_entries", "history_retention_days"]),
        ("Secrets", ["secret_encryption_key", "secrets_path"]),
        ("Workspace", ["default_workspace_file"]),
    ]

    first = True
    for section_name, fields in sections:
        if not first:
            table.add_row("", "", "")
        first = False
        table.add_row(f"[bold dim]── {section_name} ──[/bold dim]", "", "")
        for attr in fields:
            val = getattr(cfg, attr)
            display = mask(val) if attr == "secret_encryption_key" else str(val)
            table.add_row(f"  {attr}", display, f"POSTLINE_{attr.upper()}")

    console.print()
    console.print(table)
    console.print()
    console.print("[dim]Source: environment variables + .env file (prefix: POSTLINE_)[/dim]")
