"""Application configuration + workspace file loader for postline.

All env vars defined here with POSTLINE_ prefix.
Workspace loader: load_workspace_file()
"""

from pydantic_settings import BaseSettings

from postline.config.loader import load_workspace_file
from postline.config.schema import WorkspaceFile


class PostlineConfig(BaseSettings):
    # ── App ──
    app_name: str = "postline"
    debug: bool = False
    log_level: str = "INFO"

    # ── Transport ──
    request_timeout_seconds: float = 30.0
    request_timeout_ceiling_seconds: float = 60.0   # hard cap, whatever the workspace asks for
    follow_redirects: bool = True
    verify_ssl: bool = True
    response_size_limit_kb: int = 10240

    # ── History ──
    database_url: str = "sqlite+aiosqlite:///./postline-history.db"
    history_max_entries: int = 1000
    history_retention_days: int = 30

    # ── Secrets ──
    secret_encryption_key: str = ""                 # 32-byte Fernet key
    secrets_path: str = "./.postline-secrets.json"  # encrypted values only

    # ── Workspace ──
    default_workspace_file: str = "postline.yaml"

    model_config = {"env_prefix": "POSTLINE_", "env_file": ".env", "extra": "ignore"}


config = PostlineConfig()


__all__ = [
    "PostlineConfig",
    "config",
    "load_workspace_file",
    "WorkspaceFile",
]
