"""Load a workspace file (YAML or JSON) into validated pydantic models.

Search order:
  1. Explicit path argument
  2. ./postline.yaml, ./postline.yml or ./postline.json in current working directory
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from postline.config.schema import WorkspaceFile
from postline.exceptions import WorkspaceFileError

_CANDIDATES = ("postline.yaml", "postline.yml", "postline.json")


def _find_file(explicit: Optional[Path]) -> Path:
    """Locate workspace file: explicit > cwd."""
    if explicit is not None:
        p = Path(explicit)
        if not p.exists():
            raise WorkspaceFileError(f"Workspace file not found: {p}", path=str(p))
        return p

    for name in _CANDIDATES:
        cwd_path = Path.cwd() / name
        if cwd_path.exists():
            return cwd_path

    raise WorkspaceFileError(
        "No postline.yaml found. Create one in your project directory "
        "or pass --workspace PATH."
    )


def load_workspace_file(path: Optional[Path] = None) -> WorkspaceFile:
    """Load a workspace file → WorkspaceFile.

    JSON files go through the same YAML parser (JSON is valid YAML).

    Raises:
        WorkspaceFileError: file missing, not parseable, or fails validation.
    """
    resolved = _find_file(path)
    try:
        raw = yaml.safe_load(resolved.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise WorkspaceFileError(f"Cannot parse {resolved}: {exc}", path=str(resolved)) from exc

    try:
        return WorkspaceFile.model_validate(raw or {})
    except ValidationError as exc:
        raise WorkspaceFileError(
            f"Invalid workspace file {resolved}: {exc.error_count()} validation error(s)",
            path=str(resolved),
            details={"errors": exc.errors(include_url=False)},
        ) from exc
