"""SecretStore — encrypted key/value vault addressed by SecretRef.

Workspace files only ever hold SecretRef handles. The plaintext lives here,
encrypted, and is handed to the scope merger at assembly time. Nothing in
this module logs a secret value.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from postline.exceptions import SecretError, SecretNotFound
from postline.secrets.encryption import SecretEncryption
from postline.types import SecretRef

logger = logging.getLogger(__name__)


def _slot(ref: SecretRef) -> str:
    return f"{ref.service}/{ref.secret_id}"


class SecretStore:
    """Encrypted secret storage, in memory with optional JSON file backing.

    Args:
        encryption: A configured :class:`SecretEncryption` instance.
        path: If given, ciphertexts are loaded from and written back to this
            JSON file after every change.
    """

    def __init__(self, encryption: SecretEncryption, path: Optional[Path] = None) -> None:
        self._enc = encryption
        self._path = Path(path) if path else None
        self._store: dict[str, str] = {}
        if self._path and self._path.exists():
            try:
                self._store = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                raise SecretError(f"Cannot read secret file {self._path}: {exc}") from exc

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def store(self, secret: str, ref: Optional[SecretRef] = None) -> SecretRef:
        """Encrypt and save *secret*, replacing any value already under *ref*.

        Returns the reference to persist in place of the value.
        """
        ref = ref or SecretRef()
        self._store[_slot(ref)] = self._enc.encrypt(secret)
        self._flush()
        logger.debug("[Secrets] Stored secret %s", ref.secret_id)
        return ref

    def retrieve(self, ref: SecretRef) -> str:
        """Decrypt the secret behind *ref*.

        Raises:
            SecretNotFound: nothing stored under *ref*.
            SecretError: decryption failure.
        """
        ciphertext = self._store.get(_slot(ref))
        if ciphertext is None:
            raise SecretNotFound(f"Secret '{ref.secret_id}' not found", secret_id=ref.secret_id)
        return self._enc.decrypt(ciphertext, secret_id=ref.secret_id)

    def resolve(self, ref: SecretRef) -> Optional[str]:
        """Plaintext for *ref*, or None when nothing is stored under it."""
        try:
            return self.retrieve(ref)
        except SecretNotFound:
            return None

    def delete(self, ref: SecretRef) -> None:
        """Remove the secret behind *ref*. Deleting a missing secret is not an error."""
        if self._store.pop(_slot(ref), None) is not None:
            self._flush()
            logger.debug("[Secrets] Deleted secret %s", ref.secret_id)

    def exists(self, ref: SecretRef) -> bool:
        return _slot(ref) in self._store

    def _flush(self) -> None:
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._store, indent=2), encoding="utf-8")
        except OSError as exc:
            raise SecretError(f"Cannot write secret file {self._path}: {exc}") from exc


# Header names whose values must never reach logs or printed output.
_SENSITIVE_HEADERS: frozenset[str] = frozenset({
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "api-key",
    "x-auth-token",
})


def sanitize_headers(
    headers: list[tuple[str, str]],
    extra: frozenset[str] = frozenset(),
) -> list[tuple[str, str]]:
    """Return a copy of *headers* with sensitive values replaced by ``'***'``.

    *extra* adds header names (case-insensitive), e.g. a custom API-key header.
    """
    hidden = _SENSITIVE_HEADERS | {name.lower() for name in extra}
    return [(k, "***" if k.lower() in hidden else v) for k, v in headers]
