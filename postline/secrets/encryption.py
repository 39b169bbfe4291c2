"""Fernet cipher for values behind SecretRef handles.

The store keeps only ciphertext. Plaintext exists transiently while a
request is assembled, and never in logs or exceptions.
"""

import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from postline.exceptions import SecretError

logger = logging.getLogger(__name__)


class SecretEncryption:
    """Encrypts secret values with one Fernet key.

    Args:
        key: URL-safe base64 Fernet key, normally ``POSTLINE_SECRET_ENCRYPTION_KEY``.
            Empty means a throwaway key for this process only; ``ephemeral``
            is then True and anything written to a secrets file cannot be
            read back by the next run.
    """

    def __init__(self, key: str = "") -> None:
        self.ephemeral = not key
        if self.ephemeral:
            self._fernet = Fernet(Fernet.generate_key())
            logger.warning(
                "No POSTLINE_SECRET_ENCRYPTION_KEY set; secrets are encrypted with a "
                "per-process key and will not resolve after exit. "
                "Generate one with SecretEncryption.generate_key()."
            )
            return
        try:
            self._fernet = Fernet(key.encode("ascii"))
        except (ValueError, TypeError) as exc:
            raise SecretError(f"POSTLINE_SECRET_ENCRYPTION_KEY is not a valid Fernet key: {exc}") from exc

    @staticmethod
    def generate_key() -> str:
        """A fresh key suitable for ``POSTLINE_SECRET_ENCRYPTION_KEY``."""
        return Fernet.generate_key().decode("ascii")

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str, secret_id: Optional[str] = None) -> str:
        """Plaintext of *ciphertext*.

        Raises:
            SecretError: wrong key (e.g. the key changed since the secret was
                stored) or a tampered value. ``secret_id`` is attached when given.
        """
        try:
            return self._fernet.decrypt(ciphertext.encode("ascii")).decode("utf-8")
        except InvalidToken as exc:
            label = f"Secret '{secret_id}'" if secret_id else "Secret"
            raise SecretError(
                f"{label} cannot be decrypted with the current key",
                secret_id=secret_id or "",
            ) from exc
