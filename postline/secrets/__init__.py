"""Secret store: encrypted values addressed by opaque SecretRef handles."""

from postline.secrets.encryption import SecretEncryption
from postline.secrets.store import SecretStore, sanitize_headers

__all__ = ["SecretEncryption", "SecretStore", "sanitize_headers"]
