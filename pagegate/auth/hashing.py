"""bcrypt hashing for page secrets and admin keys.

Page secrets are never stored in clear text. The management surface hashes a
secret once at creation time; the gate verifies submissions against the stored
hash with ``bcrypt.checkpw`` (which compares in constant time).

Non-negotiables:
  - Plaintext secrets NEVER written to the registry and NEVER logged.
  - Secrets longer than 72 bytes are refused at creation (bcrypt truncates
    silently on older releases and raises on newer ones). At verification time
    they simply never match.
  - ``verify_secret`` never raises; a malformed hash is a non-match.
"""

from __future__ import annotations

import bcrypt

from pagegate.constants import BCRYPT_MAX_SECRET_BYTES, DEFAULT_BCRYPT_ROUNDS
from pagegate.utils.logger import get_logger

logger = get_logger(__name__)


class SecretTooLongError(ValueError):
    """Raised when a secret exceeds bcrypt's 72-byte input limit."""

    def __init__(self, length: int) -> None:
        super().__init__(
            f"Secret is {length} bytes; the maximum is {BCRYPT_MAX_SECRET_BYTES} bytes"
        )
        self.length = length


def hash_secret(secret: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Return the bcrypt hash of ``secret`` as a str.

    Raises:
        ValueError:         If the secret is empty.
        SecretTooLongError: If the UTF-8 encoded secret exceeds 72 bytes.
    """
    if not secret:
        raise ValueError("Secret must not be empty")
    encoded = secret.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_SECRET_BYTES:
        raise SecretTooLongError(len(encoded))
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_secret(secret: str, secret_hash: str) -> bool:
    """Return True only if ``secret`` matches ``secret_hash`` exactly.

    No trimming or case folding. Empty, oversized or unverifiable input → False.
    """
    if not secret or not secret_hash:
        return False
    encoded = secret.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_SECRET_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, secret_hash.encode("ascii"))
    except ValueError as exc:
        logger.warning("bcrypt verify error", error=str(exc))
        return False
