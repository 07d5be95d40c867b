"""PageGate secret hashing and admin authentication.

Public API:
  - hash_secret()         — bcrypt hash for page secrets and admin keys
  - verify_secret()       — exact bcrypt match, never raises
  - authenticate_admin()  — FastAPI Depends() dependency returning the tenant
  - SecretTooLongError    — secret beyond bcrypt's 72-byte limit
"""

from __future__ import annotations

from pagegate.auth.hashing import SecretTooLongError, hash_secret, verify_secret
from pagegate.auth.middleware import authenticate_admin

__all__ = [
    "SecretTooLongError",
    "hash_secret",
    "verify_secret",
    "authenticate_admin",
]
