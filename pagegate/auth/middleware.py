"""Admin authentication for the PageGate management surface.

Provides ``authenticate_admin()``: a FastAPI Depends()-compatible async
dependency that resolves the calling tenant from request headers.

Headers:
  X-PageGate-Tenant:    the storefront being administered (required)
  X-PageGate-Admin-Key: that tenant's admin key, verified against the bcrypt
                        hash configured under admin.keys.<tenant>

The tenant used by every management operation is the authenticated one,
never a value from the request body.

Auth control:
  - PAGEGATE_AUTH_REQUIRED=true  → key verification enforced (default)
  - PAGEGATE_AUTH_REQUIRED=false → key not checked; tenant header still
                                   required (testing/dev only)
"""

from __future__ import annotations

import asyncio
import os

from fastapi import HTTPException, Request

from pagegate.auth.hashing import verify_secret
from pagegate.utils.logger import get_logger

logger = get_logger(__name__)

TENANT_HEADER = "X-PageGate-Tenant"
ADMIN_KEY_HEADER = "X-PageGate-Admin-Key"


def _is_auth_required() -> bool:
    """Read PAGEGATE_AUTH_REQUIRED per request so tests can monkeypatch it."""
    return os.environ.get("PAGEGATE_AUTH_REQUIRED", "true").lower() == "true"


async def authenticate_admin(request: Request) -> str:
    """FastAPI dependency: authenticate the admin key and return the tenant.

    Raises:
        HTTPException(401): Missing tenant, missing key, unknown tenant or wrong key.
    """
    tenant = request.headers.get(TENANT_HEADER, "").strip()
    if not tenant:
        logger.warning("Admin authentication failed: no tenant", path=str(request.url.path))
        raise HTTPException(status_code=401, detail="Missing tenant header")

    if not _is_auth_required():
        return tenant

    key = request.headers.get(ADMIN_KEY_HEADER)
    if not key:
        logger.warning(
            "Admin authentication failed: no admin key",
            tenant=tenant,
            path=str(request.url.path),
        )
        raise HTTPException(status_code=401, detail="Missing admin key")

    config = getattr(request.app.state, "config", None)
    key_hash = config.admin.keys.get(tenant) if config is not None else None

    # bcrypt is CPU-bound; keep it off the event loop.
    valid = bool(key_hash) and await asyncio.to_thread(verify_secret, key, key_hash)
    if not valid:
        logger.warning(
            "Admin authentication failed: invalid key",
            tenant=tenant,
            path=str(request.url.path),
        )
        raise HTTPException(status_code=401, detail="Invalid admin key")

    return tenant
