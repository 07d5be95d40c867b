"""ProtectionRecord: one protected storefront resource.

A record is keyed by (tenant, handle) for the gate and by
(tenant, resource_ref) for the management surface. Both pairs are unique.
The gate only ever reads records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ProtectionRecord:
    """A protected resource and the bcrypt hash of its unlock secret."""

    tenant: str
    """Owning storefront, e.g. 'shop1.myshopify.com'."""
    handle: str
    """Stable slug of the resource within the tenant, e.g. 'secret-page'."""
    title: str
    """Display name. Informational only."""
    secret_hash: str
    """bcrypt hash of the shared secret. Never serialised to clients."""
    resource_ref: str
    """Opaque upstream identifier, e.g. 'gid://shopify/Page/123'."""
    created_at: datetime = field(default_factory=_utcnow)

    def to_public_dict(self) -> dict[str, Any]:
        """Serialise for the management surface. The secret hash is omitted."""
        return {
            "tenant": self.tenant,
            "handle": self.handle,
            "title": self.title,
            "resource_ref": self.resource_ref,
            "created_at": self.created_at.isoformat(),
        }
