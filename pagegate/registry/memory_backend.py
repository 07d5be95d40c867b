"""InMemoryRegistry: dict-backed Registry for tests and ephemeral runs.

Same uniqueness rules as SQLiteRegistry. Nothing survives a restart.
"""

from __future__ import annotations

from typing import Optional

from pagegate.registry.models import ProtectionRecord
from pagegate.registry.protocol import DuplicateRecordError, Registry
from pagegate.utils.logger import get_logger

logger = get_logger(__name__)


class InMemoryRegistry:
    """Registry kept in a dict keyed by (tenant, handle)."""

    def __init__(self, records: Optional[list[ProtectionRecord]] = None) -> None:
        self._records: dict[tuple[str, str], ProtectionRecord] = {}
        for record in records or []:
            self._records[(record.tenant, record.handle)] = record

    async def initialize(self) -> None:
        logger.debug("InMemoryRegistry.initialize", records=len(self._records))

    async def close(self) -> None:
        logger.debug("InMemoryRegistry.close")

    async def health_check(self) -> bool:
        return True

    async def find_by_tenant_and_handle(
        self, tenant: str, handle: str
    ) -> Optional[ProtectionRecord]:
        return self._records.get((tenant, handle))

    async def find_by_resource_ref(
        self, tenant: str, resource_ref: str
    ) -> Optional[ProtectionRecord]:
        for record in self._records.values():
            if record.tenant == tenant and record.resource_ref == resource_ref:
                return record
        return None

    async def list_for_tenant(self, tenant: str) -> list[ProtectionRecord]:
        records = [r for r in self._records.values() if r.tenant == tenant]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    async def create(self, record: ProtectionRecord) -> None:
        if (record.tenant, record.handle) in self._records:
            raise DuplicateRecordError(record.tenant, record.handle)
        if await self.find_by_resource_ref(record.tenant, record.resource_ref) is not None:
            raise DuplicateRecordError(record.tenant, record.handle)
        self._records[(record.tenant, record.handle)] = record

    async def delete_by_resource_ref(self, tenant: str, resource_ref: str) -> int:
        doomed = [
            key
            for key, record in self._records.items()
            if record.tenant == tenant and record.resource_ref == resource_ref
        ]
        for key in doomed:
            del self._records[key]
        return len(doomed)


# ─── Protocol compliance assertion ────────────────────────────────────────────
assert isinstance(InMemoryRegistry(), Registry), (
    "InMemoryRegistry does not satisfy Registry protocol (implementation error)"
)
