"""Registry Protocol + registry exceptions.

ProtectionRecord is defined in pagegate/registry/models.py.
This module defines the pluggable store interface and its error types.

Layout:
    models.py         — ProtectionRecord
    protocol.py       — Registry Protocol + exceptions
    memory_backend.py — InMemoryRegistry (tests, ephemeral runs)
    sqlite_backend.py — SQLiteRegistry (aiosqlite, WAL mode, version guard)
    factory.py        — create_registry(), backend selection from config
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from pagegate.registry.models import ProtectionRecord


# ─── Exceptions ───────────────────────────────────────────────────────────────


class RegistryError(Exception):
    """Base class for registry failures raised to management callers."""


class DuplicateRecordError(RegistryError):
    """Raised when (tenant, handle) or (tenant, resource_ref) is already protected."""

    def __init__(self, tenant: str, handle: str) -> None:
        super().__init__(f"Resource '{handle}' is already protected for tenant '{tenant}'")
        self.tenant = tenant
        self.handle = handle


# ─── Registry Protocol ────────────────────────────────────────────────────────


@runtime_checkable
class Registry(Protocol):
    """Durable mapping (tenant, handle) → ProtectionRecord.

    Implementations: SQLiteRegistry (default), InMemoryRegistry.
    Selection via create_registry() (registry/factory.py).

    The gate service only calls find_by_tenant_and_handle(). Every other
    method belongs to the management surface. Lookups may raise on backing
    store failure; callers decide whether that fails open or closed.
    """

    async def initialize(self) -> None:
        """Open connections and create/verify schema."""
        ...

    async def close(self) -> None:
        """Release connections. Called during graceful shutdown."""
        ...

    async def health_check(self) -> bool:
        """Return True if the store is operational. Must not raise."""
        ...

    async def find_by_tenant_and_handle(
        self, tenant: str, handle: str
    ) -> Optional[ProtectionRecord]:
        """Return the record for (tenant, handle), or None."""
        ...

    async def find_by_resource_ref(
        self, tenant: str, resource_ref: str
    ) -> Optional[ProtectionRecord]:
        """Return the record protecting resource_ref for tenant, or None."""
        ...

    async def list_for_tenant(self, tenant: str) -> list[ProtectionRecord]:
        """Return all records for tenant, newest first."""
        ...

    async def create(self, record: ProtectionRecord) -> None:
        """Insert a record. Raises DuplicateRecordError on a uniqueness clash."""
        ...

    async def delete_by_resource_ref(self, tenant: str, resource_ref: str) -> int:
        """Delete records for (tenant, resource_ref). Returns rows removed."""
        ...
