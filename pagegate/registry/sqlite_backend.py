"""SQLiteRegistry: aiosqlite-based protection-record store.

Uses aiosqlite EXCLUSIVELY; no synchronous sqlite3 calls on the event loop.

Features:
  - WAL mode: PRAGMA journal_mode=WAL (concurrent reads while the management
    surface writes)
  - Schema version guard: PRAGMA user_version=1, RuntimeError on mismatch,
    refuse startup
  - Long-lived connection: opened in initialize(), closed in close()
  - UNIQUE(tenant, handle) and UNIQUE(tenant, resource_ref); a clash raises
    DuplicateRecordError
  - File permissions 0600 (the file holds secret hashes)
"""

from __future__ import annotations

import os
from datetime import datetime
from typing import Optional

import aiosqlite

from pagegate.registry.models import ProtectionRecord
from pagegate.registry.protocol import DuplicateRecordError
from pagegate.utils.logger import get_logger

logger = get_logger(__name__)

# ─── Schema DDL ───────────────────────────────────────────────────────────────

_CREATE_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS protected_pages (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    tenant          TEXT NOT NULL,
    handle          TEXT NOT NULL,
    title           TEXT NOT NULL,
    secret_hash     TEXT NOT NULL,
    resource_ref    TEXT NOT NULL,
    created_at      TEXT NOT NULL,
    UNIQUE (tenant, handle),
    UNIQUE (tenant, resource_ref)
);

CREATE INDEX IF NOT EXISTS idx_protected_tenant_created
    ON protected_pages(tenant, created_at DESC);
"""

_SCHEMA_VERSION = 1

_SELECT_COLUMNS = "tenant, handle, title, secret_hash, resource_ref, created_at"


# ─── Row deserialiser ─────────────────────────────────────────────────────────


def _row_to_record(row: aiosqlite.Row) -> ProtectionRecord:
    """Convert an aiosqlite Row to a ProtectionRecord (created_at: ISO 8601 → datetime)."""
    return ProtectionRecord(
        tenant=row["tenant"],
        handle=row["handle"],
        title=row["title"],
        secret_hash=row["secret_hash"],
        resource_ref=row["resource_ref"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


# ─── SQLiteRegistry ───────────────────────────────────────────────────────────


class SQLiteRegistry:
    """Async SQLite registry using aiosqlite exclusively.

    Usage:
        registry = SQLiteRegistry(db_path="~/.pagegate/registry.db")
        await registry.initialize()   # raises RuntimeError on schema version mismatch
        record = await registry.find_by_tenant_and_handle("shop1", "secret-page")
        await registry.close()
    """

    def __init__(self, db_path: str = "~/.pagegate/registry.db") -> None:
        self._db_path: str = os.path.expanduser(db_path)
        self._db: Optional[aiosqlite.Connection] = None

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def initialize(self) -> None:
        """Open the connection, enable WAL mode, and create/verify schema.

        Raises:
            RuntimeError: If PRAGMA user_version is neither 0 nor 1.
        """
        parent_dir = os.path.dirname(self._db_path)
        if parent_dir:
            os.makedirs(parent_dir, exist_ok=True)

        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row

        await self._db.execute("PRAGMA journal_mode=WAL;")

        cursor = await self._db.execute("PRAGMA user_version;")
        row = await cursor.fetchone()
        current_version: int = row[0] if row else 0

        if current_version == 0:
            await self._db.executescript(_CREATE_SCHEMA_SQL)
            await self._db.execute(f"PRAGMA user_version = {_SCHEMA_VERSION};")
            await self._db.commit()
            logger.info(
                "registry_schema_created",
                db_path=self._db_path,
                schema_version=_SCHEMA_VERSION,
            )
        elif current_version == _SCHEMA_VERSION:
            logger.info(
                "registry_schema_ok",
                db_path=self._db_path,
                schema_version=current_version,
            )
        else:
            await self._db.close()
            self._db = None
            raise RuntimeError(
                f"Unsupported registry database schema version: {current_version}. "
                f"Delete {self._db_path} to reset or migrate it manually."
            )

        if os.path.exists(self._db_path):
            os.chmod(self._db_path, 0o600)

    async def close(self) -> None:
        """Close the aiosqlite connection gracefully."""
        if self._db is not None:
            await self._db.close()
            self._db = None
            logger.debug("registry_db_closed", db_path=self._db_path)

    async def health_check(self) -> bool:
        """Returns True if the DB connection is alive and queryable."""
        try:
            assert self._db is not None
            await self._db.execute("SELECT 1")
            return True
        except Exception:
            return False

    # ── Reads ─────────────────────────────────────────────────────────────────

    async def find_by_tenant_and_handle(
        self, tenant: str, handle: str
    ) -> Optional[ProtectionRecord]:
        assert self._db is not None, "Database not initialized; call initialize() first"
        cursor = await self._db.execute(
            f"SELECT {_SELECT_COLUMNS} FROM protected_pages WHERE tenant = ? AND handle = ?",
            (tenant, handle),
        )
        row = await cursor.fetchone()
        return _row_to_record(row) if row is not None else None

    async def find_by_resource_ref(
        self, tenant: str, resource_ref: str
    ) -> Optional[ProtectionRecord]:
        assert self._db is not None, "Database not initialized; call initialize() first"
        cursor = await self._db.execute(
            f"SELECT {_SELECT_COLUMNS} FROM protected_pages "
            "WHERE tenant = ? AND resource_ref = ?",
            (tenant, resource_ref),
        )
        row = await cursor.fetchone()
        return _row_to_record(row) if row is not None else None

    async def list_for_tenant(self, tenant: str) -> list[ProtectionRecord]:
        assert self._db is not None, "Database not initialized; call initialize() first"
        cursor = await self._db.execute(
            f"SELECT {_SELECT_COLUMNS} FROM protected_pages "
            "WHERE tenant = ? ORDER BY created_at DESC",
            (tenant,),
        )
        rows = await cursor.fetchall()
        return [_row_to_record(row) for row in rows]

    # ── Writes (management surface only) ──────────────────────────────────────

    async def create(self, record: ProtectionRecord) -> None:
        """Insert a record.

        Raises:
            DuplicateRecordError: If (tenant, handle) or (tenant, resource_ref)
                                  is already present.
        """
        assert self._db is not None, "Database not initialized; call initialize() first"
        try:
            await self._db.execute(
                """INSERT INTO protected_pages
                   (tenant, handle, title, secret_hash, resource_ref, created_at)
                   VALUES (?,?,?,?,?,?)""",
                (
                    record.tenant,
                    record.handle,
                    record.title,
                    record.secret_hash,
                    record.resource_ref,
                    record.created_at.isoformat(),
                ),
            )
            await self._db.commit()
        except aiosqlite.IntegrityError as exc:
            await self._db.rollback()
            raise DuplicateRecordError(record.tenant, record.handle) from exc

        logger.info(
            "registry_record_created",
            tenant=record.tenant,
            handle=record.handle,
            resource_ref=record.resource_ref,
        )

    async def delete_by_resource_ref(self, tenant: str, resource_ref: str) -> int:
        assert self._db is not None, "Database not initialized; call initialize() first"
        cursor = await self._db.execute(
            "DELETE FROM protected_pages WHERE tenant = ? AND resource_ref = ?",
            (tenant, resource_ref),
        )
        await self._db.commit()
        count: int = cursor.rowcount  # type: ignore[assignment]
        logger.info(
            "registry_record_deleted",
            tenant=tenant,
            resource_ref=resource_ref,
            deleted_count=count,
        )
        return count
