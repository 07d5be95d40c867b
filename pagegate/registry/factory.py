"""Registry factory: backend selection and initialization.

Backend selection (config.registry.backend):
  - "sqlite" (default) → SQLiteRegistry at config.registry.path
  - "memory"           → InMemoryRegistry (records lost on restart)

PRAGMA version guard:
  SQLiteRegistry.initialize() raises RuntimeError if PRAGMA user_version is
  not 0 (fresh) or 1 (expected). The FastAPI lifespan propagates this to
  refuse startup.
"""

from __future__ import annotations

from pagegate.config import Config
from pagegate.registry.protocol import Registry
from pagegate.utils.logger import get_logger

logger = get_logger(__name__)


async def create_registry(config: Config) -> Registry:
    """Create and initialize the configured registry backend.

    Raises:
      RuntimeError: If SQLiteRegistry.initialize() finds an incompatible schema.
    """
    if config.registry.backend == "memory":
        from pagegate.registry.memory_backend import InMemoryRegistry

        registry: Registry = InMemoryRegistry()
    else:
        from pagegate.registry.sqlite_backend import SQLiteRegistry

        registry = SQLiteRegistry(db_path=config.registry.path)

    await registry.initialize()

    logger.info(
        "registry_backend_selected",
        backend=type(registry).__name__,
        db_path=config.registry.path if config.registry.backend == "sqlite" else None,
    )
    return registry
