"""PageGate protection-record registry.

Re-exports the public API for ergonomic imports:

    from pagegate.registry import ProtectionRecord, Registry, InMemoryRegistry
"""

from pagegate.registry.memory_backend import InMemoryRegistry
from pagegate.registry.models import ProtectionRecord
from pagegate.registry.protocol import (
    DuplicateRecordError,
    Registry,
    RegistryError,
)

__all__ = [
    "ProtectionRecord",
    "Registry",
    "RegistryError",
    "DuplicateRecordError",
    "InMemoryRegistry",
]
