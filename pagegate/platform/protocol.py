"""Content platform contract consumed by the management surface and installer.

The platform owns the pages themselves and the list of scripts injected into
every storefront page. PageGate only reads pages and registers one script.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable


class PlatformError(Exception):
    """The content platform could not be reached or rejected the call."""


@dataclass(frozen=True)
class PlatformPage:
    resource_ref: str
    title: str
    handle: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(frozen=True)
class ScriptTag:
    id: str
    src: str


@dataclass(frozen=True)
class ScriptTagCreateResult:
    script_tag: Optional[ScriptTag]
    user_errors: list[str] = field(default_factory=list)


@runtime_checkable
class ContentPlatform(Protocol):
    """Per-tenant view of the host content platform's admin API."""

    async def list_pages(self, limit: int) -> list[PlatformPage]:
        ...

    async def get_page(self, resource_ref: str) -> Optional[PlatformPage]:
        ...

    async def list_script_tags(self, limit: int) -> list[ScriptTag]:
        ...

    async def create_script_tag(self, src: str) -> ScriptTagCreateResult:
        """Register ``src``. Validation failures come back as user_errors, not raises."""
        ...
