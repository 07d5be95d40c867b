"""Root test configuration for PageGate.

Sets PAGEGATE_AUTH_REQUIRED=false for the whole suite so management tests do
not need to provision admin keys. Tests that verify key enforcement override
it with their own monkeypatch fixture.

Also provides:
  - make_record    — ProtectionRecord factory with a cheap bcrypt hash
  - FakePlatform   — in-memory ContentPlatform
  - wired_app      — create_app() with app.state populated, no lifespan
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Optional

import pytest

from pagegate.auth.hashing import hash_secret
from pagegate.config import Config
from pagegate.gate.service import GateService
from pagegate.platform.protocol import (
    PlatformError,
    PlatformPage,
    ScriptTag,
    ScriptTagCreateResult,
)
from pagegate.registry.memory_backend import InMemoryRegistry
from pagegate.registry.models import ProtectionRecord

# Lowest cost bcrypt accepts.
TEST_BCRYPT_ROUNDS = 4

TENANT = "shop1.myshopify.com"
OTHER_TENANT = "shop2.myshopify.com"
PUBLIC_URL = "https://gate.example.com"


@pytest.fixture(autouse=True)
def disable_auth_for_tests(monkeypatch: pytest.MonkeyPatch) -> None:
    """Disable admin key enforcement and keep CORS config off the filesystem."""
    monkeypatch.setenv("PAGEGATE_AUTH_REQUIRED", "false")
    monkeypatch.setenv("PAGEGATE_CORS_ORIGINS", "")


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> None:
    """Reset the in-memory rate limiter storage between tests.

    Prevents test-to-test rate limit bleed on the admin endpoints.
    """
    from pagegate.auth.limiter import limiter
    try:
        limiter._storage.reset()
    except Exception:
        pass  # Storage may not support reset in all backends


# ─── Records ──────────────────────────────────────────────────────────────────


@pytest.fixture
def make_record() -> Callable[..., ProtectionRecord]:
    def _make(
        tenant: str = TENANT,
        handle: str = "secret-page",
        secret: str = "hunter2",
        title: str = "Secret Page",
        resource_ref: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> ProtectionRecord:
        return ProtectionRecord(
            tenant=tenant,
            handle=handle,
            title=title,
            secret_hash=hash_secret(secret, rounds=TEST_BCRYPT_ROUNDS),
            resource_ref=resource_ref or f"gid://shopify/Page/{handle}",
            created_at=created_at or datetime.now(timezone.utc),
        )

    return _make


# ─── Content platform fake ────────────────────────────────────────────────────


class FakePlatform:
    """In-memory ContentPlatform. Set ``fail`` to simulate an outage."""

    def __init__(self, pages: Optional[list[PlatformPage]] = None) -> None:
        self.pages: dict[str, PlatformPage] = {p.resource_ref: p for p in pages or []}
        self.script_tags: list[ScriptTag] = []
        self.user_errors: list[str] = []
        self.fail = False
        self.create_calls = 0

    def _check(self) -> None:
        if self.fail:
            raise PlatformError("Content platform request failed: ConnectError")

    async def list_pages(self, limit: int) -> list[PlatformPage]:
        self._check()
        return list(self.pages.values())[:limit]

    async def get_page(self, resource_ref: str) -> Optional[PlatformPage]:
        self._check()
        return self.pages.get(resource_ref)

    async def list_script_tags(self, limit: int) -> list[ScriptTag]:
        self._check()
        return self.script_tags[:limit]

    async def create_script_tag(self, src: str) -> ScriptTagCreateResult:
        self._check()
        self.create_calls += 1
        if self.user_errors:
            return ScriptTagCreateResult(script_tag=None, user_errors=list(self.user_errors))
        tag = ScriptTag(id=f"gid://shopify/ScriptTag/{len(self.script_tags) + 1}", src=src)
        self.script_tags.append(tag)
        return ScriptTagCreateResult(script_tag=tag)


def sample_pages() -> list[PlatformPage]:
    return [
        PlatformPage(resource_ref="gid://shopify/Page/1", title="Secret Page", handle="secret-page"),
        PlatformPage(resource_ref="gid://shopify/Page/2", title="About Us", handle="about-us"),
    ]


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform(sample_pages())


# ─── Application ──────────────────────────────────────────────────────────────


def _test_config() -> Config:
    config = Config.from_dict(
        {
            "version": 1,
            "server": {"public_url": PUBLIC_URL},
            "registry": {"backend": "memory", "bcrypt_rounds": TEST_BCRYPT_ROUNDS},
        }
    )
    return config


@pytest.fixture
def registry() -> InMemoryRegistry:
    return InMemoryRegistry()


@pytest.fixture
def wired_app(registry: InMemoryRegistry, platform: FakePlatform) -> Any:
    """create_app() with state wired by hand; ASGITransport skips the lifespan."""
    from pagegate.main import create_app

    application = create_app()
    application.state.config = _test_config()
    application.state.registry = registry
    application.state.gate_service = GateService(registry)
    application.state.platform_factory = lambda tenant: platform
    application.state.ready = True
    return application
