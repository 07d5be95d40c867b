"""Integration tests for the management API: overview + tagged commands.

Flow: overview → protect → overview (flagged) → visitor unlocks → remove →
visitor sees an unprotected page.
"""

from __future__ import annotations

from typing import Any, AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from pagegate.auth import hash_secret
from pagegate.platform import PlatformError

TENANT = "shop1.myshopify.com"
HEADERS = {"X-PageGate-Tenant": TENANT}
PAGE_1 = "gid://shopify/Page/1"

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def client(wired_app: Any) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=wired_app), base_url="http://test") as http:
        yield http


async def _command(client: AsyncClient, body: dict[str, Any]) -> dict[str, Any]:
    response = await client.post("/admin/api/commands", json=body, headers=HEADERS)
    assert response.status_code == 200, response.text
    return response.json()


class TestOverview:
    async def test_initial_overview(self, client: AsyncClient) -> None:
        response = await client.get("/admin/api/overview", headers=HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert [p["handle"] for p in body["pages"]] == ["secret-page", "about-us"]
        assert all(p["protected"] is False for p in body["pages"])
        assert body["protected_pages"] == []
        assert body["script_installed"] is False

    async def test_overview_after_protect_and_install(self, client: AsyncClient) -> None:
        await _command(client, {"action": "protect_page", "resource_ref": PAGE_1, "secret": "hunter2"})
        await _command(client, {"action": "install_script"})

        body = (await client.get("/admin/api/overview", headers=HEADERS)).json()
        flags = {p["handle"]: p["protected"] for p in body["pages"]}
        assert flags == {"secret-page": True, "about-us": False}
        assert body["script_installed"] is True

        [record] = body["protected_pages"]
        assert record["handle"] == "secret-page"
        assert record["resource_ref"] == PAGE_1
        assert "secret_hash" not in record
        assert "hunter2" not in str(body)

    async def test_platform_outage_is_502(self, client: AsyncClient, platform: Any) -> None:
        platform.fail = True
        response = await client.get("/admin/api/overview", headers=HEADERS)
        assert response.status_code == 502

    async def test_unconfigured_tenant_is_503(self, client: AsyncClient, wired_app: Any) -> None:
        def no_token(tenant: str) -> Any:
            raise PlatformError(f"No content platform access token configured for '{tenant}'")

        wired_app.state.platform_factory = no_token
        response = await client.get("/admin/api/overview", headers=HEADERS)
        assert response.status_code == 503
        assert TENANT in response.json()["error"]

    async def test_missing_tenant_header_is_401(self, client: AsyncClient) -> None:
        response = await client.get("/admin/api/overview")
        assert response.status_code == 401
        assert response.json() == {"error": "Missing tenant header"}


class TestCommands:
    async def test_protect_unlock_remove_flow(self, client: AsyncClient) -> None:
        result = await _command(client, {"action": "protect_page", "resource_ref": PAGE_1, "secret": "hunter2"})
        assert result == {"success": True, "message": 'Page "Secret Page" is now protected'}

        described = await client.get("/gate/check", params={"tenant": TENANT, "handle": "secret-page"})
        assert described.json()["protected"] is True

        validated = await client.post(
            "/gate/check", data={"tenant": TENANT, "handle": "secret-page", "secret": "hunter2"}
        )
        assert validated.json()["granted"] is True

        result = await _command(client, {"action": "remove_protection", "resource_ref": PAGE_1})
        assert result == {"success": True, "message": "Page protection removed"}

        described = await client.get("/gate/check", params={"tenant": TENANT, "handle": "secret-page"})
        assert described.json() == {"protected": False}

    async def test_protect_twice(self, client: AsyncClient) -> None:
        await _command(client, {"action": "protect_page", "resource_ref": PAGE_1, "secret": "hunter2"})
        result = await _command(client, {"action": "protect_page", "resource_ref": PAGE_1, "secret": "x"})
        assert result == {"success": False, "message": "This page is already protected"}

    async def test_protect_missing_secret(self, client: AsyncClient) -> None:
        result = await _command(client, {"action": "protect_page", "resource_ref": PAGE_1})
        assert result["success"] is False

    async def test_protect_unknown_page(self, client: AsyncClient) -> None:
        result = await _command(
            client, {"action": "protect_page", "resource_ref": "gid://shopify/Page/404", "secret": "x"}
        )
        assert result == {"success": False, "message": "Page not found"}

    async def test_install_reports_user_error(self, client: AsyncClient, platform: Any) -> None:
        platform.user_errors = ["Src is invalid"]
        result = await _command(client, {"action": "install_script"})
        assert result == {"success": False, "message": "Script installation failed: Src is invalid"}

    async def test_install_registers_public_script_url(self, client: AsyncClient, platform: Any) -> None:
        await _command(client, {"action": "install_script"})
        assert platform.script_tags[0].src == "https://gate.example.com/gate-agent.js"

    async def test_tenant_from_header_not_body(self, client: AsyncClient, registry: Any) -> None:
        await _command(
            client,
            {"action": "protect_page", "resource_ref": PAGE_1, "secret": "hunter2", "tenant": "evil.myshopify.com"},
        )
        assert await registry.find_by_resource_ref(TENANT, PAGE_1) is not None
        assert await registry.list_for_tenant("evil.myshopify.com") == []

    @pytest.mark.parametrize(
        "body",
        [{"action": "drop_database"}, {}, {"resource_ref": PAGE_1}],
    )
    async def test_invalid_action_is_422(self, client: AsyncClient, body: dict[str, Any]) -> None:
        response = await client.post("/admin/api/commands", json=body, headers=HEADERS)
        assert response.status_code == 422

    async def test_rate_limited(self, client: AsyncClient) -> None:
        statuses = []
        for _ in range(21):
            response = await client.post(
                "/admin/api/commands", json={"action": "remove_protection", "resource_ref": PAGE_1}, headers=HEADERS
            )
            statuses.append(response.status_code)
        assert statuses[:20] == [200] * 20
        assert statuses[20] == 429


class TestAdminKeyEnforced:
    @pytest.fixture(autouse=True)
    def enforce_auth(self, monkeypatch: pytest.MonkeyPatch, wired_app: Any) -> None:
        monkeypatch.setenv("PAGEGATE_AUTH_REQUIRED", "true")
        wired_app.state.config.admin.keys = {TENANT: hash_secret("admin-key", rounds=4)}

    async def test_correct_key(self, client: AsyncClient) -> None:
        response = await client.get(
            "/admin/api/overview", headers={**HEADERS, "X-PageGate-Admin-Key": "admin-key"}
        )
        assert response.status_code == 200

    async def test_wrong_key(self, client: AsyncClient) -> None:
        response = await client.get(
            "/admin/api/overview", headers={**HEADERS, "X-PageGate-Admin-Key": "guess"}
        )
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid admin key"}

    async def test_command_requires_key(self, client: AsyncClient) -> None:
        response = await client.post("/admin/api/commands", json={"action": "install_script"}, headers=HEADERS)
        assert response.status_code == 401
