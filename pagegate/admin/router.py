"""Management API for shop owners.

Provides:
  GET  /admin/api/overview   — candidate pages, protected records, agent status
  POST /admin/api/commands   — one tagged command per request (see commands.py)

All endpoints require Depends(authenticate_admin); the tenant always comes
from the authenticated headers, never from the body. Both carry the shared
slowapi cap. main.py mounts this router behind require_ready.

Command bodies are a discriminated union on ``action``:

  {"action": "protect_page", "resource_ref": "gid://...", "secret": "..."}
  {"action": "install_script"}
  {"action": "remove_protection", "resource_ref": "gid://..."}

An unknown action fails request validation (HTTP 422).
"""

from typing import Annotated, Any, Literal, Union

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field, RootModel

from pagegate.admin.commands import (
    Command,
    CommandDispatcher,
    InstallScript,
    ProtectPage,
    RemoveProtection,
)
from pagegate.auth.limiter import ADMIN_RATE_LIMIT, limiter
from pagegate.auth.middleware import authenticate_admin
from pagegate.constants import AGENT_SCRIPT_PATH, PLATFORM_PAGES_LIMIT
from pagegate.platform.installer import ScriptInstaller
from pagegate.platform.protocol import ContentPlatform, PlatformError
from pagegate.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["admin"])


# ─── Request Models ───────────────────────────────────────────────────────────


class ProtectPageBody(BaseModel):
    action: Literal["protect_page"]
    resource_ref: str = ""
    secret: str = ""

    def to_command(self, tenant: str) -> Command:
        return ProtectPage(tenant=tenant, resource_ref=self.resource_ref, secret=self.secret)


class InstallScriptBody(BaseModel):
    action: Literal["install_script"]

    def to_command(self, tenant: str) -> Command:
        return InstallScript(tenant=tenant)


class RemoveProtectionBody(BaseModel):
    action: Literal["remove_protection"]
    resource_ref: str = ""

    def to_command(self, tenant: str) -> Command:
        return RemoveProtection(tenant=tenant, resource_ref=self.resource_ref)


class CommandRequest(
    RootModel[
        Annotated[
            Union[ProtectPageBody, InstallScriptBody, RemoveProtectionBody],
            Field(discriminator="action"),
        ]
    ]
):
    """Body of POST /admin/api/commands."""


# ─── Helpers ──────────────────────────────────────────────────────────────────


def agent_script_url(request: Request) -> str:
    """Public URL of the browser agent, as registered with the platform."""
    return request.app.state.config.server.public_url.rstrip("/") + AGENT_SCRIPT_PATH


def _platform_for(request: Request, tenant: str) -> ContentPlatform:
    try:
        return request.app.state.platform_factory(tenant)
    except PlatformError as exc:
        logger.warning("content platform unavailable", tenant=tenant, error=str(exc))
        raise HTTPException(status_code=503, detail=str(exc)) from exc


# ─── Endpoints ────────────────────────────────────────────────────────────────


@router.get("/overview")
@limiter.limit(ADMIN_RATE_LIMIT)
async def overview(
    request: Request,
    tenant: str = Depends(authenticate_admin),
) -> dict[str, Any]:
    """Everything the management UI shows for one tenant.

    Returns:
        JSON: {pages: [...], protected_pages: [...], script_installed: bool}
        - pages: first 50 platform pages, each flagged ``protected``
        - protected_pages: this tenant's records, newest first, no hashes

    Raises:
        HTTP 503: No platform access token configured for the tenant.
        HTTP 502: The content platform request failed.
    """
    platform = _platform_for(request, tenant)
    registry = request.app.state.registry

    records = await registry.list_for_tenant(tenant)
    protected_refs = {record.resource_ref for record in records}

    try:
        pages = await platform.list_pages(PLATFORM_PAGES_LIMIT)
        script_installed = await ScriptInstaller(platform, agent_script_url(request)).is_installed()
    except PlatformError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return {
        "pages": [
            {
                "resource_ref": page.resource_ref,
                "title": page.title,
                "handle": page.handle,
                "protected": page.resource_ref in protected_refs,
            }
            for page in pages
        ],
        "protected_pages": [record.to_public_dict() for record in records],
        "script_installed": script_installed,
    }


@router.post("/commands")
@limiter.limit(ADMIN_RATE_LIMIT)
async def run_command(
    body: CommandRequest,
    request: Request,
    tenant: str = Depends(authenticate_admin),
) -> dict[str, Any]:
    """Run one management command for the authenticated tenant.

    Returns:
        JSON: {success: bool, message: str}. Expected failures (page not
        found, already protected, platform user errors) are success=false
        with HTTP 200.
    """
    command = body.root.to_command(tenant)
    dispatcher = CommandDispatcher(
        registry=request.app.state.registry,
        platform=_platform_for(request, tenant),
        script_url=agent_script_url(request),
        bcrypt_rounds=request.app.state.config.registry.bcrypt_rounds,
    )
    result = await dispatcher.dispatch(command)
    return result.to_dict()
