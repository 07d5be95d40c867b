"""HTTP surface of the gate check service + browser agent delivery.

Routes:
  GET  /gate/check      — describe: query params tenant, handle
  POST /gate/check      — validate: form fields tenant, handle, secret
  GET  /gate-agent.js   — the self-contained browser agent script

Both gate endpoints always answer HTTP 200 with a well-formed body. Before the
lifespan has wired a GateService onto app.state, describe answers
{protected: false} and validate answers "Server error", matching the
fail-open / fail-closed split of the service itself.

No authentication: the storefront visitor is anonymous by definition.
"""

from __future__ import annotations

import pathlib
from typing import Any, Optional

from fastapi import APIRouter, Form, Request
from fastapi.responses import FileResponse

from pagegate.constants import AGENT_SCRIPT_PATH, GATE_CHECK_PATH, MSG_SERVER_ERROR
from pagegate.gate.models import DescribeResult, ValidateResult
from pagegate.gate.service import GateService
from pagegate.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["gate"])

_AGENT_SCRIPT = pathlib.Path(__file__).resolve().parent.parent / "agent" / "static" / "gate-agent.js"


def _gate_service(request: Request) -> Optional[GateService]:
    if not getattr(request.app.state, "ready", False):
        return None
    return getattr(request.app.state, "gate_service", None)


@router.get(GATE_CHECK_PATH)
async def describe(
    request: Request,
    tenant: Optional[str] = None,
    handle: Optional[str] = None,
) -> dict[str, Any]:
    """Is this resource protected? → {protected, title?, handle?}"""
    service = _gate_service(request)
    if service is None:
        logger.warning("describe before ready, answering unprotected", tenant=tenant, handle=handle)
        return DescribeResult.unprotected().to_dict()
    result = await service.describe(tenant, handle)
    return result.to_dict()


@router.post(GATE_CHECK_PATH)
async def validate(
    request: Request,
    tenant: Optional[str] = Form(None),
    handle: Optional[str] = Form(None),
    secret: Optional[str] = Form(None),
) -> dict[str, Any]:
    """Does this secret unlock the resource? → {granted, message, redirect?}"""
    service = _gate_service(request)
    if service is None:
        logger.warning("validate before ready, denying", tenant=tenant, handle=handle)
        return ValidateResult.denied(MSG_SERVER_ERROR).to_dict()
    result = await service.validate(tenant, handle, secret)
    return result.to_dict()


@router.get(AGENT_SCRIPT_PATH, include_in_schema=False)
async def agent_script() -> FileResponse:
    """Serve the browser gate agent (single file, no dependencies)."""
    return FileResponse(
        str(_AGENT_SCRIPT),
        media_type="application/javascript",
        headers={"Cache-Control": "public, max-age=300"},
    )
