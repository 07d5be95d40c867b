"""Health endpoint for PageGate.

  GET /health: 503 before ``app.state.ready`` (lifespan startup), then 200:

      {"status": "ok" | "degraded", "registry": "healthy" | "error",
       "registry_backend": "sqlite" | "memory"}

``degraded`` means the registry health check failed. The gate keeps answering
in that state: describe fails open, validate fails closed.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    if not getattr(request.app.state, "ready", False):
        raise HTTPException(
            status_code=503,
            detail={
                "status": "starting",
                "registry": "initializing",
                "message": "PageGate is starting up...",
            },
        )

    registry_ok = await request.app.state.registry.health_check()

    return {
        "status": "ok" if registry_ok else "degraded",
        "registry": "healthy" if registry_ok else "error",
        "registry_backend": request.app.state.config.registry.backend,
    }
