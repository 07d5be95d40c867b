"""PageGate FastAPI application factory + lifespan lifecycle.

This module implements:
  - create_app() — testable application factory
  - lifespan     — @asynccontextmanager startup/shutdown sequence
  - /            — service discovery root
  - app = create_app() — module-level instance for uvicorn

Startup sequence:
  1. load_config()          → app.state.config
  2. create_registry()      → app.state.registry
  3. GateService(registry)  → app.state.gate_service
  4. create_http_client()   → app.state.http_client
  5. platform factory       → app.state.platform_factory (tenant → ContentPlatform)
  6. app.state.ready = True

Shutdown (reverse):
  app.state.ready = False → close http client → close registry

Uvicorn hardened defaults (see pagegate/run.py):
  uvicorn pagegate.main:app \\
    --host 127.0.0.1 \\
    --port 8080 \\
    --limit-concurrency 100 \\
    --backlog 50 \\
    --timeout-keep-alive 5
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.routing import APIRouter
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from pagegate.admin.router import router as admin_router
from pagegate.auth.limiter import limiter
from pagegate.config import Config, load_config
from pagegate.constants import AGENT_SCRIPT_PATH, GATE_CHECK_PATH
from pagegate.gate.router import router as gate_router
from pagegate.gate.service import GateService
from pagegate.health import router as health_router
from pagegate.middleware import RequestIdMiddleware, SplitCORSMiddleware
from pagegate.platform.shopify import create_http_client, shopify_platform_factory
from pagegate.registry.factory import create_registry
from pagegate.registry.protocol import Registry
from pagegate.utils.logger import configure_logging, get_logger

# ─── Logging Setup ────────────────────────────────────────────────────────────
# Configured at import time, before anything else logs.
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if not DEBUG else "DEBUG")
JSON_LOGS = os.getenv("JSON_LOGS", "true").lower() == "true"

configure_logging(log_level=LOG_LEVEL, json_output=JSON_LOGS)
logger = get_logger(__name__)


root_router = APIRouter(tags=["root"])


# ─── Dependencies ─────────────────────────────────────────────────────────────


async def require_ready(request: Request) -> None:
    """FastAPI dependency: HTTP 503 until the lifespan has finished startup.

    Guards the management surface. The gate endpoints answer before ready on
    their own terms (fail-open describe, fail-closed validate).
    """
    if not getattr(request.app.state, "ready", False):
        raise HTTPException(
            status_code=503,
            detail={
                "status": "starting",
                "message": "PageGate is starting up...",
            },
        )


# ─── Root Endpoint ────────────────────────────────────────────────────────────


@root_router.get("/")
async def root() -> dict[str, str]:
    """Service identity / discovery."""
    return {
        "service": "PageGate",
        "tagline": "Shared-secret gates for storefront pages",
        "health": "/health",
        "gate": "/gate/check",
        "agent": "/gate-agent.js",
        "admin": "/admin/api",
    }


# ─── Lifespan ─────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup then shutdown, in the order listed in the module docstring."""
    logger.info("PageGate starting up...")

    # ── Step 1: Load configuration ────────────────────────────────────────────
    # SystemExit on a bad config file: the process never reaches ready.
    config: Config = load_config()
    app.state.config = config
    logger.info(
        "Config loaded",
        registry_backend=config.registry.backend,
        public_url=config.server.public_url,
        tenants_with_platform_access=len(config.platform.access_tokens),
    )

    # ── Step 2: Registry ──────────────────────────────────────────────────────
    # RuntimeError from the schema version guard propagates and refuses startup.
    registry: Registry = await create_registry(config)
    app.state.registry = registry

    # ── Step 3: Gate service ──────────────────────────────────────────────────
    app.state.gate_service = GateService(registry)

    # ── Step 4: Shared outbound HTTP client ───────────────────────────────────
    http_client: httpx.AsyncClient = create_http_client()
    app.state.http_client = http_client

    # ── Step 5: Content platform per tenant ───────────────────────────────────
    app.state.platform_factory = shopify_platform_factory(
        http_client,
        access_tokens=config.platform.access_tokens,
        api_version=config.platform.api_version,
    )

    # ── Step 6: Ready ─────────────────────────────────────────────────────────
    app.state.ready = True
    logger.info("PageGate ready")

    yield

    # ── Shutdown (reverse order) ──────────────────────────────────────────────
    logger.info("PageGate shutting down...")
    app.state.ready = False

    try:
        await http_client.aclose()
    except Exception as exc:
        logger.warning("HTTP client close error (non-fatal)", error=str(exc))

    await registry.close()
    logger.info("PageGate shutdown complete")


# ─── Application Factory ──────────────────────────────────────────────────────


def create_app() -> FastAPI:
    """Create and configure the PageGate FastAPI application.

    Call directly in tests to get an isolated instance; the lifespan runs only
    under a lifespan-aware client (``TestClient`` as a context manager).
    """
    # The API schema is only published in local development.
    _debug = os.getenv("DEBUG", "false").lower() == "true"

    application = FastAPI(
        title="PageGate",
        description="Per-page shared-secret access gate for hosted storefronts",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if _debug else None,
        redoc_url="/redoc" if _debug else None,
        openapi_url="/openapi.json" if _debug else None,
    )

    application.state.ready = False

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Gate routes answer every storefront origin. The admin origins come from
    # config, which otherwise loads in the lifespan; read them here.
    application.add_middleware(
        SplitCORSMiddleware,
        public_paths=(GATE_CHECK_PATH, AGENT_SCRIPT_PATH),
        admin_origins=_cors_origins(),
    )

    # Last added runs first: request ids cover everything below, including 429s.
    application.add_middleware(SlowAPIMiddleware)
    application.add_middleware(RequestIdMiddleware)

    application.include_router(root_router)
    application.include_router(health_router)
    application.include_router(gate_router)
    application.include_router(
        admin_router,
        prefix="/admin/api",
        dependencies=[Depends(require_ready)],
    )

    @application.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        logger.warning(
            "HTTP exception",
            status_code=exc.status_code,
            detail=exc.detail,
            path=str(request.url.path),
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @application.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=str(request.url.path),
        )
        return JSONResponse(
            status_code=500, content={"error": "Internal server error"}
        )

    return application


def _cors_origins() -> list[str]:
    """Admin API origins, from PAGEGATE_CORS_ORIGINS or the config file."""
    raw = os.getenv("PAGEGATE_CORS_ORIGINS")
    if raw is not None:
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
    return load_config().server.cors_origins


# ─── Module-Level App (for uvicorn) ───────────────────────────────────────────

app = create_app()
