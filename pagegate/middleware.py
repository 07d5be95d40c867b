"""Request-id and CORS middleware.

Every request gets a ULID, bound to the structlog context for the duration of
the request and echoed back in the ``X-PageGate-Request-ID`` response header.
A well-formed id supplied by the caller in the same header is reused so a
storefront-side trace can be followed through the gate logs.
"""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

from pagegate.utils.logger import clear_request_id, set_request_id
from pagegate.utils.ulid import generate_ulid

REQUEST_ID_HEADER = "X-PageGate-Request-ID"

# Crockford base32, 26 chars.
_ULID_RE = re.compile(r"^[0-9A-HJKMNP-TV-Z]{26}$")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a per-request ULID to log context and the response headers.

    Registration (in create_app() in pagegate/main.py):
        application.add_middleware(RequestIdMiddleware)
    """

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        supplied = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = supplied if _ULID_RE.match(supplied) else generate_ulid()
        request.state.request_id = request_id
        set_request_id(request_id)
        try:
            response = await call_next(request)
        finally:
            clear_request_id()
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class SplitCORSMiddleware:
    """CORS with an open policy for the anonymous gate routes.

    The browser agent calls the gate from every storefront origin, so those
    paths answer any origin (no credentials). Everything else, the admin API
    included, only answers the configured ``admin_origins``.

    Registration (in create_app() in pagegate/main.py):
        application.add_middleware(
            SplitCORSMiddleware, public_paths=(...), admin_origins=[...]
        )
    """

    def __init__(
        self,
        app: ASGIApp,
        public_paths: Iterable[str],
        admin_origins: Sequence[str],
    ) -> None:
        self.public_paths = frozenset(public_paths)
        self.public = CORSMiddleware(
            app,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
            expose_headers=[REQUEST_ID_HEADER],
        )
        self.restricted = CORSMiddleware(
            app,
            allow_origins=list(admin_origins),
            allow_credentials=False,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
            expose_headers=[REQUEST_ID_HEADER],
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"] in self.public_paths:
            await self.public(scope, receive, send)
        else:
            await self.restricted(scope, receive, send)
