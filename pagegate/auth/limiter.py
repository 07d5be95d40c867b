"""Shared rate limiter for the PageGate management endpoints.

Uses slowapi (Starlette-compatible rate limiting) as a global cap on admin
operations (protect, install, remove, overview). The visitor-facing gate
endpoints are not limited here.

The Limiter instance is shared between:
  - pagegate/admin/router.py  (route decorators)
  - pagegate/main.py          (app.state.limiter + SlowAPIMiddleware registration)
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

ADMIN_RATE_LIMIT = "20/minute"
