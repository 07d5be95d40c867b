"""Programmatic uvicorn entry point for PageGate.

Reads host and port from the loaded config (127.0.0.1:8080 by default) and
starts uvicorn with hardened defaults:

  --limit-concurrency 100  Max concurrent connections; HTTP 503 beyond that
  --backlog 50             OS connection queue depth
  --timeout-keep-alive 5   Short keep-alive window against slow clients

Usage:
    python -m pagegate.run     # reads .pagegate/config.yaml
    pagegate                   # via pyproject.toml [project.scripts]

Binding to 0.0.0.0 is allowed but logs a security warning (see
pagegate/config.py:load_config).
"""

from __future__ import annotations

import uvicorn

from pagegate.config import load_config

# ─── Uvicorn hardened defaults ────────────────────────────────────────────────

UVICORN_LIMIT_CONCURRENCY: int = 100
UVICORN_BACKLOG: int = 50
UVICORN_TIMEOUT_KEEP_ALIVE: int = 5


def main() -> None:
    """Start the PageGate server.

    Raises:
        SystemExit: Propagated from load_config() on config errors.
    """
    config = load_config()

    uvicorn.run(
        "pagegate.main:app",
        host=config.server.host,
        port=config.server.port,
        limit_concurrency=UVICORN_LIMIT_CONCURRENCY,
        backlog=UVICORN_BACKLOG,
        timeout_keep_alive=UVICORN_TIMEOUT_KEEP_ALIVE,
    )


if __name__ == "__main__":
    main()
