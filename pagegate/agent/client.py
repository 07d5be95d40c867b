"""HTTP client for the gate check endpoints, used by the Python gate agent.

Wraps a caller-owned ``httpx.AsyncClient``; the agent never creates or closes
transports itself. No timeout is imposed beyond the client's own configuration.

Raises ``httpx.HTTPError`` on transport failure or non-2xx status, and
``ValueError`` when the body is not the expected JSON object. The agent
decides what each failure means (fail-open for describe, retry for validate).
"""

from __future__ import annotations

from typing import Any

import httpx

from pagegate.constants import GATE_CHECK_PATH
from pagegate.gate.models import DescribeResult, ValidateResult


class GateClient:
    """describe/validate over HTTP against a running PageGate service."""

    def __init__(self, http: httpx.AsyncClient, check_path: str = GATE_CHECK_PATH) -> None:
        self._http = http
        self._check_path = check_path

    async def describe(self, tenant: str, handle: str) -> DescribeResult:
        response = await self._http.get(
            self._check_path,
            params={"tenant": tenant, "handle": handle},
        )
        return DescribeResult.from_dict(_json_object(response))

    async def validate(self, tenant: str, handle: str, secret: str) -> ValidateResult:
        response = await self._http.post(
            self._check_path,
            data={"tenant": tenant, "handle": handle, "secret": secret},
        )
        return ValidateResult.from_dict(_json_object(response))


def _json_object(response: httpx.Response) -> dict[str, Any]:
    response.raise_for_status()
    body = response.json()
    if not isinstance(body, dict):
        raise ValueError(f"Expected a JSON object from gate endpoint, got {type(body).__name__}")
    return body
