"""Gate check service, the server half of the access-control protocol.

Two operations, both idempotent and side-effect-free:

  describe(tenant, handle)          → DescribeResult
  validate(tenant, handle, secret)  → ValidateResult

Failure semantics (the only behaviour that matters here):

  describe is FAIL-OPEN. Missing input, no record and a registry exception
  all answer {protected: false}. A backend outage therefore un-gates every
  page; unprotected pages are the overwhelming majority and must never show
  an error. Reconsider before using this for anything sensitive.

  validate is FAIL-CLOSED. Absence of proof never grants:
      missing input        → "Missing required fields"
      no record / mismatch → "Invalid password"
      registry exception   → "Server error"
  Grant requires an exact bcrypt match against the record's stored hash. There
  is no attempt counter; the same inputs always give the same answer.

The registry handle is injected; the service holds no other state.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from pagegate.auth.hashing import verify_secret
from pagegate.constants import (
    MSG_ACCESS_GRANTED,
    MSG_INVALID_PASSWORD,
    MSG_MISSING_FIELDS,
    MSG_SERVER_ERROR,
    REDIRECT_TEMPLATE,
)
from pagegate.gate.models import DescribeResult, ValidateResult
from pagegate.registry.protocol import Registry
from pagegate.utils.logger import get_logger

logger = get_logger(__name__)


class GateService:
    """Stateless describe/validate over an injected Registry."""

    def __init__(self, registry: Registry) -> None:
        self._registry = registry

    async def describe(
        self, tenant: Optional[str], handle: Optional[str]
    ) -> DescribeResult:
        """Return whether (tenant, handle) is protected. Never raises."""
        if not tenant or not handle:
            return DescribeResult.unprotected()

        try:
            record = await self._registry.find_by_tenant_and_handle(tenant, handle)
        except Exception as exc:
            logger.warning(
                "describe lookup failed, treating resource as unprotected",
                tenant=tenant,
                handle=handle,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return DescribeResult.unprotected()

        if record is None:
            return DescribeResult.unprotected()

        return DescribeResult(protected=True, title=record.title, handle=record.handle)

    async def validate(
        self,
        tenant: Optional[str],
        handle: Optional[str],
        secret: Optional[str],
    ) -> ValidateResult:
        """Check ``secret`` against the record for (tenant, handle). Never raises."""
        if not tenant or not handle or not secret:
            return ValidateResult.denied(MSG_MISSING_FIELDS)

        try:
            record = await self._registry.find_by_tenant_and_handle(tenant, handle)
        except Exception as exc:
            logger.error(
                "validate lookup failed, denying access",
                tenant=tenant,
                handle=handle,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return ValidateResult.denied(MSG_SERVER_ERROR)

        # bcrypt is CPU-bound; keep it off the event loop.
        if (
            record is not None
            and record.handle == handle
            and await asyncio.to_thread(verify_secret, secret, record.secret_hash)
        ):
            logger.info("access granted", tenant=tenant, handle=handle)
            return ValidateResult(
                granted=True,
                message=MSG_ACCESS_GRANTED,
                redirect=REDIRECT_TEMPLATE.format(handle=handle),
            )

        logger.info("access denied", tenant=tenant, handle=handle, record_found=record is not None)
        return ValidateResult.denied(MSG_INVALID_PASSWORD)
