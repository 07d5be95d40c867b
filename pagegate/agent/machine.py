"""Client gate agent state machine, one instance per resource view.

States:
  UNKNOWN      initial; protection status not yet determined
  REVEALED     terminal; resource unprotected, bypassed, or describe failed
  CHALLENGING  protected, no bypass; content hidden, challenge shown
  UNLOCKED     terminal; validate granted, bypass recorded, content shown

Transitions:
  start(path)
    path outside /pages/<handle>        → stays UNKNOWN, no calls (no-op)
    bypass present for handle           → REVEALED, no network call at all
    describe → protected=false          → REVEALED
    describe transport/decode failure   → REVEALED (fail-open, logged)
    describe → protected=true           → CHALLENGING
  submit(secret)                        (only in CHALLENGING, one at a time)
    validate → granted=true             → UNLOCKED (bypass, teardown, reveal)
    validate → granted=false            → CHALLENGING (error, clear, refocus)
    validate transport failure          → CHALLENGING (transport error message)

A failed describe lets the visitor through. That is inherited behaviour and
is deliberate; change it here if a deployment needs fail-closed.
"""

from __future__ import annotations

import enum
import re
from typing import Optional
from urllib.parse import unquote

import httpx

from pagegate.agent.client import GateClient
from pagegate.agent.storage import BypassStore, has_bypass, record_bypass
from pagegate.agent.view import ChallengeView
from pagegate.constants import MSG_INVALID_PASSWORD, MSG_VALIDATION_TRANSPORT_ERROR
from pagegate.utils.logger import get_logger

logger = get_logger(__name__)

# /pages/<handle> with an optional trailing slash; nothing nested.
_PAGE_PATH_RE = re.compile(r"^/pages/([^/?#]+)/?$")


class GateState(str, enum.Enum):
    UNKNOWN = "unknown"
    REVEALED = "revealed"
    CHALLENGING = "challenging"
    UNLOCKED = "unlocked"


class GateAgentError(Exception):
    """Raised when the agent is driven out of order (e.g. submit before challenge)."""


class SubmissionInProgressError(GateAgentError):
    """Raised when a secret is submitted while a validate call is outstanding."""


def handle_from_path(path: str) -> Optional[str]:
    """Return the percent-decoded handle for a /pages/<handle> path, else None."""
    match = _PAGE_PATH_RE.match(path)
    return unquote(match.group(1)) if match else None


class GateAgent:
    """Drives a ChallengeView from gate responses for one page view."""

    def __init__(
        self,
        tenant: str,
        client: GateClient,
        store: BypassStore,
        view: ChallengeView,
    ) -> None:
        self.tenant = tenant
        self._client = client
        self._store = store
        self._view = view
        self._state = GateState.UNKNOWN
        self._handle: Optional[str] = None
        self._started = False
        self._in_flight = False

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def handle(self) -> Optional[str]:
        return self._handle

    async def start(self, path: str) -> GateState:
        """Run the gate for the page at ``path``. Call exactly once per view."""
        if self._started:
            raise GateAgentError("Gate agent already started for this view")
        self._started = True

        handle = handle_from_path(path)
        if handle is None:
            return self._state
        self._handle = handle

        # Cached bypass short-circuits before any network traffic.
        if has_bypass(self._store, handle):
            logger.debug("bypass present, revealing", tenant=self.tenant, handle=handle)
            self._state = GateState.REVEALED
            return self._state

        try:
            result = await self._client.describe(self.tenant, handle)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "describe failed, revealing content",
                tenant=self.tenant,
                handle=handle,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            self._state = GateState.REVEALED
            return self._state

        if not result.protected:
            self._state = GateState.REVEALED
            return self._state

        self._view.hide_content()
        self._view.show_challenge(result.title)
        self._view.focus_input()
        self._state = GateState.CHALLENGING
        return self._state

    async def submit(self, secret: str) -> GateState:
        """Submit a secret from the challenge form."""
        if self._state is not GateState.CHALLENGING:
            raise GateAgentError(f"Cannot submit a secret in state '{self._state.value}'")
        if self._in_flight:
            raise SubmissionInProgressError("A secret is already being validated")
        assert self._handle is not None

        self._in_flight = True
        self._view.set_form_enabled(False)
        try:
            result = await self._client.validate(self.tenant, self._handle, secret)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "validate call failed",
                tenant=self.tenant,
                handle=self._handle,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            self._view.show_error(MSG_VALIDATION_TRANSPORT_ERROR)
            return self._state
        finally:
            self._in_flight = False
            self._view.set_form_enabled(True)

        if result.granted:
            record_bypass(self._store, self._handle)
            self._view.remove_challenge()
            self._view.reveal_content()
            self._state = GateState.UNLOCKED
            return self._state

        self._view.show_error(result.message or MSG_INVALID_PASSWORD)
        self._view.clear_input()
        self._view.focus_input()
        return self._state
