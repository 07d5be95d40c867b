"""Unit tests for the client gate agent state machine.

The gate client is stubbed so each transition can be driven directly.
End-to-end runs against the real service live in
tests/integration/test_agent_end_to_end.py.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import httpx
import pytest

from pagegate.agent import (
    GateAgent,
    GateAgentError,
    GateState,
    HeadlessView,
    InMemoryBypassStore,
    SubmissionInProgressError,
    handle_from_path,
)
from pagegate.agent.storage import bypass_key, has_bypass, record_bypass
from pagegate.gate.models import DescribeResult, ValidateResult

TENANT = "shop1.myshopify.com"

GRANTED = ValidateResult(granted=True, message="Access granted", redirect="/pages/secret-page")
DENIED = ValidateResult(granted=False, message="Invalid password")


class StubClient:
    """GateClient stand-in with scripted answers and call recording."""

    def __init__(
        self,
        describe: Any = DescribeResult(protected=True, title="Secret Page", handle="secret-page"),
        validate: Any = GRANTED,
    ) -> None:
        self.describe_answer = describe
        self.validate_answer = validate
        self.describe_calls: list[tuple[str, str]] = []
        self.validate_calls: list[tuple[str, str, str]] = []
        self.hold: Optional[asyncio.Event] = None

    async def describe(self, tenant: str, handle: str) -> DescribeResult:
        self.describe_calls.append((tenant, handle))
        if isinstance(self.describe_answer, Exception):
            raise self.describe_answer
        return self.describe_answer

    async def validate(self, tenant: str, handle: str, secret: str) -> ValidateResult:
        self.validate_calls.append((tenant, handle, secret))
        if self.hold is not None:
            await self.hold.wait()
        if isinstance(self.validate_answer, Exception):
            raise self.validate_answer
        return self.validate_answer


def _agent(
    client: StubClient,
    store: Optional[InMemoryBypassStore] = None,
    view: Optional[HeadlessView] = None,
) -> tuple[GateAgent, InMemoryBypassStore, HeadlessView]:
    store = store if store is not None else InMemoryBypassStore()
    view = view if view is not None else HeadlessView()
    return GateAgent(TENANT, client, store, view), store, view  # type: ignore[arg-type]


# ─── Path matching ────────────────────────────────────────────────────────────


class TestHandleFromPath:
    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/pages/secret-page", "secret-page"),
            ("/pages/secret-page/", "secret-page"),
            ("/pages/a", "a"),
            ("/", None),
            ("/products/thing", None),
            ("/pages/", None),
            ("/pages", None),
            ("/pages/a/b", None),
            ("/en/pages/secret-page", None),
            ("/pages/caf%C3%A9-menu", "caf\u00e9-menu"),
            ("/pages/%E7%A7%98%E5%AF%86", "\u79d8\u5bc6"),
        ],
    )
    def test_paths(self, path: str, expected: Optional[str]) -> None:
        assert handle_from_path(path) == expected


# ─── start() ──────────────────────────────────────────────────────────────────


class TestStart:
    async def test_non_page_path_is_noop(self) -> None:
        client = StubClient()
        agent, store, view = _agent(client)

        assert await agent.start("/products/shirt") is GateState.UNKNOWN
        assert client.describe_calls == []
        assert view.events == []
        assert agent.handle is None

    async def test_protected_page_challenges(self) -> None:
        client = StubClient()
        agent, _, view = _agent(client)

        assert await agent.start("/pages/secret-page") is GateState.CHALLENGING
        assert client.describe_calls == [(TENANT, "secret-page")]
        assert view.content_visible is False
        assert view.challenge_visible is True
        assert view.challenge_title == "Secret Page"
        assert view.event_names == ["hide_content", "show_challenge", "focus_input"]

    async def test_unprotected_page_revealed(self) -> None:
        client = StubClient(describe=DescribeResult.unprotected())
        agent, _, view = _agent(client)

        assert await agent.start("/pages/about-us") is GateState.REVEALED
        assert view.content_visible is True
        assert view.events == []

    async def test_bypass_skips_network(self) -> None:
        client = StubClient()
        store = InMemoryBypassStore()
        record_bypass(store, "secret-page")
        agent, _, view = _agent(client, store=store)

        assert await agent.start("/pages/secret-page") is GateState.REVEALED
        assert client.describe_calls == []
        assert view.events == []

    async def test_bypass_for_other_handle_does_not_apply(self) -> None:
        client = StubClient()
        store = InMemoryBypassStore()
        record_bypass(store, "other-page")
        agent, _, _ = _agent(client, store=store)

        assert await agent.start("/pages/secret-page") is GateState.CHALLENGING
        assert len(client.describe_calls) == 1

    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("refused"),
            httpx.ReadTimeout("slow"),
            ValueError("not json"),
        ],
    )
    async def test_describe_failure_fails_open(self, error: Exception) -> None:
        client = StubClient(describe=error)
        agent, store, view = _agent(client)

        assert await agent.start("/pages/secret-page") is GateState.REVEALED
        assert view.content_visible is True
        assert view.challenge_visible is False
        assert len(store) == 0

    async def test_start_twice_rejected(self) -> None:
        agent, _, _ = _agent(StubClient())
        await agent.start("/pages/secret-page")
        with pytest.raises(GateAgentError):
            await agent.start("/pages/secret-page")


# ─── submit() ─────────────────────────────────────────────────────────────────


class TestSubmit:
    async def test_granted_unlocks_and_records_bypass(self) -> None:
        client = StubClient(validate=GRANTED)
        agent, store, view = _agent(client)
        await agent.start("/pages/secret-page")

        assert await agent.submit("hunter2") is GateState.UNLOCKED
        assert client.validate_calls == [(TENANT, "secret-page", "hunter2")]
        assert store.get(bypass_key("secret-page")) == "true"
        assert view.content_visible is True
        assert view.challenge_visible is False
        assert view.event_names[-2:] == ["remove_challenge", "reveal_content"]

    async def test_denied_shows_message_and_clears_input(self) -> None:
        client = StubClient(validate=DENIED)
        agent, store, view = _agent(client)
        await agent.start("/pages/secret-page")

        assert await agent.submit("wrong") is GateState.CHALLENGING
        assert view.error_message == "Invalid password"
        assert view.input_cleared == 1
        assert view.content_visible is False
        assert view.form_enabled is True
        assert len(store) == 0

    async def test_server_error_message_shown_verbatim(self) -> None:
        client = StubClient(validate=ValidateResult(granted=False, message="Server error"))
        agent, _, view = _agent(client)
        await agent.start("/pages/secret-page")

        await agent.submit("hunter2")
        assert view.error_message == "Server error"

    async def test_retry_after_denial(self) -> None:
        client = StubClient(validate=DENIED)
        agent, _, _ = _agent(client)
        await agent.start("/pages/secret-page")

        await agent.submit("wrong")
        client.validate_answer = GRANTED
        assert await agent.submit("hunter2") is GateState.UNLOCKED
        assert len(client.validate_calls) == 2

    async def test_transport_failure_keeps_challenge(self) -> None:
        client = StubClient(validate=httpx.ConnectError("down"))
        agent, store, view = _agent(client)
        await agent.start("/pages/secret-page")

        assert await agent.submit("hunter2") is GateState.CHALLENGING
        assert view.error_message == "Error validating password"
        assert view.input_cleared == 0
        assert view.form_enabled is True
        assert len(store) == 0

    async def test_form_disabled_while_in_flight(self) -> None:
        client = StubClient()
        client.hold = asyncio.Event()
        agent, _, view = _agent(client)
        await agent.start("/pages/secret-page")

        pending = asyncio.create_task(agent.submit("hunter2"))
        await asyncio.sleep(0)
        assert view.form_enabled is False

        with pytest.raises(SubmissionInProgressError):
            await agent.submit("again")

        client.hold.set()
        assert await pending is GateState.UNLOCKED
        assert view.form_enabled is True
        assert len(client.validate_calls) == 1

    async def test_submit_before_challenge_rejected(self) -> None:
        agent, _, _ = _agent(StubClient())
        with pytest.raises(GateAgentError):
            await agent.submit("hunter2")

    async def test_submit_after_unlock_rejected(self) -> None:
        agent, _, _ = _agent(StubClient())
        await agent.start("/pages/secret-page")
        await agent.submit("hunter2")
        with pytest.raises(GateAgentError):
            await agent.submit("hunter2")

    async def test_submit_on_revealed_page_rejected(self) -> None:
        agent, _, _ = _agent(StubClient(describe=DescribeResult.unprotected()))
        await agent.start("/pages/about-us")
        with pytest.raises(GateAgentError):
            await agent.submit("hunter2")


# ─── Session behaviour ────────────────────────────────────────────────────────


class TestSession:
    async def test_second_view_in_same_session_bypasses(self) -> None:
        client = StubClient()
        store = InMemoryBypassStore()

        first, _, _ = _agent(client, store=store)
        await first.start("/pages/secret-page")
        await first.submit("hunter2")

        second, _, view = _agent(client, store=store)
        assert await second.start("/pages/secret-page") is GateState.REVEALED
        assert len(client.describe_calls) == 1
        assert view.events == []

    async def test_new_session_challenges_again(self) -> None:
        client = StubClient()
        store = InMemoryBypassStore()

        first, _, _ = _agent(client, store=store)
        await first.start("/pages/secret-page")
        await first.submit("hunter2")

        store.clear()
        second, _, _ = _agent(client, store=store)
        assert await second.start("/pages/secret-page") is GateState.CHALLENGING

    def test_has_bypass_requires_exact_value(self) -> None:
        store = InMemoryBypassStore()
        store.set(bypass_key("secret-page"), "yes")
        assert has_bypass(store, "secret-page") is False
        record_bypass(store, "secret-page")
        assert has_bypass(store, "secret-page") is True
