"""Session-scoped bypass store for the client gate agent.

A bypass is a boolean marker saying "this visitor already proved the secret
for <handle> in this browsing session". It lives only on the client: it is
never sent to the server and never outlives the session.

The store is an injected key/value capability so the agent's state machine is
not tied to a storage mechanism. In a browser it is ``sessionStorage``; in
Python it is InMemoryBypassStore (one instance per simulated session).

Keys are ``protected_<handle>``; the only value written is ``"true"``.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from pagegate.constants import BYPASS_KEY_PREFIX, BYPASS_VALUE


@runtime_checkable
class BypassStore(Protocol):
    """Minimal session storage: get / set / clear."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def clear(self) -> None:
        """Forget everything: the session ended."""
        ...


class InMemoryBypassStore:
    """Dict-backed BypassStore. One instance models one browsing session."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


def bypass_key(handle: str) -> str:
    return f"{BYPASS_KEY_PREFIX}{handle}"


def has_bypass(store: BypassStore, handle: str) -> bool:
    return store.get(bypass_key(handle)) == BYPASS_VALUE


def record_bypass(store: BypassStore, handle: str) -> None:
    store.set(bypass_key(handle), BYPASS_VALUE)
