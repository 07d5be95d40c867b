"""Presentation seam of the gate agent.

The state machine drives a ChallengeView; the view owns whatever actually
renders (a DOM overlay in the browser script, a recorder in tests or
headless checks). The view never decides anything.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class ChallengeView(Protocol):
    def hide_content(self) -> None:
        ...

    def reveal_content(self) -> None:
        ...

    def show_challenge(self, title: Optional[str]) -> None:
        """Overlay the secret prompt. ``title`` is the protected page's name."""
        ...

    def remove_challenge(self) -> None:
        ...

    def show_error(self, message: str) -> None:
        ...

    def clear_input(self) -> None:
        ...

    def focus_input(self) -> None:
        ...

    def set_form_enabled(self, enabled: bool) -> None:
        ...


class HeadlessView:
    """ChallengeView that records calls and tracks visible state.

    Used for headless runs of the agent and as the view in tests.
    """

    def __init__(self) -> None:
        self.events: list[tuple[str, Optional[str]]] = []
        self.content_visible: bool = True
        self.challenge_visible: bool = False
        self.form_enabled: bool = True
        self.challenge_title: Optional[str] = None
        self.error_message: Optional[str] = None
        self.input_cleared: int = 0

    def hide_content(self) -> None:
        self.content_visible = False
        self.events.append(("hide_content", None))

    def reveal_content(self) -> None:
        self.content_visible = True
        self.events.append(("reveal_content", None))

    def show_challenge(self, title: Optional[str]) -> None:
        self.challenge_visible = True
        self.challenge_title = title
        self.events.append(("show_challenge", title))

    def remove_challenge(self) -> None:
        self.challenge_visible = False
        self.events.append(("remove_challenge", None))

    def show_error(self, message: str) -> None:
        self.error_message = message
        self.events.append(("show_error", message))

    def clear_input(self) -> None:
        self.input_cleared += 1
        self.events.append(("clear_input", None))

    def focus_input(self) -> None:
        self.events.append(("focus_input", None))

    def set_form_enabled(self, enabled: bool) -> None:
        self.form_enabled = enabled
        self.events.append(("set_form_enabled", str(enabled).lower()))

    @property
    def event_names(self) -> list[str]:
        return [name for name, _ in self.events]
