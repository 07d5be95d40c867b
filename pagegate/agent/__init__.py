"""PageGate client gate agent.

Python implementation of the per-view gate state machine. The browser build
of the same machine ships as ``agent/static/gate-agent.js`` and is served by
the service at ``/gate-agent.js``.
"""

from pagegate.agent.client import GateClient
from pagegate.agent.machine import (
    GateAgent,
    GateAgentError,
    GateState,
    SubmissionInProgressError,
    handle_from_path,
)
from pagegate.agent.storage import BypassStore, InMemoryBypassStore
from pagegate.agent.view import ChallengeView, HeadlessView

__all__ = [
    "GateAgent",
    "GateAgentError",
    "GateClient",
    "GateState",
    "SubmissionInProgressError",
    "handle_from_path",
    "BypassStore",
    "InMemoryBypassStore",
    "ChallengeView",
    "HeadlessView",
]
