"""ULID generation for PageGate request correlation.

Each HTTP request served by PageGate is tagged with a 26-character ULID
(Crockford Base32, lexicographically sortable). The value is bound to the
structlog context and echoed back in the ``X-PageGate-Request-ID`` header.

Uses the ``python-ulid`` library; do not hand-roll ULID generation.
"""

from __future__ import annotations

from ulid import ULID


def generate_ulid() -> str:
    """Generate a new ULID as a 26-character uppercase string.

    Example::

        request_id = generate_ulid()
        # "01KJ0JRVHYA7KX32VPN5ZSCTMV"
        assert len(request_id) == 26
    """
    return str(ULID())
