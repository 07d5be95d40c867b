"""Gate protocol result types.

DescribeResult answers "is this resource protected?".
ValidateResult answers "does this secret unlock it?".

Both are built per request and never stored.
Optional fields are omitted from the wire form when unset.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class DescribeResult:
    protected: bool
    title: Optional[str] = None
    handle: Optional[str] = None

    @classmethod
    def unprotected(cls) -> "DescribeResult":
        return cls(protected=False)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"protected": self.protected}
        if self.title is not None:
            body["title"] = self.title
        if self.handle is not None:
            body["handle"] = self.handle
        return body

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DescribeResult":
        return cls(
            protected=bool(data.get("protected", False)),
            title=data.get("title"),
            handle=data.get("handle"),
        )


@dataclass(frozen=True)
class ValidateResult:
    granted: bool
    message: str
    redirect: Optional[str] = None

    @classmethod
    def denied(cls, message: str) -> "ValidateResult":
        return cls(granted=False, message=message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"granted": self.granted, "message": self.message}
        if self.redirect is not None:
            body["redirect"] = self.redirect
        return body

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ValidateResult":
        return cls(
            granted=bool(data.get("granted", False)),
            message=str(data.get("message", "")),
            redirect=data.get("redirect"),
        )
