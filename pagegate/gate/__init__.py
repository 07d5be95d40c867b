"""PageGate gate check service.

Public API:
  - GateService     — describe() / validate() over an injected Registry
  - DescribeResult  — {protected, title?, handle?}
  - ValidateResult  — {granted, message, redirect?}
"""

from pagegate.gate.models import DescribeResult, ValidateResult
from pagegate.gate.service import GateService

__all__ = [
    "GateService",
    "DescribeResult",
    "ValidateResult",
]
