"""
Engine Errors and Warnings

Errors abort a single calculation and propagate to the caller. Warnings are
non-fatal markers: the engine returns them alongside a best-effort result
and never raises them.
"""

from typing import Any, Dict, Optional


class LoanEngineError(Exception):
    """Base exception for all loan engine errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class InvalidTermsError(LoanEngineError, ValueError):
    """Principal, term or rate is structurally invalid"""
    pass


class OffPolicyRateError(LoanEngineError, ValueError):
    """Raised when an off-tier rate is applied without accepting the suggested tier"""

    def __init__(self, rate, suggested):
        super().__init__(
            f"Rate {rate} is not a sanctioned tier (nearest tier: {suggested})",
            {"rate": str(rate), "suggested": str(suggested)}
        )
        self.rate = rate
        self.suggested = suggested


class InvalidStatusError(LoanEngineError, ValueError):
    """Unrecognized loan status label"""

    def __init__(self, label):
        super().__init__(f"Unknown loan status: {label!r}", {"label": label})
        self.label = label


class EngineWarning(UserWarning):
    """Base class for non-fatal engine markers"""

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self):
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": type(self).__name__,
            "message": self.message,
            "context": {k: str(v) for k, v in self.context.items()},
        }


class OffPolicyRateWarning(EngineWarning):
    """Rate is numerically valid but not one of the sanctioned tiers"""
    pass


class InconsistentStateWarning(EngineWarning):
    """Inputs contradict each other and indicate an upstream data-integrity issue"""
    pass
