"""
Shared request dependencies
"""

import uuid
from datetime import date
from typing import Optional

from fastapi import Header, HTTPException

from ..config import get_config
from ..exceptions import LoanEngineError
from ..logging_config import get_logger, log_action
from ..valuation import LoanValuation


logger = get_logger("loan_engine.api")


def get_valuation() -> LoanValuation:
    """Engine wired to the current configuration"""
    return LoanValuation(get_config())


def get_correlation_id(x_correlation_id: Optional[str] = Header(None)) -> str:
    """Caller's X-Correlation-ID, or a fresh one for this request"""
    return x_correlation_id or str(uuid.uuid4())


def parse_date(value: Optional[str], default: Optional[date] = None) -> date:
    """ISO date from a request field, today when omitted"""
    if value is None:
        return default or date.today()
    return date.fromisoformat(value)


def bad_request(error: Exception, correlation_id: Optional[str] = None,
                action: Optional[str] = None) -> HTTPException:
    """Map an engine or validation error to HTTP 400"""
    detail = {"error": type(error).__name__}
    if isinstance(error, LoanEngineError):
        detail["message"] = error.message
        detail["details"] = {k: str(v) for k, v in error.details.items()}
    else:
        detail["message"] = str(error)

    log_action(logger, "info", f"Rejected request: {detail['message']}",
               action=action, correlation_id=correlation_id,
               extra={"error": detail["error"]})
    return HTTPException(status_code=400, detail=detail)
