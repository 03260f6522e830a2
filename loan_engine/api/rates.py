"""
Rate policy endpoints
"""

from fastapi import APIRouter, Depends

from ..valuation import LoanValuation
from .dependencies import get_valuation, get_correlation_id, bad_request
from .schemas import RateCheckRequest, RateCheckResponse


router = APIRouter()


@router.post("/check", response_model=RateCheckResponse)
async def check_rate(
    request: RateCheckRequest,
    valuation: LoanValuation = Depends(get_valuation),
    correlation_id: str = Depends(get_correlation_id)
):
    """Whether a rate is a sanctioned tier, and the nearest tier if not"""
    try:
        check = valuation.rate_validator.check(request.rate)
    except ValueError as e:
        raise bad_request(e, correlation_id, action="rate_check")

    return RateCheckResponse.from_check(check)
