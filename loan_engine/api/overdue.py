"""
Overdue projection endpoints
"""

from fastapi import APIRouter, Depends

from ..valuation import LoanValuation
from .dependencies import get_valuation, get_correlation_id, parse_date, bad_request
from .schemas import OverdueCyclesRequest, OverdueCyclesResponse, OverdueCycleModel


router = APIRouter()


@router.post("/cycles", response_model=OverdueCyclesResponse)
async def overdue_cycles(
    request: OverdueCyclesRequest,
    valuation: LoanValuation = Depends(get_valuation),
    correlation_id: str = Depends(get_correlation_id)
):
    """Days overdue and the missed payment cycles as of a date"""
    try:
        terms = request.terms.to_loan_terms()
        due_date = parse_date(request.due_date)
        current_date = parse_date(request.current_date)
        days = valuation.overdue.days_overdue(
            due_date, current_date, request.outstanding_balance.to_money()
        )
        cycles = valuation.overdue.cycles(terms, due_date, current_date) if days > 0 else []
    except ValueError as e:
        raise bad_request(e, correlation_id, action="overdue_cycles")

    return OverdueCyclesResponse(
        days_overdue=days,
        overdue_category=valuation.overdue.overdue_category(days).value,
        cycles=[OverdueCycleModel.from_cycle(cycle) for cycle in cycles]
    )
