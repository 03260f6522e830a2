"""
Loan calculation endpoints
"""

from fastapi import APIRouter, Depends

from ..valuation import LoanValuation
from .dependencies import get_valuation, get_correlation_id, parse_date, bad_request
from .schemas import (
    CalculateLoanRequest, EvaluateLoanRequest,
    AmortizationResponse, LoanEvaluationResponse
)


router = APIRouter()


@router.post("/calculate", response_model=AmortizationResponse)
async def calculate_loan(
    request: CalculateLoanRequest,
    valuation: LoanValuation = Depends(get_valuation),
    correlation_id: str = Depends(get_correlation_id)
):
    """Monthly payment, totals and amortization schedule"""
    try:
        terms = request.terms.to_loan_terms()
        result = valuation.calculator.calculate(terms)
        rate_check = valuation.rate_validator.check_terms(terms)
        projected = valuation.profits.projected_profit(terms)
    except ValueError as e:
        raise bad_request(e, correlation_id, action="calculate")

    return AmortizationResponse.build(result, projected, rate_check.warnings)


@router.post("/evaluate", response_model=LoanEvaluationResponse)
async def evaluate_loan(
    request: EvaluateLoanRequest,
    valuation: LoanValuation = Depends(get_valuation),
    correlation_id: str = Depends(get_correlation_id)
):
    """Resolved status, balances, profits and overdue cycles as of a date"""
    try:
        evaluation = valuation.evaluate(
            terms=request.terms.to_loan_terms(),
            history=request.history.to_payment_history(),
            due_date=parse_date(request.due_date),
            current_date=parse_date(request.current_date),
            current_status=request.current_status,
            loan_id=request.loan_id,
            correlation_id=correlation_id
        )
    except ValueError as e:
        raise bad_request(e, correlation_id, action="evaluate")

    return LoanEvaluationResponse.from_evaluation(evaluation)
