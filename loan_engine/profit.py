"""
Profit Recognition Module

Projected profit is the flat interest expected over the full term.
Realized profit is only recognized once a loan is closed (or recovered
after default) and never while an overdue record is open, even when the
balance happens to be zero.
"""

from typing import Union

from .currency import Money
from .loans import LoanTerms
from .logging_config import get_logger
from .status import LoanStatus


class ProfitLedger:
    """Projected, realized and total profit for a loan"""

    def __init__(self):
        self.logger = get_logger("loan_engine.profit")

    def projected_profit(self, terms: LoanTerms) -> Money:
        """
        Flat interest: principal * monthly rate * term

        Distinct from AmortizationCalculator.total_interest,
        which compounds on the declining balance.
        """
        return terms.principal * (terms.monthly_interest_rate * terms.term_months)

    def realized_profit(
        self,
        principal: Money,
        projected_profit: Money,
        status: Union[LoanStatus, str],
        total_payments_received: Money,
        has_overdue_records: bool
    ) -> Money:
        """
        Profit recognized so far

        Args:
            principal: Amount disbursed
            projected_profit: Flat interest expected over the term
            status: Resolved loan status
            total_payments_received: All repayments to date
            has_overdue_records: Overdue records are still open for the loan

        Returns:
            Payments received beyond principal for closed loans without
            overdue records and for defaulted loans (recovery), else zero

        Raises:
            InvalidStatusError: Status label is not a known loan status;
                unknown labels are rejected rather than treated as zero profit
        """
        status = LoanStatus.from_label(status)
        zero = Money.zero(principal.currency)
        recovered = (total_payments_received - principal).floor_zero()

        if has_overdue_records:
            if status == LoanStatus.CLOSED:
                self.logger.warning(
                    "Closed loan still has open overdue records; no profit recognized"
                )
            return zero

        if status == LoanStatus.CLOSED:
            return recovered
        elif status == LoanStatus.DEFAULTED:
            return recovered
        elif status == LoanStatus.PENDING_OVERDUE:
            return zero
        elif status == LoanStatus.ACTIVE:
            return zero
        raise ValueError(f"Unhandled loan status: {status}")

    def total_profit(
        self,
        realized_profit: Money,
        status: Union[LoanStatus, str],
        additional_fees: Money
    ) -> Money:
        """Realized profit, plus fees once the loan is closed"""
        if LoanStatus.from_label(status) == LoanStatus.CLOSED:
            return realized_profit + additional_fees
        return realized_profit
