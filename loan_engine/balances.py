"""
Balance Projection Module

Two derivations of what a borrower still owes: replaying the amortization
schedule for a known number of installments, and the ledger view of
principal plus projected profit less payments received.
"""

from typing import Optional, Union

from .amortization import AmortizationCalculator
from .currency import Money
from .loans import LoanTerms
from .status import LoanStatus


class BalanceProjector:
    """Outstanding balance and principal remaining at any point of the loan"""

    def __init__(self, calculator: Optional[AmortizationCalculator] = None):
        self.calculator = calculator or AmortizationCalculator()

    def outstanding_balance(self, terms: LoanTerms, payments_made: int) -> Money:
        """
        Principal remaining after a number of scheduled installments

        Args:
            terms: Loan terms
            payments_made: Installments paid so far

        Returns:
            Remaining balance; the principal before any payment, zero once
            every installment is paid
        """
        if payments_made <= 0:
            return terms.principal
        if payments_made >= terms.term_months:
            return Money.zero(terms.currency)

        schedule = self.calculator.schedule(terms)
        return schedule[payments_made - 1].remaining_balance_after

    def outstanding_from_ledger(
        self,
        principal: Money,
        projected_profit: Money,
        total_payments_received: Money,
        status: Union[LoanStatus, str]
    ) -> Money:
        """
        Amount due less payments received, for when installment counts are unknown

        A closed loan owes nothing whatever the arithmetic says. Unknown
        status labels raise InvalidStatusError.
        """
        if LoanStatus.from_label(status) == LoanStatus.CLOSED:
            return Money.zero(principal.currency)

        total_amount_due = self.total_amount_due(principal, projected_profit)
        return (total_amount_due - total_payments_received).floor_zero()

    def total_amount_due(self, principal: Money, projected_profit: Money) -> Money:
        return principal + projected_profit

    def principal_remaining(self, principal: Money, principal_paid: Money) -> Money:
        return (principal - principal_paid).floor_zero()
