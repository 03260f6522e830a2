"""
Amortization Module

Monthly payment, total interest and full payment schedules for equal
installment loans, plus the flat-installment convention used by imported
loan records.
"""

from decimal import Decimal
from dataclasses import dataclass
from typing import List, Optional, Union

from .config import EngineConfig, get_config
from .currency import Money, Currency, to_decimal, to_money
from .exceptions import InvalidTermsError
from .loans import LoanTerms, PaymentScheduleEntry, add_months, validate_rate
from .logging_config import get_logger


@dataclass(frozen=True)
class AmortizationResult:
    """Payment figures and schedule for one set of terms"""
    monthly_payment: Money
    total_payment: Money
    total_interest: Money
    schedule: List[PaymentScheduleEntry]


class AmortizationCalculator:
    """
    Equal installment (French) amortization.

    Amounts are Money rounded to the currency precision at every step; the
    final installment settles whatever principal remains so the schedule
    always ends at exactly zero.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or get_config()
        self.logger = get_logger("loan_engine.amortization")

    def _check_inputs(self, principal: Money, monthly_rate: Decimal, term_months: int) -> None:
        if not principal.is_positive():
            raise InvalidTermsError("Principal must be positive",
                                    {"principal": principal.to_string()})
        if term_months < 1:
            raise InvalidTermsError("Term must be at least one month",
                                    {"term_months": term_months})
        if term_months > self.config.max_term_months:
            raise InvalidTermsError(
                f"Term exceeds the maximum of {self.config.max_term_months} months",
                {"term_months": term_months}
            )
        validate_rate(monthly_rate)

    def _as_money(self, value, currency: Optional[Currency]) -> Money:
        """Bare amounts default to the configured currency"""
        if currency is None and not isinstance(value, Money):
            currency = Currency.from_code(self.config.default_currency)
        return to_money(value, currency)

    def monthly_payment(
        self,
        principal: Union[Money, Decimal, int, str],
        monthly_rate: Union[Decimal, str, float],
        term_months: int,
        currency: Optional[Currency] = None
    ) -> Money:
        """
        Installment for an equal installment loan

        Standard loan payment formula: P * [r(1+r)^n] / [(1+r)^n - 1]
        where P = principal, r = monthly rate, n = number of payments.
        A zero rate degrades to P / n, rounded half-up to the currency
        precision like every Money value (UGX 1,000,000 / 3 is 333,333); the
        last schedule entry settles the remainder.
        """
        principal = self._as_money(principal, currency)
        rate = to_decimal(monthly_rate)
        self._check_inputs(principal, rate, term_months)

        num_payments = Decimal(term_months)
        if rate == Decimal('0'):
            return principal / num_payments

        factor = (Decimal('1') + rate) ** term_months
        payment_amount = principal.amount * (rate * factor) / (factor - Decimal('1'))
        return Money(payment_amount, principal.currency)

    def schedule(self, terms: LoanTerms) -> List[PaymentScheduleEntry]:
        """Generate the amortization schedule, one entry per month"""
        payment_amount = self.monthly_payment(
            terms.principal, terms.monthly_interest_rate, terms.term_months
        )
        rate = terms.monthly_interest_rate
        remaining_balance = terms.principal

        schedule = []
        for payment_num in range(1, terms.term_months + 1):
            interest_amount = remaining_balance * rate
            principal_amount = payment_amount - interest_amount

            if payment_num == terms.term_months or principal_amount > remaining_balance:
                # Settle exactly what is left
                principal_amount = remaining_balance

            remaining_balance = (remaining_balance - principal_amount).floor_zero()

            schedule.append(PaymentScheduleEntry(
                payment_number=payment_num,
                due_date=add_months(terms.origination_date, payment_num),
                scheduled_payment=principal_amount + interest_amount,
                principal_portion=principal_amount,
                interest_portion=interest_amount,
                remaining_balance_after=remaining_balance
            ))

        self.logger.debug(
            "Generated %d-entry schedule for %s at %s",
            len(schedule), terms.principal.to_string(), rate
        )
        return schedule

    def total_interest(self, terms: LoanTerms) -> Money:
        """Interest over the full term: installment * n - principal"""
        payment_amount = self.monthly_payment(
            terms.principal, terms.monthly_interest_rate, terms.term_months
        )
        return payment_amount * terms.term_months - terms.principal

    def calculate(self, terms: LoanTerms) -> AmortizationResult:
        """Monthly payment, totals and schedule in one result"""
        payment_amount = self.monthly_payment(
            terms.principal, terms.monthly_interest_rate, terms.term_months
        )
        total_payment = payment_amount * terms.term_months
        return AmortizationResult(
            monthly_payment=payment_amount,
            total_payment=total_payment,
            total_interest=total_payment - terms.principal,
            schedule=self.schedule(terms)
        )

    def flat_installment(
        self,
        principal: Union[Money, Decimal, int, str],
        annual_rate_percent: Union[Decimal, str, float, int],
        term_months: int,
        currency: Optional[Currency] = None
    ) -> Money:
        """
        Installment under the flat convention of imported loan records

        Interest is principal * annual% * (n / 12), spread evenly with the
        principal over n months. e.g. 5,000,000 at 15% for 12 months gives
        5,750,000 / 12 = 479,166.67.
        """
        principal = self._as_money(principal, currency)
        annual_rate = to_decimal(annual_rate_percent) / Decimal('100')
        if annual_rate < Decimal('0'):
            raise InvalidTermsError("Annual rate cannot be negative",
                                    {"annual_rate_percent": str(annual_rate_percent)})
        self._check_inputs(principal, Decimal('0'), term_months)

        total_interest = principal.amount * annual_rate * Decimal(term_months) / Decimal('12')
        return Money((principal.amount + total_interest) / Decimal(term_months), principal.currency)

    def early_payment_discount(
        self,
        remaining_balance: Money,
        remaining_terms: int,
        discount_rate: Optional[Decimal] = None
    ) -> Money:
        """Discount offered for settling early; scales with remaining terms up to the full rate"""
        if remaining_terms <= 0:
            return Money.zero(remaining_balance.currency)
        if discount_rate is None:
            discount_rate = self.config.early_payment_discount_rate
        discount_rate = to_decimal(discount_rate)

        discount_factor = min(discount_rate * Decimal(remaining_terms) / Decimal('12'), discount_rate)
        return remaining_balance * discount_factor
