"""
Loan Records Module

Immutable inputs consumed by the engine: the terms fixed at disbursal, the
payment-history snapshot supplied by the persistence layer, and the
schedule entries derived from the terms.
"""

from decimal import Decimal
from datetime import date
from dataclasses import dataclass
from typing import Optional, Union
import calendar

from .currency import Money, Currency, to_decimal, to_money
from .exceptions import InvalidTermsError


def add_months(start_date: date, months: int) -> date:
    """Add months to a date, handling month-end edge cases"""
    month = start_date.month - 1 + months
    year = start_date.year + month // 12
    month = month % 12 + 1
    day = min(start_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def validate_rate(rate: Decimal) -> Decimal:
    """Reject rates outside [0, 1)"""
    if not rate.is_finite() or rate < Decimal('0') or rate >= Decimal('1'):
        raise InvalidTermsError(
            "Monthly interest rate must be between 0 and 1 (0-100%)",
            {"rate": str(rate)}
        )
    return rate


@dataclass(frozen=True)
class LoanTerms:
    """Loan terms fixed at disbursal"""
    principal: Money
    monthly_interest_rate: Decimal     # e.g. 0.15 for 15% per month
    term_months: int
    origination_date: date
    off_policy: bool = False           # Rate deliberately outside the sanctioned tiers

    def __post_init__(self):
        if not isinstance(self.monthly_interest_rate, Decimal):
            object.__setattr__(self, 'monthly_interest_rate', to_decimal(self.monthly_interest_rate))

        if not self.principal.is_positive():
            raise InvalidTermsError(
                "Principal must be positive",
                {"principal": self.principal.to_string()}
            )
        if isinstance(self.term_months, bool) or not isinstance(self.term_months, int) or self.term_months < 1:
            raise InvalidTermsError(
                "Term must be at least one month",
                {"term_months": self.term_months}
            )
        validate_rate(self.monthly_interest_rate)

    @classmethod
    def create(
        cls,
        principal: Union[Money, Decimal, int, str],
        monthly_interest_rate: Union[Decimal, str, float],
        term_months: int,
        origination_date: date,
        currency: Optional[Currency] = None,
        off_policy: bool = False
    ) -> 'LoanTerms':
        """Build terms from bare amounts (UGX unless a currency is given)"""
        return cls(
            principal=to_money(principal, currency),
            monthly_interest_rate=to_decimal(monthly_interest_rate),
            term_months=term_months,
            origination_date=origination_date,
            off_policy=off_policy
        )

    @property
    def currency(self) -> Currency:
        return self.principal.currency

    @property
    def maturity_date(self) -> date:
        """Due date of the final scheduled payment"""
        return add_months(self.origination_date, self.term_months)


@dataclass(frozen=True)
class PaymentScheduleEntry:
    """Single entry in amortization schedule"""
    payment_number: int
    due_date: date
    scheduled_payment: Money
    principal_portion: Money
    interest_portion: Money
    remaining_balance_after: Money

    def __post_init__(self):
        calculated_payment = self.principal_portion + self.interest_portion
        if calculated_payment != self.scheduled_payment:
            raise ValueError(f"Payment amount {self.scheduled_payment.to_string()} does not equal "
                             f"principal {self.principal_portion.to_string()} + "
                             f"interest {self.interest_portion.to_string()}")


@dataclass(frozen=True)
class PaymentHistory:
    """Aggregated repayment figures, owned and written by the persistence layer"""
    total_payments_received: Money
    principal_paid: Optional[Money] = None
    additional_fees: Optional[Money] = None
    has_overdue_records: bool = False
    payments_made: int = 0

    def __post_init__(self):
        zero_amount = Money(Decimal('0'), self.total_payments_received.currency)
        if self.principal_paid is None:
            object.__setattr__(self, 'principal_paid', zero_amount)
        if self.additional_fees is None:
            object.__setattr__(self, 'additional_fees', zero_amount)

        currencies = {self.total_payments_received.currency, self.principal_paid.currency,
                      self.additional_fees.currency}
        if len(currencies) > 1:
            raise ValueError("All payment history amounts must use the same currency")
        if self.payments_made < 0:
            raise ValueError("payments_made cannot be negative")

    @classmethod
    def empty(cls, currency: Currency) -> 'PaymentHistory':
        """History of a loan with no repayments recorded yet"""
        return cls(total_payments_received=Money.zero(currency))

    @property
    def currency(self) -> Currency:
        return self.total_payments_received.currency
