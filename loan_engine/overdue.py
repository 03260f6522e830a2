"""
Overdue Tracking Module

Days overdue, the cycle-by-cycle breakdown of missed payment periods,
overdue penalties and portfolio overdue statistics. Every figure here is a
projection recomputed for the date it is asked for; none of it is a stored
ledger of missed payments.
"""

from decimal import Decimal, ROUND_HALF_UP
from datetime import date, timedelta
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Union

from .amortization import AmortizationCalculator
from .config import EngineConfig, get_config
from .currency import Money, Currency, to_decimal, money_sum
from .loans import LoanTerms
from .logging_config import get_logger


class OverdueCategory(Enum):
    """Aging buckets shown on the overdue dashboard"""
    NOT_OVERDUE = "Not Overdue"
    DAYS_1_7 = "1-7 Days"
    DAYS_8_30 = "8-30 Days"
    DAYS_30_PLUS = "30+ Days"


@dataclass(frozen=True)
class OverdueCycle:
    """One ~30 day period of missed payment"""
    cycle_number: int
    cycle_due_date: date
    cycle_amount: Money
    days_overdue_at_cycle: int


@dataclass(frozen=True)
class OverdueAmount:
    """Penalty interest accrued on an overdue balance"""
    days_overdue: int
    overdue_interest: Money
    penalty_rate: Decimal        # Daily penalty rate as a fraction
    total_overdue: Money

    @property
    def penalty_rate_percent(self) -> Decimal:
        return self.penalty_rate * Decimal('100')


@dataclass(frozen=True)
class OverdueSnapshot:
    """Overdue figures for one loan, as fed to portfolio statistics"""
    outstanding_balance: Money
    days_overdue: int
    cycles: int = 0


@dataclass(frozen=True)
class OverdueStatistics:
    """Portfolio-level overdue summary"""
    total_overdue_loans: int
    total_overdue_amount: Money
    total_overdue_cycles: int
    average_days_overdue: int
    categories: Dict[str, int] = field(default_factory=dict)


class OverdueTracker:
    """Overdue projections for a loan as of a given date"""

    def __init__(self, config: Optional[EngineConfig] = None,
                 calculator: Optional[AmortizationCalculator] = None):
        self.config = config or get_config()
        self.calculator = calculator or AmortizationCalculator(self.config)
        self.logger = get_logger("loan_engine.overdue")

    def days_overdue(
        self,
        due_date: date,
        current_date: date,
        outstanding_balance: Union[Money, Decimal, int]
    ) -> int:
        """Whole days past the due date; zero when nothing is owed"""
        balance = outstanding_balance.amount if isinstance(outstanding_balance, Money) \
            else to_decimal(outstanding_balance)
        if balance <= Decimal('0'):
            return 0
        return max(0, (current_date - due_date).days)

    def cycle_count(self, days_overdue: int) -> int:
        """Missed periods for a number of days overdue, bounded by max_overdue_cycles"""
        if days_overdue <= 0:
            return 0
        count = days_overdue // self.config.overdue_cycle_days + 1
        if count > self.config.max_overdue_cycles:
            self.logger.warning(
                "Overdue cycle count %d capped at %d", count, self.config.max_overdue_cycles
            )
            count = self.config.max_overdue_cycles
        return count

    def cycles(self, terms: LoanTerms, due_date: date, current_date: date) -> List[OverdueCycle]:
        """
        Missed payment cycles, oldest first

        The last cycle falls on due_date; earlier cycles step back one
        cycle length each. Each cycle is due one monthly installment.
        """
        days = max(0, (current_date - due_date).days)
        count = self.cycle_count(days)
        if count == 0:
            return []

        installment = self.calculator.monthly_payment(
            terms.principal, terms.monthly_interest_rate, terms.term_months
        )
        step = timedelta(days=self.config.overdue_cycle_days)

        cycles = []
        for cycle_number in range(1, count + 1):
            cycle_due_date = due_date - step * (count - cycle_number)
            cycles.append(OverdueCycle(
                cycle_number=cycle_number,
                cycle_due_date=cycle_due_date,
                cycle_amount=installment,
                days_overdue_at_cycle=max(0, (current_date - cycle_due_date).days)
            ))
        return cycles

    def overdue_category(self, days_overdue: int) -> OverdueCategory:
        if days_overdue <= 0:
            return OverdueCategory.NOT_OVERDUE
        elif days_overdue <= 7:
            return OverdueCategory.DAYS_1_7
        elif days_overdue <= 30:
            return OverdueCategory.DAYS_8_30
        return OverdueCategory.DAYS_30_PLUS

    def overdue_amount(
        self,
        outstanding_balance: Money,
        days_overdue: int,
        monthly_rate: Union[Decimal, str, float],
        penalty_multiplier: Optional[Decimal] = None
    ) -> OverdueAmount:
        """
        Penalty interest on an overdue balance

        The monthly rate is spread over 30 days and scaled by the penalty
        multiplier (1.5 by default).
        """
        if penalty_multiplier is None:
            penalty_multiplier = self.config.penalty_multiplier
        days = max(0, days_overdue)
        daily_rate = to_decimal(monthly_rate) / Decimal('30')
        penalty_rate = daily_rate * to_decimal(penalty_multiplier)
        overdue_interest = outstanding_balance * (penalty_rate * days)

        return OverdueAmount(
            days_overdue=days,
            overdue_interest=overdue_interest,
            penalty_rate=penalty_rate,
            total_overdue=outstanding_balance + overdue_interest
        )

    def statistics(self, items: Iterable[OverdueSnapshot],
                   currency: Optional[Currency] = None) -> OverdueStatistics:
        """Summary over the loans currently overdue"""
        overdue = [item for item in items
                   if item.days_overdue > 0 and item.outstanding_balance.is_positive()]

        if currency is None:
            currency = overdue[0].outstanding_balance.currency if overdue \
                else Currency.from_code(self.config.default_currency)

        categories = {category.value: 0 for category in OverdueCategory
                      if category != OverdueCategory.NOT_OVERDUE}
        for item in overdue:
            categories[self.overdue_category(item.days_overdue).value] += 1

        average = 0
        if overdue:
            mean = Decimal(sum(item.days_overdue for item in overdue)) / Decimal(len(overdue))
            average = int(mean.quantize(Decimal('1'), rounding=ROUND_HALF_UP))

        return OverdueStatistics(
            total_overdue_loans=len(overdue),
            total_overdue_amount=money_sum((item.outstanding_balance for item in overdue), currency),
            total_overdue_cycles=sum(item.cycles for item in overdue),
            average_days_overdue=average,
            categories=categories
        )
