"""
Loan Valuation Module

Single entry point for the figures the dashboards, client portal and
persistence layer display or store: it runs the engine components in order
(status -> balances -> profit -> overdue) so no consumer re-derives them.
Also reconciles stored figures against recalculated ones and summarizes
portfolio performance.
"""

from decimal import Decimal
from datetime import date
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

from .amortization import AmortizationCalculator
from .balances import BalanceProjector
from .config import EngineConfig, get_config
from .currency import Money, Currency, money_sum
from .exceptions import EngineWarning
from .loans import LoanTerms, PaymentHistory
from .logging_config import get_logger, log_action
from .overdue import OverdueTracker, OverdueCycle, OverdueCategory
from .profit import ProfitLedger
from .rates import RateValidator
from .status import (
    LoanStatus, LoanStatusResolver, should_be_closed, should_be_pending_overdue
)


@dataclass(frozen=True)
class LoanValues:
    """Auto-populated financial fields of a loan"""
    monthly_payment: Money
    projected_profit: Money
    realized_profit: Money
    outstanding_balance: Money
    total_profit: Money
    total_amount_due: Money
    principal_remaining: Money
    scheduled_principal_remaining: Money  # Schedule replay after payments_made installments
    should_be_closed: bool
    should_be_pending_overdue: bool


@dataclass(frozen=True)
class StatusChangeValues:
    """Fields that change when a loan moves to a new status; None means unchanged"""
    status: LoanStatus
    outstanding_balance: Optional[Money] = None
    realized_profit: Optional[Money] = None
    total_profit: Optional[Money] = None
    should_be_closed: Optional[bool] = None
    should_be_pending_overdue: Optional[bool] = None


@dataclass(frozen=True)
class LoanEvaluation:
    """Everything derived for one loan as of one date"""
    status: LoanStatus
    requires_overdue_record: bool
    values: LoanValues
    days_overdue: int
    overdue_category: OverdueCategory
    overdue_cycles: List[OverdueCycle]
    warnings: List[EngineWarning] = field(default_factory=list)


@dataclass(frozen=True)
class StoredLoanValues:
    """Figures as currently persisted for a loan"""
    projected_profit: Money
    realized_profit: Money
    outstanding_balance: Money
    total_profit: Money


@dataclass(frozen=True)
class FieldReconciliation:
    existing: Money
    calculated: Money
    matches: bool
    formula: str


@dataclass(frozen=True)
class Reconciliation:
    """Stored vs recalculated figures with remediation hints"""
    all_match: bool
    fields: Dict[str, FieldReconciliation]
    recommendations: List[str]


@dataclass(frozen=True)
class PortfolioLoan:
    """Minimal loan record for portfolio metrics"""
    terms: LoanTerms
    status: LoanStatus


@dataclass(frozen=True)
class PortfolioPerformance:
    total_disbursed: Money
    total_projected_interest: Money
    active_loan_count: int
    closed_loan_count: int
    defaulted_loan_count: int
    pending_overdue_loan_count: int
    portfolio_risk: Decimal          # Percent of loans defaulted
    completion_rate: Decimal         # Percent of loans closed
    average_loan_amount: Money
    total_portfolio_value: Money


RECONCILIATION_FORMULAS = {
    "projected_profit": "Principal x Interest Rate x Term",
    "realized_profit": "Total Payments Received - Principal",
    "outstanding_balance": "(Principal + Projected Profits) - Total Payments",
    "total_profit": "Realized Profits + Additional Fees",
}

RECONCILIATION_RECOMMENDATIONS = {
    "projected_profit": "Projected profits should be recalculated using: Principal x Interest Rate x Term",
    "realized_profit": "Realized profits may need adjustment based on actual payment history",
    "outstanding_balance": "Outstanding balance should be updated based on payments received",
    "total_profit": "Total profit calculation may include additional fees or adjustments",
}


class LoanValuation:
    """Runs the full engine pipeline for a loan"""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or get_config()
        self.calculator = AmortizationCalculator(self.config)
        self.rate_validator = RateValidator(self.config)
        self.balances = BalanceProjector(self.calculator)
        self.profits = ProfitLedger()
        self.overdue = OverdueTracker(self.config, self.calculator)
        self.resolver = LoanStatusResolver()
        self.logger = get_logger("loan_engine.valuation")

    def calculate_all(
        self,
        terms: LoanTerms,
        status: Union[LoanStatus, str],
        history: Optional[PaymentHistory] = None
    ) -> LoanValues:
        """All auto-populated fields for a loan in the given status"""
        status = LoanStatus.from_label(status)
        if history is None:
            history = PaymentHistory.empty(terms.currency)

        projected = self.profits.projected_profit(terms)
        realized = self.profits.realized_profit(
            terms.principal, projected, status,
            history.total_payments_received, history.has_overdue_records
        )
        outstanding = self.balances.outstanding_from_ledger(
            terms.principal, projected, history.total_payments_received, status
        )
        if status == LoanStatus.CLOSED:
            scheduled_remaining = Money.zero(terms.currency)
        else:
            scheduled_remaining = self.balances.outstanding_balance(terms, history.payments_made)

        return LoanValues(
            monthly_payment=self.calculator.monthly_payment(
                terms.principal, terms.monthly_interest_rate, terms.term_months
            ),
            projected_profit=projected,
            realized_profit=realized,
            outstanding_balance=outstanding,
            total_profit=self.profits.total_profit(realized, status, history.additional_fees),
            total_amount_due=self.balances.total_amount_due(terms.principal, projected),
            principal_remaining=self.balances.principal_remaining(terms.principal, history.principal_paid),
            scheduled_principal_remaining=scheduled_remaining,
            should_be_closed=should_be_closed(outstanding, history.has_overdue_records),
            should_be_pending_overdue=should_be_pending_overdue(history.has_overdue_records, outstanding)
        )

    def for_new_loan(self, terms: LoanTerms) -> LoanValues:
        """Pre-filled figures for a loan being created: nothing paid, nothing overdue"""
        return self.calculate_all(terms, LoanStatus.ACTIVE)

    def from_payments(
        self,
        terms: LoanTerms,
        history: PaymentHistory,
        status: Union[LoanStatus, str] = LoanStatus.ACTIVE
    ) -> LoanValues:
        """Figures updated from recorded payments"""
        return self.calculate_all(terms, status, history)

    def on_status_change(
        self,
        terms: LoanTerms,
        current_outstanding: Money,
        new_status: Union[LoanStatus, str],
        has_overdue_records: bool = False
    ) -> StatusChangeValues:
        """Fields to update when a loan is moved to a new status"""
        new_status = LoanStatus.from_label(new_status)
        projected = self.profits.projected_profit(terms)
        total_amount_due = self.balances.total_amount_due(terms.principal, projected)
        total_payments_received = total_amount_due - current_outstanding

        if new_status == LoanStatus.CLOSED:
            realized = self.profits.realized_profit(
                terms.principal, projected, new_status, total_amount_due, has_overdue_records
            )
            return StatusChangeValues(
                status=new_status,
                outstanding_balance=Money.zero(terms.currency),
                realized_profit=realized,
                total_profit=self.profits.total_profit(realized, new_status, Money.zero(terms.currency)),
                should_be_closed=True,
                should_be_pending_overdue=False
            )
        elif new_status == LoanStatus.DEFAULTED:
            realized = self.profits.realized_profit(
                terms.principal, projected, new_status, total_payments_received, has_overdue_records
            )
            return StatusChangeValues(
                status=new_status,
                realized_profit=realized,
                total_profit=self.profits.total_profit(realized, new_status, Money.zero(terms.currency)),
                should_be_closed=False,
                should_be_pending_overdue=False
            )
        elif new_status == LoanStatus.PENDING_OVERDUE:
            return StatusChangeValues(
                status=new_status,
                realized_profit=Money.zero(terms.currency),
                should_be_closed=False,
                should_be_pending_overdue=True
            )
        return StatusChangeValues(status=new_status)

    def evaluate(
        self,
        terms: LoanTerms,
        history: PaymentHistory,
        due_date: date,
        current_date: date,
        current_status: Optional[Union[LoanStatus, str]] = None,
        loan_id: Optional[str] = None,
        correlation_id: Optional[str] = None
    ) -> LoanEvaluation:
        """
        Resolve status and every derived figure of a loan as of current_date

        The outstanding balance used for status resolution is the ledger
        derivation before any status override.
        """
        if history.currency != terms.currency:
            raise ValueError("Payment history currency must match loan currency")

        warnings = list(self.rate_validator.check_terms(terms).warnings)

        projected = self.profits.projected_profit(terms)
        raw_outstanding = (
            self.balances.total_amount_due(terms.principal, projected) - history.total_payments_received
        )

        resolution = self.resolver.resolve(
            raw_outstanding, history.has_overdue_records, due_date, current_date,
            current_status=current_status, loan_id=loan_id
        )
        warnings.extend(resolution.warnings)

        values = self.calculate_all(terms, resolution.status, history)
        days = self.overdue.days_overdue(due_date, current_date, values.outstanding_balance)
        cycles = self.overdue.cycles(terms, due_date, current_date) if days > 0 else []

        log_action(
            self.logger, "debug", "Evaluated loan",
            loan_id=loan_id, action="evaluate", correlation_id=correlation_id,
            extra={"status": resolution.status.value, "days_overdue": days}
        )

        return LoanEvaluation(
            status=resolution.status,
            requires_overdue_record=resolution.requires_overdue_record,
            values=values,
            days_overdue=days,
            overdue_category=self.overdue.overdue_category(days),
            overdue_cycles=cycles,
            warnings=warnings
        )

    def reconcile(
        self,
        terms: LoanTerms,
        history: PaymentHistory,
        status: Union[LoanStatus, str],
        stored: StoredLoanValues
    ) -> Reconciliation:
        """Compare persisted figures with recalculated ones"""
        calculated = self.from_payments(terms, history, status)
        tolerance = self.config.reconciliation_tolerance
        profit_tolerance = self.config.profit_reconciliation_tolerance

        pairs = {
            "projected_profit": (stored.projected_profit, calculated.projected_profit, tolerance),
            "realized_profit": (stored.realized_profit, calculated.realized_profit, profit_tolerance),
            "outstanding_balance": (stored.outstanding_balance, calculated.outstanding_balance, tolerance),
            "total_profit": (stored.total_profit, calculated.total_profit, profit_tolerance),
        }

        fields = {}
        for name, (existing, recalculated, limit) in pairs.items():
            fields[name] = FieldReconciliation(
                existing=existing,
                calculated=recalculated,
                matches=abs((existing - recalculated).amount) < limit,
                formula=RECONCILIATION_FORMULAS[name]
            )

        recommendations = [RECONCILIATION_RECOMMENDATIONS[name]
                           for name, result in fields.items() if not result.matches]
        all_match = not recommendations
        if all_match:
            recommendations.append("All calculations match expected values")
        else:
            self.logger.warning("Stored loan figures diverge from recalculation: %s",
                                ", ".join(name for name, result in fields.items() if not result.matches))

        return Reconciliation(all_match=all_match, fields=fields, recommendations=recommendations)

    def portfolio_performance(
        self,
        loans: Iterable[PortfolioLoan],
        currency: Optional[Currency] = None
    ) -> PortfolioPerformance:
        """Disbursement, interest and status mix across a set of loans"""
        loans = list(loans)
        if currency is None:
            currency = loans[0].terms.currency if loans \
                else Currency.from_code(self.config.default_currency)

        total_disbursed = money_sum((loan.terms.principal for loan in loans), currency)
        total_interest = money_sum((self.calculator.total_interest(loan.terms) for loan in loans), currency)

        counts = {status: 0 for status in LoanStatus}
        for loan in loans:
            counts[loan.status] += 1

        if loans:
            count = Decimal(len(loans))
            portfolio_risk = Decimal(counts[LoanStatus.DEFAULTED]) / count * Decimal('100')
            completion_rate = Decimal(counts[LoanStatus.CLOSED]) / count * Decimal('100')
            average_loan = total_disbursed / count
        else:
            portfolio_risk = Decimal('0')
            completion_rate = Decimal('0')
            average_loan = Money.zero(currency)

        return PortfolioPerformance(
            total_disbursed=total_disbursed,
            total_projected_interest=total_interest,
            active_loan_count=counts[LoanStatus.ACTIVE],
            closed_loan_count=counts[LoanStatus.CLOSED],
            defaulted_loan_count=counts[LoanStatus.DEFAULTED],
            pending_overdue_loan_count=counts[LoanStatus.PENDING_OVERDUE],
            portfolio_risk=portfolio_risk,
            completion_rate=completion_rate,
            average_loan_amount=average_loan,
            total_portfolio_value=total_disbursed + total_interest
        )
