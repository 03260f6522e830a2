"""
Pydantic request/response schemas for the API

Amounts and rates travel as strings so no value passes through float.
"""

from datetime import date
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from ..amortization import AmortizationResult
from ..currency import Money, Currency, decimal_from_string
from ..exceptions import EngineWarning
from ..loans import LoanTerms, PaymentHistory, PaymentScheduleEntry
from ..overdue import OverdueCycle
from ..rates import RateCheck
from ..valuation import LoanEvaluation, LoanValues


class MoneyModel(BaseModel):
    amount: str = Field(..., description="Decimal amount as string")
    currency: str = Field("UGX", description="Currency code (UGX, KES, USD, EUR)")

    def to_money(self) -> Money:
        return Money(decimal_from_string(self.amount), Currency.from_code(self.currency))

    @classmethod
    def from_money(cls, money: Money) -> 'MoneyModel':
        return cls(amount=str(money.amount), currency=money.currency.code)


class WarningModel(BaseModel):
    type: str
    message: str
    context: Dict[str, str] = {}

    @classmethod
    def from_warning(cls, warning: EngineWarning) -> 'WarningModel':
        return cls(**warning.to_dict())


# Loan schemas
class LoanTermsModel(BaseModel):
    principal: MoneyModel
    monthly_interest_rate: str  # Decimal as string, e.g. "0.15"
    term_months: int
    origination_date: str  # ISO date string
    off_policy: bool = False

    def to_loan_terms(self) -> LoanTerms:
        return LoanTerms(
            principal=self.principal.to_money(),
            monthly_interest_rate=decimal_from_string(self.monthly_interest_rate),
            term_months=self.term_months,
            origination_date=date.fromisoformat(self.origination_date),
            off_policy=self.off_policy
        )


class PaymentHistoryModel(BaseModel):
    total_payments_received: MoneyModel
    principal_paid: Optional[MoneyModel] = None
    additional_fees: Optional[MoneyModel] = None
    has_overdue_records: bool = False
    payments_made: int = 0

    def to_payment_history(self) -> PaymentHistory:
        return PaymentHistory(
            total_payments_received=self.total_payments_received.to_money(),
            principal_paid=self.principal_paid.to_money() if self.principal_paid else None,
            additional_fees=self.additional_fees.to_money() if self.additional_fees else None,
            has_overdue_records=self.has_overdue_records,
            payments_made=self.payments_made
        )


class CalculateLoanRequest(BaseModel):
    terms: LoanTermsModel


class EvaluateLoanRequest(BaseModel):
    terms: LoanTermsModel
    history: PaymentHistoryModel
    due_date: str  # ISO date string
    current_date: Optional[str] = None  # Defaults to today
    current_status: Optional[str] = None
    loan_id: Optional[str] = None


class RateCheckRequest(BaseModel):
    rate: str


class OverdueCyclesRequest(BaseModel):
    terms: LoanTermsModel
    due_date: str
    current_date: Optional[str] = None
    outstanding_balance: MoneyModel


# Response schemas
class ScheduleEntryModel(BaseModel):
    payment_number: int
    due_date: str
    scheduled_payment: MoneyModel
    principal_portion: MoneyModel
    interest_portion: MoneyModel
    remaining_balance_after: MoneyModel

    @classmethod
    def from_entry(cls, entry: PaymentScheduleEntry) -> 'ScheduleEntryModel':
        return cls(
            payment_number=entry.payment_number,
            due_date=entry.due_date.isoformat(),
            scheduled_payment=MoneyModel.from_money(entry.scheduled_payment),
            principal_portion=MoneyModel.from_money(entry.principal_portion),
            interest_portion=MoneyModel.from_money(entry.interest_portion),
            remaining_balance_after=MoneyModel.from_money(entry.remaining_balance_after)
        )


class AmortizationResponse(BaseModel):
    monthly_payment: MoneyModel
    total_payment: MoneyModel
    total_interest: MoneyModel
    projected_profit: MoneyModel
    schedule: List[ScheduleEntryModel]
    warnings: List[WarningModel] = []

    @classmethod
    def build(cls, result: AmortizationResult, projected_profit: Money,
              warnings: List[EngineWarning]) -> 'AmortizationResponse':
        return cls(
            monthly_payment=MoneyModel.from_money(result.monthly_payment),
            total_payment=MoneyModel.from_money(result.total_payment),
            total_interest=MoneyModel.from_money(result.total_interest),
            projected_profit=MoneyModel.from_money(projected_profit),
            schedule=[ScheduleEntryModel.from_entry(entry) for entry in result.schedule],
            warnings=[WarningModel.from_warning(w) for w in warnings]
        )


class OverdueCycleModel(BaseModel):
    cycle_number: int
    cycle_due_date: str
    cycle_amount: MoneyModel
    days_overdue_at_cycle: int

    @classmethod
    def from_cycle(cls, cycle: OverdueCycle) -> 'OverdueCycleModel':
        return cls(
            cycle_number=cycle.cycle_number,
            cycle_due_date=cycle.cycle_due_date.isoformat(),
            cycle_amount=MoneyModel.from_money(cycle.cycle_amount),
            days_overdue_at_cycle=cycle.days_overdue_at_cycle
        )


class LoanValuesModel(BaseModel):
    monthly_payment: MoneyModel
    projected_profit: MoneyModel
    realized_profit: MoneyModel
    outstanding_balance: MoneyModel
    total_profit: MoneyModel
    total_amount_due: MoneyModel
    principal_remaining: MoneyModel
    scheduled_principal_remaining: MoneyModel
    should_be_closed: bool
    should_be_pending_overdue: bool

    @classmethod
    def from_values(cls, values: LoanValues) -> 'LoanValuesModel':
        return cls(
            monthly_payment=MoneyModel.from_money(values.monthly_payment),
            projected_profit=MoneyModel.from_money(values.projected_profit),
            realized_profit=MoneyModel.from_money(values.realized_profit),
            outstanding_balance=MoneyModel.from_money(values.outstanding_balance),
            total_profit=MoneyModel.from_money(values.total_profit),
            total_amount_due=MoneyModel.from_money(values.total_amount_due),
            principal_remaining=MoneyModel.from_money(values.principal_remaining),
            scheduled_principal_remaining=MoneyModel.from_money(values.scheduled_principal_remaining),
            should_be_closed=values.should_be_closed,
            should_be_pending_overdue=values.should_be_pending_overdue
        )


class LoanEvaluationResponse(BaseModel):
    status: str
    status_label: str
    requires_overdue_record: bool
    values: LoanValuesModel
    days_overdue: int
    overdue_category: str
    overdue_cycles: List[OverdueCycleModel]
    warnings: List[WarningModel] = []

    @classmethod
    def from_evaluation(cls, evaluation: LoanEvaluation) -> 'LoanEvaluationResponse':
        return cls(
            status=evaluation.status.value,
            status_label=evaluation.status.label,
            requires_overdue_record=evaluation.requires_overdue_record,
            values=LoanValuesModel.from_values(evaluation.values),
            days_overdue=evaluation.days_overdue,
            overdue_category=evaluation.overdue_category.value,
            overdue_cycles=[OverdueCycleModel.from_cycle(c) for c in evaluation.overdue_cycles],
            warnings=[WarningModel.from_warning(w) for w in evaluation.warnings]
        )


class RateCheckResponse(BaseModel):
    rate: str
    valid: bool
    suggested: str
    warnings: List[WarningModel] = []

    @classmethod
    def from_check(cls, check: RateCheck) -> 'RateCheckResponse':
        return cls(
            rate=str(check.rate),
            valid=check.valid,
            suggested=str(check.suggested),
            warnings=[WarningModel.from_warning(w) for w in check.warnings]
        )


class OverdueCyclesResponse(BaseModel):
    days_overdue: int
    overdue_category: str
    cycles: List[OverdueCycleModel]
