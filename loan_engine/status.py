"""
Loan Status Module

Derives the canonical loan status from outstanding balance, overdue-record
presence and due date. Status is always resolved, never set directly,
except for the administrative DEFAULTED status which the resolver keeps.
"""

from decimal import Decimal
from datetime import date
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from .currency import Money, to_decimal
from .exceptions import InvalidStatusError, InconsistentStateWarning, EngineWarning
from .logging_config import get_logger, log_warnings


class LoanStatus(Enum):
    """Loan lifecycle states"""
    ACTIVE = "active"                      # Repaying, nothing overdue
    CLOSED = "closed"                      # Fully repaid, no open overdue records
    DEFAULTED = "defaulted"                # Set administratively
    PENDING_OVERDUE = "pending_overdue"    # Past due or carrying overdue records

    @property
    def label(self) -> str:
        """Display label used by the dashboards"""
        return _DISPLAY_LABELS[self]

    @classmethod
    def from_label(cls, label: Union[str, 'LoanStatus']) -> 'LoanStatus':
        """
        Parse a stored or legacy status label.

        "completed" is an alias of CLOSED, "overdue" of PENDING_OVERDUE.
        "pending" (an application awaiting disbursal) carries no recognized
        profit and no closure, so it is treated as ACTIVE.

        Raises:
            InvalidStatusError: Label is not a known status
        """
        if isinstance(label, LoanStatus):
            return label
        if not isinstance(label, str):
            raise InvalidStatusError(label)

        key = " ".join(label.strip().lower().replace("_", " ").replace("-", " ").split())
        try:
            return _LABEL_ALIASES[key]
        except KeyError:
            raise InvalidStatusError(label)


_DISPLAY_LABELS = {
    LoanStatus.ACTIVE: "Active",
    LoanStatus.CLOSED: "Closed",
    LoanStatus.DEFAULTED: "Defaulted",
    LoanStatus.PENDING_OVERDUE: "Pending Overdue",
}

_LABEL_ALIASES = {
    "active": LoanStatus.ACTIVE,
    "pending": LoanStatus.ACTIVE,
    "closed": LoanStatus.CLOSED,
    "completed": LoanStatus.CLOSED,
    "paid": LoanStatus.CLOSED,
    "defaulted": LoanStatus.DEFAULTED,
    "pending overdue": LoanStatus.PENDING_OVERDUE,
    "overdue": LoanStatus.PENDING_OVERDUE,
}


BalanceInput = Union[Money, Decimal, int, str]


def _balance_amount(balance: BalanceInput) -> Decimal:
    if isinstance(balance, Money):
        return balance.amount
    return to_decimal(balance)


@dataclass(frozen=True)
class StatusResolution:
    """Resolved status plus the signals the collaborators act on"""
    status: LoanStatus
    requires_overdue_record: bool = False
    rule: str = ""
    warnings: List[EngineWarning] = field(default_factory=list)


@dataclass(frozen=True)
class ClosureCheck:
    """Whether a loan may be marked closed, and what blocks it"""
    can_be_closed: bool
    reasons: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


def should_be_closed(outstanding_balance: BalanceInput, has_overdue_records: bool) -> bool:
    """A loan closes when nothing is owed and no overdue records are open"""
    return _balance_amount(outstanding_balance) == Decimal('0') and not has_overdue_records


def should_be_pending_overdue(has_overdue_records: bool, outstanding_balance: BalanceInput) -> bool:
    """Open overdue records on a loan that still owes money"""
    return has_overdue_records and _balance_amount(outstanding_balance) > Decimal('0')


class LoanStatusResolver:
    """
    Status state machine.

    Rules are evaluated in order, first match wins:

    1. zero balance, no overdue records        -> CLOSED
    2. overdue records, positive balance       -> PENDING_OVERDUE
    3. past due date, positive balance         -> PENDING_OVERDUE (new overdue record needed)
    4. zero balance (contradicts rule 1)       -> CLOSED, flagged inconsistent
    5. otherwise                               -> ACTIVE
    """

    def __init__(self):
        self.logger = get_logger("loan_engine.status")

    def resolve(
        self,
        outstanding_balance: BalanceInput,
        has_overdue_records: bool,
        due_date: date,
        current_date: date,
        current_status: Optional[Union[LoanStatus, str]] = None,
        loan_id: Optional[str] = None
    ) -> StatusResolution:
        """
        Resolve the status of a loan

        Args:
            outstanding_balance: Amount still owed
            has_overdue_records: Overdue-record subsystem has open records for the loan
            due_date: Next payment due date
            current_date: Date the status is resolved for
            current_status: Stored status, if any; DEFAULTED is kept as is
            loan_id: Used for logging only

        Returns:
            StatusResolution
        """
        warnings = []
        balance = _balance_amount(outstanding_balance)
        stored = LoanStatus.from_label(current_status) if current_status is not None else None

        if balance < Decimal('0'):
            warnings.append(InconsistentStateWarning(
                f"Negative outstanding balance {balance} treated as zero",
                outstanding_balance=balance
            ))
            balance = Decimal('0')

        if stored == LoanStatus.CLOSED and has_overdue_records:
            warnings.append(InconsistentStateWarning(
                "Loan is labelled closed while overdue records remain open",
                current_status=stored.value
            ))

        if stored == LoanStatus.DEFAULTED:
            resolution = StatusResolution(LoanStatus.DEFAULTED, rule="administrative", warnings=warnings)
        elif balance == Decimal('0') and not has_overdue_records:
            resolution = StatusResolution(LoanStatus.CLOSED, rule="paid_off", warnings=warnings)
        elif has_overdue_records and balance > Decimal('0'):
            resolution = StatusResolution(LoanStatus.PENDING_OVERDUE, rule="overdue_records", warnings=warnings)
        elif current_date > due_date and balance > Decimal('0'):
            resolution = StatusResolution(
                LoanStatus.PENDING_OVERDUE,
                requires_overdue_record=True,
                rule="past_due",
                warnings=warnings
            )
        elif balance == Decimal('0'):
            warnings.append(InconsistentStateWarning(
                "Zero balance with open overdue records; resolved as closed",
                has_overdue_records=has_overdue_records
            ))
            resolution = StatusResolution(LoanStatus.CLOSED, rule="zero_balance", warnings=warnings)
        else:
            resolution = StatusResolution(LoanStatus.ACTIVE, rule="current", warnings=warnings)

        if warnings:
            log_warnings(self.logger, warnings, action="resolve_status", loan_id=loan_id)
        if resolution.requires_overdue_record:
            self.logger.info("Loan %s is past due on %s; overdue record required", loan_id or "-", due_date)

        return resolution

    def closure_check(
        self,
        outstanding_balance: BalanceInput,
        due_date: Optional[date],
        current_date: date
    ) -> ClosureCheck:
        """Conditions blocking a manual close of the loan"""
        reasons = []
        recommendations = []
        balance = _balance_amount(outstanding_balance)

        if balance > Decimal('0'):
            display = outstanding_balance.to_string() if isinstance(outstanding_balance, Money) else f"{balance:,}"
            reasons.append(f"Outstanding balance is {display} (must be 0)")
            recommendations.append("Collect remaining payments to reduce outstanding balance to zero")

            if due_date is not None and current_date > due_date:
                days = (current_date - due_date).days
                reasons.append(f"Loan is {days} days overdue")
                recommendations.append("Resolve overdue status before marking loan as closed")

        can_be_closed = not reasons
        if can_be_closed:
            recommendations.append("Loan meets all conditions for closure")

        return ClosureCheck(can_be_closed=can_be_closed, reasons=reasons, recommendations=recommendations)
