"""
Test suite for loan status resolution

Tests each resolution rule in order, preservation of the administrative
defaulted status, inconsistency warnings and closure checks.
"""

import pytest
from decimal import Decimal
from datetime import date

from loan_engine.currency import Money, Currency
from loan_engine.exceptions import InvalidStatusError, InconsistentStateWarning
from loan_engine.status import (
    LoanStatus, LoanStatusResolver, should_be_closed, should_be_pending_overdue
)


DUE = date(2024, 6, 1)
BEFORE_DUE = date(2024, 5, 20)
AFTER_DUE = date(2024, 6, 15)


def ugx(amount) -> Money:
    return Money(Decimal(str(amount)), Currency.UGX)


@pytest.fixture
def resolver():
    return LoanStatusResolver()


class TestStatusLabels:
    """Test parsing of stored and legacy labels"""

    @pytest.mark.parametrize("label,status", [
        ("active", LoanStatus.ACTIVE),
        ("Active", LoanStatus.ACTIVE),
        ("pending", LoanStatus.ACTIVE),
        ("closed", LoanStatus.CLOSED),
        ("Completed", LoanStatus.CLOSED),
        ("DEFAULTED", LoanStatus.DEFAULTED),
        ("Pending Overdue", LoanStatus.PENDING_OVERDUE),
        ("pending_overdue", LoanStatus.PENDING_OVERDUE),
        ("pending-overdue", LoanStatus.PENDING_OVERDUE),
        ("overdue", LoanStatus.PENDING_OVERDUE),
    ])
    def test_from_label(self, label, status):
        assert LoanStatus.from_label(label) == status

    def test_enum_passes_through(self):
        assert LoanStatus.from_label(LoanStatus.CLOSED) is LoanStatus.CLOSED

    def test_unknown_label(self):
        with pytest.raises(InvalidStatusError) as exc_info:
            LoanStatus.from_label("archived")
        assert exc_info.value.label == "archived"

    def test_non_string_label(self):
        with pytest.raises(InvalidStatusError):
            LoanStatus.from_label(None)

    def test_display_label(self):
        assert LoanStatus.PENDING_OVERDUE.label == "Pending Overdue"
        assert LoanStatus.ACTIVE.label == "Active"


class TestResolutionRules:
    """Rules are evaluated in order, first match wins"""

    def test_paid_off(self, resolver):
        result = resolver.resolve(ugx(0), False, DUE, AFTER_DUE)
        assert result.status == LoanStatus.CLOSED
        assert result.rule == "paid_off"
        assert result.warnings == []

    def test_open_overdue_records(self, resolver):
        result = resolver.resolve(ugx(5000), True, DUE, BEFORE_DUE)
        assert result.status == LoanStatus.PENDING_OVERDUE
        assert result.rule == "overdue_records"
        assert result.requires_overdue_record is False

    def test_past_due_requires_overdue_record(self, resolver):
        result = resolver.resolve(ugx(5000), False, DUE, AFTER_DUE)
        assert result.status == LoanStatus.PENDING_OVERDUE
        assert result.rule == "past_due"
        assert result.requires_overdue_record is True

    def test_on_due_date_is_active(self, resolver):
        result = resolver.resolve(ugx(5000), False, DUE, DUE)
        assert result.status == LoanStatus.ACTIVE

    def test_current(self, resolver):
        result = resolver.resolve(ugx(5000), False, DUE, BEFORE_DUE)
        assert result.status == LoanStatus.ACTIVE
        assert result.rule == "current"
        assert result.requires_overdue_record is False

    def test_zero_balance_with_overdue_records(self, resolver):
        """Contradictory inputs resolve to closed with a warning"""
        result = resolver.resolve(ugx(0), True, DUE, AFTER_DUE)
        assert result.status == LoanStatus.CLOSED
        assert result.rule == "zero_balance"
        assert len(result.warnings) == 1
        assert isinstance(result.warnings[0], InconsistentStateWarning)

    def test_decimal_balance(self, resolver):
        assert resolver.resolve(Decimal('0'), False, DUE, AFTER_DUE).status == LoanStatus.CLOSED


class TestAdministrativeStatus:
    """Defaulted is set administratively and never overridden"""

    def test_defaulted_kept_at_zero_balance(self, resolver):
        result = resolver.resolve(ugx(0), False, DUE, AFTER_DUE, current_status=LoanStatus.DEFAULTED)
        assert result.status == LoanStatus.DEFAULTED
        assert result.rule == "administrative"

    def test_defaulted_kept_when_past_due(self, resolver):
        result = resolver.resolve(ugx(5000), True, DUE, AFTER_DUE, current_status="defaulted")
        assert result.status == LoanStatus.DEFAULTED
        assert result.requires_overdue_record is False

    def test_stored_active_is_recomputed(self, resolver):
        result = resolver.resolve(ugx(0), False, DUE, AFTER_DUE, current_status="active")
        assert result.status == LoanStatus.CLOSED

    def test_unknown_stored_status(self, resolver):
        with pytest.raises(InvalidStatusError):
            resolver.resolve(ugx(0), False, DUE, AFTER_DUE, current_status="bogus")


class TestInconsistencyWarnings:
    """Contradictory inputs produce warnings, never errors"""

    def test_negative_balance(self, resolver):
        result = resolver.resolve(ugx(-100), False, DUE, AFTER_DUE)
        assert result.status == LoanStatus.CLOSED
        assert len(result.warnings) == 1
        assert "Negative outstanding balance" in result.warnings[0].message

    def test_closed_label_with_overdue_records(self, resolver):
        result = resolver.resolve(ugx(5000), True, DUE, AFTER_DUE, current_status="closed")
        assert result.status == LoanStatus.PENDING_OVERDUE
        assert any("labelled closed" in warning.message for warning in result.warnings)


class TestStatusPredicates:
    """Test closure and pending-overdue predicates"""

    def test_should_be_closed(self):
        assert should_be_closed(ugx(0), False) is True
        assert should_be_closed(ugx(0), True) is False
        assert should_be_closed(ugx(1), False) is False
        assert should_be_closed(Decimal('0'), False) is True

    def test_should_be_pending_overdue(self):
        assert should_be_pending_overdue(True, ugx(1000)) is True
        assert should_be_pending_overdue(True, ugx(0)) is False
        assert should_be_pending_overdue(False, ugx(1000)) is False


class TestClosureCheck:
    """Test conditions blocking a manual close"""

    def test_can_close(self, resolver):
        check = resolver.closure_check(ugx(0), DUE, AFTER_DUE)
        assert check.can_be_closed is True
        assert check.reasons == []
        assert check.recommendations == ["Loan meets all conditions for closure"]

    def test_outstanding_and_overdue(self, resolver):
        check = resolver.closure_check(ugx(1000), DUE, date(2024, 6, 6))
        assert check.can_be_closed is False
        assert check.reasons == [
            "Outstanding balance is UGX 1,000 (must be 0)",
            "Loan is 5 days overdue",
        ]
        assert len(check.recommendations) == 2

    def test_outstanding_not_yet_due(self, resolver):
        check = resolver.closure_check(ugx(1000), DUE, BEFORE_DUE)
        assert check.can_be_closed is False
        assert len(check.reasons) == 1

    def test_no_due_date(self, resolver):
        check = resolver.closure_check(Decimal('250'), None, AFTER_DUE)
        assert check.reasons == ["Outstanding balance is 250 (must be 0)"]
