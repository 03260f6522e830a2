"""
Test suite for loan records

Tests validation of loan terms, payment history snapshots and schedule entries.
"""

import pytest
from decimal import Decimal
from datetime import date

from loan_engine.currency import Money, Currency
from loan_engine.exceptions import InvalidTermsError
from loan_engine.loans import (
    LoanTerms, PaymentHistory, PaymentScheduleEntry, add_months, validate_rate
)


class TestLoanTerms:
    """Test loan terms validation"""

    def test_valid_terms(self):
        terms = LoanTerms(
            principal=Money(Decimal('250000'), Currency.UGX),
            monthly_interest_rate=Decimal('0.15'),
            term_months=1,
            origination_date=date(2024, 1, 1)
        )
        assert terms.currency == Currency.UGX
        assert terms.maturity_date == date(2024, 2, 1)
        assert terms.off_policy is False

    def test_create_from_bare_amounts(self):
        """Bare principal defaults to UGX; rate strings become Decimal"""
        terms = LoanTerms.create("5,000,000", "0.10", 12, date(2024, 1, 1))
        assert terms.principal == Money(Decimal('5000000'), Currency.UGX)
        assert terms.monthly_interest_rate == Decimal('0.10')

        usd_terms = LoanTerms.create(1000, 0.12, 6, date(2024, 1, 1), currency=Currency.USD)
        assert usd_terms.currency == Currency.USD
        assert usd_terms.monthly_interest_rate == Decimal('0.12')

    def test_zero_principal_rejected(self):
        with pytest.raises(InvalidTermsError, match="Principal must be positive"):
            LoanTerms.create(0, "0.15", 12, date(2024, 1, 1))

    def test_negative_principal_rejected(self):
        with pytest.raises(InvalidTermsError):
            LoanTerms.create(-100, "0.15", 12, date(2024, 1, 1))

    def test_invalid_term_rejected(self):
        with pytest.raises(InvalidTermsError, match="Term"):
            LoanTerms.create(1000, "0.15", 0, date(2024, 1, 1))
        with pytest.raises(InvalidTermsError):
            LoanTerms.create(1000, "0.15", True, date(2024, 1, 1))

    def test_rate_out_of_range_rejected(self):
        with pytest.raises(InvalidTermsError):
            LoanTerms.create(1000, "1.0", 12, date(2024, 1, 1))
        with pytest.raises(InvalidTermsError):
            LoanTerms.create(1000, "-0.01", 12, date(2024, 1, 1))

    def test_invalid_terms_error_is_value_error(self):
        with pytest.raises(ValueError):
            LoanTerms.create(0, "0.15", 12, date(2024, 1, 1))


class TestPaymentHistory:
    """Test payment history snapshot"""

    def test_defaults(self):
        history = PaymentHistory(total_payments_received=Money(Decimal('1000'), Currency.UGX))
        assert history.principal_paid == Money.zero(Currency.UGX)
        assert history.additional_fees == Money.zero(Currency.UGX)
        assert history.has_overdue_records is False
        assert history.payments_made == 0

    def test_empty(self):
        history = PaymentHistory.empty(Currency.USD)
        assert history.total_payments_received == Money.zero(Currency.USD)
        assert history.currency == Currency.USD

    def test_mixed_currencies_rejected(self):
        with pytest.raises(ValueError, match="same currency"):
            PaymentHistory(
                total_payments_received=Money(Decimal('1000'), Currency.UGX),
                principal_paid=Money(Decimal('10'), Currency.USD)
            )

    def test_negative_payments_made_rejected(self):
        with pytest.raises(ValueError):
            PaymentHistory(total_payments_received=Money.zero(Currency.UGX), payments_made=-1)


class TestScheduleEntry:
    """Test schedule entry consistency"""

    def test_portions_must_sum_to_payment(self):
        with pytest.raises(ValueError, match="does not equal"):
            PaymentScheduleEntry(
                payment_number=1,
                due_date=date(2024, 2, 1),
                scheduled_payment=Money(Decimal('100'), Currency.UGX),
                principal_portion=Money(Decimal('60'), Currency.UGX),
                interest_portion=Money(Decimal('30'), Currency.UGX),
                remaining_balance_after=Money(Decimal('40'), Currency.UGX)
            )


class TestDateHelpers:
    """Test month arithmetic and rate validation"""

    def test_add_months_clamps_to_month_end(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
        assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)

    def test_validate_rate(self):
        assert validate_rate(Decimal('0')) == Decimal('0')
        assert validate_rate(Decimal('0.99')) == Decimal('0.99')
        with pytest.raises(InvalidTermsError):
            validate_rate(Decimal('1'))


class TestMalformedTerms:
    """Malformed numbers are rejected as invalid terms"""

    def test_principal_beyond_precision(self):
        with pytest.raises(InvalidTermsError):
            LoanTerms.create("1" + "0" * 40, "0.15", 12, date(2024, 1, 1))

    def test_non_finite_rate(self):
        with pytest.raises(InvalidTermsError):
            LoanTerms(
                principal=Money(Decimal('1000'), Currency.UGX),
                monthly_interest_rate=Decimal('NaN'),
                term_months=12,
                origination_date=date(2024, 1, 1)
            )
