"""
Test suite for rate policy

Tests tier validation, nearest-tier suggestion and explicit acceptance of
suggested tiers.
"""

import logging
import pytest
from decimal import Decimal
from datetime import date

from loan_engine.config import EngineConfig
from loan_engine.currency import Money, Currency
from loan_engine.exceptions import InvalidTermsError, OffPolicyRateError, OffPolicyRateWarning
from loan_engine.loans import LoanTerms
from loan_engine.rates import RateValidator


@pytest.fixture
def validator():
    return RateValidator(EngineConfig())


class TestRateValidation:
    """Test tier membership"""

    def test_sanctioned_tiers_valid(self, validator):
        for rate in ["0.10", "0.12", "0.15", "0.20"]:
            assert validator.validate(rate) is True

    def test_off_tier_rate_invalid(self, validator):
        """0.17 is not a tier"""
        assert validator.validate(Decimal('0.17')) is False

    def test_float_rate_has_no_artifacts(self, validator):
        assert validator.validate(0.15) is True

    def test_out_of_range_rate_rejected(self, validator):
        with pytest.raises(InvalidTermsError):
            validator.validate("1.2")
        with pytest.raises(InvalidTermsError):
            validator.nearest("-0.05")


class TestNearestTier:
    """Test nearest-tier suggestion"""

    def test_nearest_off_tier(self, validator):
        """0.17 is closer to 0.15 than to 0.20"""
        assert validator.nearest(Decimal('0.17')) == Decimal('0.15')

    def test_nearest_of_tier_is_itself(self, validator):
        assert validator.nearest("0.12") == Decimal('0.12')

    def test_tie_goes_to_lower_tier(self, validator):
        assert validator.nearest("0.11") == Decimal('0.10')
        assert validator.nearest("0.135") == Decimal('0.12')
        assert validator.nearest("0.175") == Decimal('0.15')

    def test_outside_tier_range(self, validator):
        assert validator.nearest("0.01") == Decimal('0.10')
        assert validator.nearest("0.50") == Decimal('0.20')

    def test_custom_tiers(self):
        validator = RateValidator(EngineConfig(rate_tiers=["0.08", "0.05"]))
        assert validator.tiers == [Decimal('0.05'), Decimal('0.08')]
        assert validator.nearest("0.07") == Decimal('0.08')


class TestRateCheck:
    """Test best-effort checks and warnings"""

    def test_check_valid_rate(self, validator):
        result = validator.check("0.15")
        assert result.valid is True
        assert result.suggested == Decimal('0.15')
        assert result.warnings == []

    def test_check_off_tier_rate_warns(self, validator, caplog):
        with caplog.at_level(logging.WARNING, logger="loan_engine.rates"):
            result = validator.check("0.17")

        assert result.valid is False
        assert result.suggested == Decimal('0.15')
        assert len(result.warnings) == 1
        assert isinstance(result.warnings[0], OffPolicyRateWarning)
        assert result.warnings[0].context["suggested"] == Decimal('0.15')
        assert any("not a sanctioned tier" in record.getMessage() for record in caplog.records)

    def test_check_terms_flagged_off_policy(self, validator):
        """Terms deliberately off-policy pass without a warning"""
        terms = LoanTerms.create(100000, "0.17", 6, date(2024, 1, 1), off_policy=True)
        result = validator.check_terms(terms)
        assert result.valid is False
        assert result.suggested == Decimal('0.15')
        assert result.warnings == []

    def test_check_terms_not_flagged(self, validator):
        terms = LoanTerms.create(100000, "0.17", 6, date(2024, 1, 1))
        assert len(validator.check_terms(terms).warnings) == 1


class TestRateCoercion:
    """Suggested tiers apply only when explicitly accepted"""

    def test_coerce_valid_rate(self, validator):
        assert validator.coerce("0.20") == Decimal('0.20')

    def test_coerce_without_acceptance_raises(self, validator):
        with pytest.raises(OffPolicyRateError) as exc_info:
            validator.coerce("0.17")
        assert exc_info.value.suggested == Decimal('0.15')
        assert exc_info.value.details == {"rate": "0.17", "suggested": "0.15"}

    def test_coerce_with_acceptance(self, validator):
        assert validator.coerce("0.17", accept_suggestion=True) == Decimal('0.15')


class TestTierForAmount:
    """Test automatic rate assignment by principal band"""

    def test_bands(self, validator):
        assert validator.tier_for_amount(Money(Decimal('100000'), Currency.UGX)) == Decimal('0.20')
        assert validator.tier_for_amount(Money(Decimal('500000'), Currency.UGX)) == Decimal('0.15')
        assert validator.tier_for_amount(Decimal('1999999')) == Decimal('0.15')
        assert validator.tier_for_amount("2,000,000") == Decimal('0.12')
        assert validator.tier_for_amount(10000000) == Decimal('0.10')
