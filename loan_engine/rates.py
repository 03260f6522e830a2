"""
Rate Policy Module

Validates monthly interest rates against the product's sanctioned tiers and
suggests the nearest tier for off-policy rates. A suggestion is only applied
when the caller explicitly accepts it.
"""

from decimal import Decimal
from dataclasses import dataclass, field
from typing import List, Optional, Union

from .config import EngineConfig, get_config
from .currency import Money, to_decimal
from .exceptions import OffPolicyRateError, OffPolicyRateWarning, EngineWarning
from .loans import LoanTerms, validate_rate
from .logging_config import get_logger, log_warnings


RateInput = Union[Decimal, str, float, int]


@dataclass(frozen=True)
class RateCheck:
    """Outcome of checking a rate against the tier policy"""
    rate: Decimal
    valid: bool
    suggested: Decimal
    warnings: List[EngineWarning] = field(default_factory=list)


class RateValidator:
    """
    Checks rates against the configured tiers.

    Ties in nearest() go to the lower tier: the tiers are scanned in
    ascending order and a later tier only wins when strictly closer.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or get_config()
        self.tiers = sorted(self.config.rate_tiers)
        self.logger = get_logger("loan_engine.rates")

    def validate(self, rate: RateInput) -> bool:
        """True iff the rate is one of the sanctioned tiers"""
        rate = validate_rate(to_decimal(rate))
        return rate in self.tiers

    def nearest(self, rate: RateInput) -> Decimal:
        """Tier closest to the rate, lower tier on ties"""
        rate = validate_rate(to_decimal(rate))
        best = self.tiers[0]
        for tier in self.tiers[1:]:
            if abs(tier - rate) < abs(best - rate):
                best = tier
        return best

    def check(self, rate: RateInput) -> RateCheck:
        """Best-effort check returning the suggested tier and any warning"""
        rate = validate_rate(to_decimal(rate))
        valid = rate in self.tiers
        suggested = rate if valid else self.nearest(rate)

        warnings = []
        if not valid:
            warnings.append(OffPolicyRateWarning(
                f"Rate {rate} is not a sanctioned tier; nearest tier is {suggested}",
                rate=rate, suggested=suggested
            ))
            log_warnings(self.logger, warnings, action="rate_check")

        return RateCheck(rate=rate, valid=valid, suggested=suggested, warnings=warnings)

    def check_terms(self, terms: LoanTerms) -> RateCheck:
        """Check the rate on a set of terms; terms flagged off-policy pass silently"""
        if terms.off_policy:
            rate = terms.monthly_interest_rate
            return RateCheck(rate=rate, valid=rate in self.tiers, suggested=self.nearest(rate))
        return self.check(terms.monthly_interest_rate)

    def coerce(self, rate: RateInput, accept_suggestion: bool = False) -> Decimal:
        """
        Rate to persist.

        Args:
            rate: Requested rate
            accept_suggestion: Caller acknowledged replacing an off-tier rate

        Returns:
            The rate itself when sanctioned, else the nearest tier

        Raises:
            OffPolicyRateError: Off-tier rate and the suggestion was not accepted
        """
        result = self.check(rate)
        if result.valid:
            return result.rate
        if not accept_suggestion:
            raise OffPolicyRateError(result.rate, result.suggested)
        self.logger.info("Coerced rate %s to tier %s", result.rate, result.suggested)
        return result.suggested

    def tier_for_amount(self, principal: Union[Money, RateInput]) -> Decimal:
        """Rate assigned automatically from the principal band"""
        amount = principal.amount if isinstance(principal, Money) else to_decimal(principal)
        rate = self.config.tier_bands[0][1]
        for minimum, band_rate in self.config.tier_bands:
            if amount >= minimum:
                rate = band_rate
        return rate
