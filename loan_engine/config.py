"""
Configuration Management Module

Provides engine configuration using pydantic-settings for environment-based
overrides. Components take an EngineConfig explicitly; the global instance
is only their default.
"""

from decimal import Decimal
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineConfig(BaseSettings):
    """Loan engine configuration"""

    model_config = SettingsConfigDict(
        env_prefix="LOAN_ENGINE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Rate policy
    rate_tiers: List[Decimal] = [
        Decimal("0.10"), Decimal("0.12"), Decimal("0.15"), Decimal("0.20")
    ]
    # (minimum principal, rate) bands used when a rate is assigned automatically
    tier_bands: List[List[Decimal]] = [
        [Decimal("0"), Decimal("0.20")],
        [Decimal("500000"), Decimal("0.15")],
        [Decimal("2000000"), Decimal("0.12")],
        [Decimal("5000000"), Decimal("0.10")],
    ]

    # Loop bounds
    max_term_months: int = 60
    overdue_cycle_days: int = 30
    max_overdue_cycles: int = 60

    # Overdue penalties and discounts
    penalty_multiplier: Decimal = Decimal("1.5")
    early_payment_discount_rate: Decimal = Decimal("0.05")

    # Money
    default_currency: str = "UGX"
    reconciliation_tolerance: Decimal = Decimal("1")
    profit_reconciliation_tolerance: Decimal = Decimal("100")

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090

    @field_validator("rate_tiers")
    @classmethod
    def _sorted_tiers(cls, value: List[Decimal]) -> List[Decimal]:
        if not value:
            raise ValueError("At least one rate tier is required")
        for tier in value:
            if tier < Decimal("0") or tier >= Decimal("1"):
                raise ValueError(f"Rate tier {tier} must be in [0, 1)")
        return sorted(set(value))

    @field_validator("tier_bands")
    @classmethod
    def _sorted_bands(cls, value: List[List[Decimal]]) -> List[List[Decimal]]:
        for band in value:
            if len(band) != 2:
                raise ValueError("Each tier band is a [minimum_principal, rate] pair")
        return sorted(value, key=lambda band: band[0])

    @field_validator("max_term_months", "overdue_cycle_days", "max_overdue_cycles")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Must be at least 1")
        return value


# Global configuration instance
config = EngineConfig()


def get_config() -> EngineConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> EngineConfig:
    """Reload configuration from environment"""
    global config
    config = EngineConfig()
    return config
