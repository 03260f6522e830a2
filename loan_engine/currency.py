"""
Money Module

Immutable money values with per-currency minor-unit precision. All loan
figures produced by the engine are Money or raw Decimal, never float.
Currency conversion is not supported: mixing currencies is an error.
"""

from decimal import Decimal, ROUND_HALF_UP, getcontext, InvalidOperation
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Union
import re

from .exceptions import InvalidTermsError

# High precision for the annuity factor (1 + r) ** n
getcontext().prec = 28


class Currency(Enum):
    """ISO 4217 currency codes with minor-unit precision"""
    UGX = ("UGX", 0)  # Ugandan Shilling, no minor unit in practice
    KES = ("KES", 2)  # Kenyan Shilling
    USD = ("USD", 2)  # US Dollar
    EUR = ("EUR", 2)  # Euro

    def __init__(self, code: str, precision: int):
        self.code = code
        self.precision = precision

    @classmethod
    def from_code(cls, code: str) -> "Currency":
        """Look up a currency by its ISO code (case-insensitive)"""
        try:
            return cls[code.strip().upper()]
        except KeyError:
            raise ValueError(f"Unsupported currency: {code}")


Amount = Union[Decimal, int, str, float]


@dataclass(frozen=True)
class Money:
    """
    Immutable money representation with currency and proper precision.
    The amount is rounded half-up to the currency precision on creation.
    """
    amount: Decimal
    currency: Currency

    def __post_init__(self):
        try:
            amount = self.amount if isinstance(self.amount, Decimal) else Decimal(str(self.amount))
            if not amount.is_finite():
                raise InvalidOperation
            # Signals when the rounded amount needs more digits than the context holds
            rounded = amount.quantize(
                Decimal('0.1') ** self.currency.precision,
                rounding=ROUND_HALF_UP
            )
        except InvalidOperation:
            raise InvalidTermsError(
                f"Amount is not a representable {self.currency.code} value",
                {"amount": str(self.amount), "max_digits": getcontext().prec}
            )
        object.__setattr__(self, 'amount', rounded)

    @classmethod
    def zero(cls, currency: Currency) -> 'Money':
        return cls(Decimal('0'), currency)

    def _check_currency(self, other: 'Money', verb: str) -> None:
        if not isinstance(other, Money):
            raise TypeError(f"Cannot {verb} Money and {type(other).__name__}")
        if self.currency != other.currency:
            raise ValueError(f"Cannot {verb} {self.currency.code} and {other.currency.code}")

    def __add__(self, other: 'Money') -> 'Money':
        self._check_currency(other, "add")
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        self._check_currency(other, "subtract")
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, multiplier: Amount) -> 'Money':
        if not isinstance(multiplier, Decimal):
            multiplier = Decimal(str(multiplier))
        return Money(self.amount * multiplier, self.currency)

    def __truediv__(self, divisor: Amount) -> 'Money':
        if not isinstance(divisor, Decimal):
            divisor = Decimal(str(divisor))
        return Money(self.amount / divisor, self.currency)

    def __neg__(self) -> 'Money':
        return Money(-self.amount, self.currency)

    def __abs__(self) -> 'Money':
        return Money(abs(self.amount), self.currency)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Money):
            return False
        return self.amount == other.amount and self.currency == other.currency

    def __hash__(self) -> int:
        return hash((self.amount, self.currency))

    def __lt__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount < other.amount

    def __le__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount <= other.amount

    def __gt__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount > other.amount

    def __ge__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount >= other.amount

    def is_zero(self) -> bool:
        """Check if amount is exactly zero"""
        return self.amount == Decimal('0')

    def is_positive(self) -> bool:
        """Check if amount is positive"""
        return self.amount > Decimal('0')

    def is_negative(self) -> bool:
        """Check if amount is negative"""
        return self.amount < Decimal('0')

    def floor_zero(self) -> 'Money':
        """Clamp negative amounts to zero"""
        if self.is_negative():
            return Money.zero(self.currency)
        return self

    def to_string(self) -> str:
        """Format for display"""
        if self.currency.precision == 0:
            return f"{self.currency.code} {self.amount:,.0f}"
        return f"{self.currency.code} {self.amount:,.{self.currency.precision}f}"


def money_sum(values: Iterable[Money], currency: Currency) -> Money:
    """Sum Money values, starting from zero in the given currency"""
    total = Money.zero(currency)
    for value in values:
        total = total + value
    return total


def decimal_from_string(value: str) -> Decimal:
    """
    Safely convert string to Decimal, handling common formats

    Args:
        value: String representation of number, e.g. "UGX 1,250,000"

    Returns:
        Decimal value

    Raises:
        ValueError: If string cannot be converted to valid Decimal
    """
    if not value or not isinstance(value, str):
        raise ValueError("Value must be a non-empty string")

    # Remove currency symbols and whitespace
    clean_value = re.sub(r'[^\d.,\-+]', '', value.strip())

    if ',' in clean_value and '.' in clean_value:
        # Both comma and dot - comma is the thousands separator
        clean_value = clean_value.replace(',', '')
    elif ',' in clean_value and clean_value.count(',') == 1:
        parts = clean_value.split(',')
        if len(parts[1]) <= 2:
            clean_value = clean_value.replace(',', '.')
        else:
            clean_value = clean_value.replace(',', '')
    else:
        clean_value = clean_value.replace(',', '')

    try:
        return Decimal(clean_value)
    except InvalidOperation:
        raise ValueError(f"Cannot convert '{value}' to Decimal")


def to_decimal(value: Amount) -> Decimal:
    """Convert a rate or amount to a finite Decimal without float artifacts"""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, str):
        result = decimal_from_string(value)
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Cannot convert {value!r} to Decimal")

    if not result.is_finite():
        raise ValueError(f"{value!r} is not a finite number")
    return result


def to_money(value: Union[Money, Amount], currency: Optional[Currency] = None) -> Money:
    """
    Accept Money or a bare amount.

    Bare amounts take the given currency (UGX when none is given). Money is
    returned unchanged unless it contradicts an explicitly given currency.
    """
    if isinstance(value, Money):
        if currency is not None and value.currency != currency:
            raise ValueError(f"Expected {currency.code} amount, got {value.currency.code}")
        return value
    return Money(to_decimal(value), currency or Currency.UGX)
