"""
Module: retail_kernel.db.types
Responsibility: Annotated type aliases and utility functions for money and
    quantity columns.  Centralizes precision, rounding and currency validation
    so that every model and service uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/ and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - Only the currencies a shop can trade in (COP, USD) are accepted.
    - round_money() is the only sanctioned rounding function for amounts
      that leave the kernel.
    - No floats for money or quantities.

Failure modes:
    - UnsupportedCurrencyError on an unknown currency code.
"""

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated

from sqlalchemy import Numeric, String

from retail_kernel.exceptions import UnsupportedCurrencyError

# 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

# Quantities may be fractional (sold by weight or length)
Quantity = Annotated[Decimal, Numeric(38, 9)]

CurrencyCode = Annotated[str, String(3)]

MONEY_DECIMAL_PLACES = 2
STORAGE_DECIMAL_PLACES = 9
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class Currency(str, Enum):
    """Currencies a shop can price and bill in."""

    COP = "COP"
    USD = "USD"


SUPPORTED_CURRENCIES: frozenset[str] = frozenset(c.value for c in Currency)


def to_decimal(value) -> Decimal:
    """
    Coerce an int, str or Decimal into a Decimal.

    Floats are converted through their string form so that 0.1 becomes
    Decimal("0.1") rather than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places to round to.
        rounding: Rounding mode (default: ROUND_HALF_UP).

    Returns:
        Rounded Decimal value.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def quantize_storage(value: Decimal) -> Decimal:
    """Quantize to the 9 decimal places a Money column stores."""
    return value.quantize(Decimal("0.000000001"), rounding=DEFAULT_ROUNDING)


def exceeds_storage_scale(value: Decimal) -> bool:
    """True if value has significant digits beyond what a Money column keeps."""
    return value.normalize().as_tuple().exponent < -STORAGE_DECIMAL_PLACES


def validate_currency(currency: str) -> str:
    """
    Validate that a currency code is one the back office trades in.

    Returns:
        The normalized (uppercase, trimmed) currency code.

    Raises:
        UnsupportedCurrencyError: If the code is empty or not supported.
    """
    if not currency or not isinstance(currency, str):
        raise UnsupportedCurrencyError(str(currency))

    normalized = currency.upper().strip()
    if normalized not in SUPPORTED_CURRENCIES:
        raise UnsupportedCurrencyError(currency)

    return normalized
