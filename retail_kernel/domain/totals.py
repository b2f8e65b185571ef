"""
Totals -- pure document arithmetic.

Responsibility:
    Computes line totals and document totals from line items, discount and
    shipping, and validates discount/quantity/price combinations.  The same
    functions are used when writing a document (validation) and when
    reading it back (recomputation), so the two can never disagree.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Rule:
    base       = sum(line totals)
    PERCENTAGE : discounted = base * (1 - discount / 100)
    FIXED      : discounted = base * (1 - discount / base), or base if base == 0
    otherwise  : discounted = base
    total      = discounted + shipping

Failure modes:
    - InvalidQuantityError, InvalidPriceError, InvalidDiscountError,
      LineTotalMismatchError, TotalMismatchError.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from retail_kernel.db.types import (
    HUNDRED,
    ZERO,
    exceeds_storage_scale,
    round_money,
    to_decimal,
)
from retail_kernel.domain.values import DiscountType
from retail_kernel.exceptions import (
    InvalidDiscountError,
    InvalidPriceError,
    InvalidQuantityError,
    InvalidShippingError,
    LineTotalMismatchError,
    TotalMismatchError,
)


@dataclass(frozen=True)
class DocumentTotals:
    """Computed monetary summary of a document."""

    subtotal: Decimal
    discounted: Decimal
    shipping: Decimal
    total: Decimal

    @property
    def discount_amount(self) -> Decimal:
        return self.subtotal - self.discounted


def line_total(quantity: Decimal, price: Decimal) -> Decimal:
    """quantity x unit price."""
    return to_decimal(quantity) * to_decimal(price)


def validate_line(
    product_variant_id: str,
    quantity: Decimal,
    price: Decimal,
    total_price: Decimal | None = None,
) -> Decimal:
    """
    Check one line item and return its total.

    Raises:
        InvalidQuantityError: quantity not a number, <= 0, or with more
            decimal places than a Quantity column keeps.
        InvalidPriceError: price not a number, < 0, or with more decimal
            places than a Money column keeps.
        LineTotalMismatchError: total_price supplied and != quantity x price
            (compared at money precision).
    """
    quantity = _storable(quantity, lambda: InvalidQuantityError(str(product_variant_id), str(quantity)))
    price = _storable(price, lambda: InvalidPriceError(str(product_variant_id), str(price)))
    if quantity <= ZERO:
        raise InvalidQuantityError(str(product_variant_id), str(quantity))
    if price < ZERO:
        raise InvalidPriceError(str(product_variant_id), str(price))

    computed = line_total(quantity, price)
    if total_price is not None and round_money(to_decimal(total_price)) != round_money(computed):
        raise LineTotalMismatchError(
            str(product_variant_id), str(round_money(computed)), str(total_price)
        )
    return computed


def normalize_discount(
    discount_type: DiscountType | str | None,
    discount: Decimal | None,
) -> tuple[DiscountType | None, Decimal]:
    """
    Enforce the discount invariants and return the canonical pair.

    A zero (or absent) discount always yields discount_type None.

    Raises:
        InvalidDiscountError: unknown discount type, a discount that is not
            a storable number, negative discount, or positive discount with
            no type.
    """
    try:
        dtype = DiscountType(discount_type) if discount_type else None
    except ValueError as exc:
        raise InvalidDiscountError(
            str(discount_type), str(discount), "unknown discount type"
        ) from exc
    amount = ZERO
    if discount is not None:
        amount = _storable(
            discount,
            lambda: InvalidDiscountError(_type_value(dtype), str(discount), "not a valid amount"),
        )

    if amount < ZERO:
        raise InvalidDiscountError(_type_value(dtype), str(amount), "discount cannot be negative")
    if amount == ZERO:
        return None, ZERO
    if dtype is None:
        raise InvalidDiscountError(None, str(amount), "a non-zero discount needs a discount type")
    if dtype is DiscountType.PERCENTAGE and amount > HUNDRED:
        raise InvalidDiscountError(dtype.value, str(amount), "percentage cannot exceed 100")
    return dtype, amount


def apply_discount(
    base: Decimal,
    discount_type: DiscountType | str | None,
    discount: Decimal,
) -> Decimal:
    """Discounted base according to the document's discount-type rule."""
    dtype = DiscountType(discount_type) if discount_type else None
    discount = to_decimal(discount)
    if dtype is DiscountType.PERCENTAGE:
        return base * (1 - discount / HUNDRED)
    if dtype is DiscountType.FIXED:
        if base == ZERO:
            return base
        # base * (1 - discount / base), without the division round-off
        return base - discount
    return base


def discount_share(
    line_amount: Decimal,
    subtotal: Decimal,
    discount_type: DiscountType | str | None,
    discount: Decimal,
) -> Decimal:
    """
    Portion of a line's amount that remains after the document discount.

    FIXED discounts are spread over lines in proportion to the subtotal, so
    summing discount_share() over all lines equals apply_discount() on the
    subtotal.
    """
    dtype = DiscountType(discount_type) if discount_type else None
    discount = to_decimal(discount)
    if dtype is DiscountType.PERCENTAGE:
        return line_amount * (1 - discount / HUNDRED)
    if dtype is DiscountType.FIXED:
        if subtotal == ZERO:
            return line_amount
        return line_amount * (1 - discount / subtotal)
    return line_amount


def compute_totals(
    line_totals: Iterable[Decimal],
    discount_type: DiscountType | str | None,
    discount: Decimal,
    shipping: Decimal,
) -> DocumentTotals:
    """Compute subtotal, discounted base and total for a document."""
    base = sum((to_decimal(t) for t in line_totals), ZERO)
    shipping = to_decimal(shipping) if shipping is not None else ZERO
    discounted = apply_discount(base, discount_type, discount)
    return DocumentTotals(
        subtotal=base,
        discounted=discounted,
        shipping=shipping,
        total=discounted + shipping,
    )


def build_totals(
    line_totals: Iterable[Decimal],
    discount_type: DiscountType | None,
    discount: Decimal,
    shipping: Decimal,
    expected_total: Decimal | None = None,
) -> DocumentTotals:
    """
    compute_totals() plus write-time checks.

    Raises:
        InvalidShippingError: negative or not a storable amount.
        InvalidDiscountError: FIXED discount larger than the base.
        TotalMismatchError: expected_total supplied and differs from the
            computed total at money precision.
    """
    line_totals = list(line_totals)
    if shipping is not None:
        shipping = _storable(shipping, lambda: InvalidShippingError(str(shipping)))
    totals = compute_totals(line_totals, discount_type, discount, shipping)

    if totals.shipping < ZERO:
        raise InvalidShippingError(str(totals.shipping))
    if discount_type is DiscountType.FIXED and to_decimal(discount) > totals.subtotal:
        raise InvalidDiscountError(
            DiscountType.FIXED.value, str(discount), "fixed discount exceeds the subtotal"
        )
    if expected_total is not None and round_money(to_decimal(expected_total)) != round_money(totals.total):
        raise TotalMismatchError(str(round_money(totals.total)), str(expected_total))
    return totals


def _storable(value, make_error: Callable[[], Exception]) -> Decimal:
    """Coerce value to a finite Decimal that a Numeric(38, 9) column keeps exactly."""
    try:
        number = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise make_error() from exc
    if not number.is_finite() or exceeds_storage_scale(number):
        raise make_error()
    return number


def _type_value(discount_type) -> str | None:
    if discount_type is None:
        return None
    return DiscountType(discount_type).value
