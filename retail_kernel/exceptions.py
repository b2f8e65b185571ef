"""
Typed Exception Hierarchy for the Retail Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers must be able to tell an empty item list from a missing shop from a
duplicate customer without parsing messages.  Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. A KIND tag (one of four outcome categories the HTTP layer maps to a
     status code)
  4. Structured DATA as attributes (not just a message string)

Example - WRONG way to handle errors:
    try:
        orchestrator.create(payload)
    except Exception as e:
        if "al menos 1 item" in str(e):
            ...

Example - RIGHT way:
    try:
        orchestrator.create(payload)
    except EmptyItemListError as e:
        return {"error": e.code, "document_kind": e.document_kind}
    except RetailKernelError as e:
        if e.kind is ErrorKind.NOT_FOUND:
            ...

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    RetailKernelError (base)
    |
    +-- ValidationError                       kind=VALIDATION  (400)
    |   +-- EmptyItemListError
    |   +-- InvalidQuantityError
    |   +-- InvalidPriceError
    |   +-- InvalidDiscountError
    |   +-- InvalidShippingError
    |   +-- LineTotalMismatchError
    |   +-- TotalMismatchError
    |   +-- InvalidStatusTransitionError
    |   +-- DocumentClosedError
    |   +-- UnsupportedCurrencyError
    |
    +-- NotFoundError                         kind=NOT_FOUND   (404)
    |   +-- ShopNotFoundError
    |   +-- DocumentNotFoundError
    |   +-- CustomerNotFoundError
    |   +-- StockItemNotFoundError
    |   +-- ProductVariantNotFoundError
    |
    +-- ConflictError                         kind=CONFLICT    (409)
    |   +-- DuplicateResourceError
    |   +-- InsufficientStockError
    |   +-- DocumentAlreadyCanceledError
    |   +-- SerialNumberExhaustedError
    |
    +-- StorageError                          kind=STORAGE     (500)

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Unique-constraint violations from the store surface as
   DuplicateResourceError; every other database failure surfaces as
   StorageError with the driver exception chained as __cause__.

2. InsufficientStockError is a CONFLICT, not a VALIDATION error: the request
   was well-formed, the stock it raced for is gone.

===============================================================================
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Outcome category of a failed operation."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    STORAGE = "storage"


class RetailKernelError(Exception):
    """
    Base exception for all retail kernel errors.

    All subclasses must have a `code` class attribute and inherit a `kind`.
    """

    code: str = "RETAIL_KERNEL_ERROR"
    kind: ErrorKind = ErrorKind.STORAGE

    @property
    def details(self) -> dict:
        """Structured attributes of the error, for logs and API bodies."""
        return {
            k: (str(v) if v is not None and not isinstance(v, (int, bool)) else v)
            for k, v in vars(self).items()
            if not k.startswith("_")
        }


# Validation errors


class ValidationError(RetailKernelError):
    """Base exception for malformed or inconsistent input."""

    code: str = "VALIDATION_ERROR"
    kind: ErrorKind = ErrorKind.VALIDATION


class EmptyItemListError(ValidationError):
    """A document must carry at least one line item."""

    code: str = "EMPTY_ITEM_LIST"

    def __init__(self, document_kind: str):
        self.document_kind = document_kind
        super().__init__(f"A {document_kind} must have at least one item")


class InvalidQuantityError(ValidationError):
    """Line-item quantity is zero or negative."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, product_variant_id: str, quantity: str):
        self.product_variant_id = product_variant_id
        self.quantity = quantity
        super().__init__(
            f"Quantity must be positive for variant {product_variant_id}, got {quantity}"
        )


class InvalidPriceError(ValidationError):
    """Line-item unit price is negative."""

    code: str = "INVALID_PRICE"

    def __init__(self, product_variant_id: str, price: str):
        self.product_variant_id = product_variant_id
        self.price = price
        super().__init__(
            f"Price cannot be negative for variant {product_variant_id}, got {price}"
        )


class InvalidDiscountError(ValidationError):
    """Discount type and amount do not form a valid combination."""

    code: str = "INVALID_DISCOUNT"

    def __init__(self, discount_type: str | None, discount: str, reason: str):
        self.discount_type = discount_type
        self.discount = discount
        self.reason = reason
        super().__init__(f"Invalid discount {discount} ({discount_type}): {reason}")


class InvalidShippingError(ValidationError):
    """Shipping amount is negative."""

    code: str = "INVALID_SHIPPING"

    def __init__(self, shipping: str):
        self.shipping = shipping
        super().__init__(f"Shipping cannot be negative, got {shipping}")


class LineTotalMismatchError(ValidationError):
    """Supplied line total differs from quantity x unit price."""

    code: str = "LINE_TOTAL_MISMATCH"

    def __init__(self, product_variant_id: str, expected: str, received: str):
        self.product_variant_id = product_variant_id
        self.expected = expected
        self.received = received
        super().__init__(
            f"Line total for variant {product_variant_id} should be {expected}, got {received}"
        )


class TotalMismatchError(ValidationError):
    """Supplied document total differs from the computed total."""

    code: str = "TOTAL_MISMATCH"

    def __init__(self, expected: str, received: str):
        self.expected = expected
        self.received = received
        super().__init__(f"Document total should be {expected}, got {received}")


class InvalidStatusTransitionError(ValidationError):
    """Requested status change is not allowed by the document workflow."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, document_kind: str, from_status: str, to_status: str):
        self.document_kind = document_kind
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot move {document_kind} from {from_status} to {to_status}"
        )


class DocumentClosedError(ValidationError):
    """Document is in a terminal status and can no longer be edited."""

    code: str = "DOCUMENT_CLOSED"

    def __init__(self, document_id: str, status: str):
        self.document_id = document_id
        self.status = status
        super().__init__(f"Document {document_id} is {status} and cannot be edited")


class UnsupportedCurrencyError(ValidationError):
    """Currency code is not one the back office trades in."""

    code: str = "UNSUPPORTED_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Unsupported currency code: '{currency}'")


# Not-found errors


class NotFoundError(RetailKernelError):
    """Base exception for missing referenced entities."""

    code: str = "NOT_FOUND"
    kind: ErrorKind = ErrorKind.NOT_FOUND


class ShopNotFoundError(NotFoundError):
    """No shop with the given slug."""

    code: str = "SHOP_NOT_FOUND"

    def __init__(self, shop_slug: str):
        self.shop_slug = shop_slug
        super().__init__(f"Shop not found: {shop_slug}")


class DocumentNotFoundError(NotFoundError):
    """No quote or billing with the given id or serial number."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, document_kind: str, reference: str):
        self.document_kind = document_kind
        self.reference = reference
        super().__init__(f"{document_kind.capitalize()} not found: {reference}")


class CustomerNotFoundError(NotFoundError):
    """No customer (or person) with the given id."""

    code: str = "CUSTOMER_NOT_FOUND"

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Customer not found: {reference}")


class StockItemNotFoundError(NotFoundError):
    """No stock item for the (product variant, stock) pair."""

    code: str = "STOCK_ITEM_NOT_FOUND"

    def __init__(self, product_variant_id: str, stock_id: str):
        self.product_variant_id = product_variant_id
        self.stock_id = stock_id
        super().__init__(
            f"No stock item for variant {product_variant_id} in stock {stock_id}"
        )


class ProductVariantNotFoundError(NotFoundError):
    """Referenced product variant does not exist."""

    code: str = "PRODUCT_VARIANT_NOT_FOUND"

    def __init__(self, product_variant_id: str):
        self.product_variant_id = product_variant_id
        super().__init__(f"Product variant not found: {product_variant_id}")


# Conflict errors


class ConflictError(RetailKernelError):
    """Base exception for requests that collide with current state."""

    code: str = "CONFLICT"
    kind: ErrorKind = ErrorKind.CONFLICT


class DuplicateResourceError(ConflictError):
    """A unique constraint rejected the write."""

    code: str = "DUPLICATE_RESOURCE"

    def __init__(self, resource: str, constraint: str | None = None):
        self.resource = resource
        self.constraint = constraint
        super().__init__(f"A {resource} with the same unique data already exists")


class InsufficientStockError(ConflictError):
    """Deduction would drive the stock item quantity negative."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        product_variant_id: str,
        stock_id: str,
        available: str,
        requested: str,
    ):
        self.product_variant_id = product_variant_id
        self.stock_id = stock_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for variant {product_variant_id} in stock "
            f"{stock_id}: available={available}, requested={requested}"
        )


class DocumentAlreadyCanceledError(ConflictError):
    """Billing was already canceled; its stock was already restored."""

    code: str = "DOCUMENT_ALREADY_CANCELED"

    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"Billing {document_id} is already canceled")


class SerialNumberExhaustedError(ConflictError):
    """Could not allocate an unused serial number within the attempt budget."""

    code: str = "SERIAL_NUMBER_EXHAUSTED"

    def __init__(self, prefix: str, attempts: int):
        self.prefix = prefix
        self.attempts = attempts
        super().__init__(
            f"No free serial number with prefix {prefix} after {attempts} attempts"
        )


# Storage errors


class StorageError(RetailKernelError):
    """Any other database failure.  The driver error is chained as __cause__."""

    code: str = "STORAGE_ERROR"
    kind: ErrorKind = ErrorKind.STORAGE

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Storage failure during {operation}: {reason}")
