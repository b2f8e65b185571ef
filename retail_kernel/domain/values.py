"""
Value enums shared by the domain, services and HTTP layer.

Pure: no I/O, no ORM imports.
"""

from enum import Enum


class DocumentKind(str, Enum):
    """The two document aggregates.  Billings deduct stock, quotes do not."""

    BILLING = "billing"
    QUOTE = "quote"

    @property
    def deducts_stock(self) -> bool:
        return self is DocumentKind.BILLING


class DiscountType(str, Enum):
    """How a document-level discount applies to the base total."""

    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


class StockOperation(str, Enum):
    """Direction of an inventory movement."""

    ADD = "ADD"  # cancellation / restock
    SUBTRACT = "SUBTRACT"  # sale
