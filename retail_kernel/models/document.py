"""
Module: retail_kernel.models.document
Responsibility: Column mixins shared by the two document kinds (billing and
    quote) and their line items.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced (by the services that write these rows):
    - discount_type is NULL whenever discount is zero.
    - subtotal == sum(line totals); total == discounted(subtotal) + shipping.
    - A persisted document always has at least one line item.
    - Line item total_price == quantity * price; quantity > 0.

Foreign keys live on the concrete classes; these mixins carry only plain
columns.
"""

from decimal import Decimal

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column


class DocumentHeaderMixin:
    """Header columns common to billings and quotes."""

    # <PREFIX>-<YYYY>-<counter>, unique per document table
    serial_number: Mapped[str] = mapped_column(String(40), nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    # PERCENTAGE, FIXED or NULL
    discount_type: Mapped[str | None] = mapped_column(String(20), nullable=True)

    discount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    shipping: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    subtotal: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    total: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))


class LineItemMixin:
    """Line-item columns common to billing items and quote items."""

    # Order of the item within its document
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Display name snapshot; survives product renames
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    quantity: Mapped[Decimal] = mapped_column(nullable=False)

    price: Mapped[Decimal] = mapped_column(nullable=False)

    total_price: Mapped[Decimal] = mapped_column(nullable=False)
