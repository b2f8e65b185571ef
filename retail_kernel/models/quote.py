"""
Module: retail_kernel.models.quote
Responsibility: ORM persistence for quotes and their line items.
Architecture position: Kernel > Models.  May import from db/ and
    models/document.py only.

Invariants enforced:
    - serial_number is unique (uq_quote_serial_number).
    - Line items are deleted with their quote (ON DELETE CASCADE).
    - Quotes never touch inventory.
"""

from uuid import UUID

from sqlalchemy import ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from retail_kernel.db.base import TimestampedBase, TrackedBase, UUIDString
from retail_kernel.models.document import DocumentHeaderMixin, LineItemMixin


class Quote(DocumentHeaderMixin, TrackedBase):
    """
    A price offer to a (possibly anonymous) customer.

    Lifecycle: PENDING -> ACCEPTED | CANCELED | REVISION | OVERDUE.
    """

    __tablename__ = "quotes"

    __table_args__ = (
        UniqueConstraint("serial_number", name="uq_quote_serial_number"),
        Index("idx_quote_shop_created", "shop_id", "created_at"),
    )

    shop_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("shops.id"),
        nullable=False,
    )

    customer_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
    )

    items: Mapped[list["QuoteItem"]] = relationship(
        back_populates="quote",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="QuoteItem.position",
    )

    def __repr__(self) -> str:
        return f"<Quote {self.serial_number} status={self.status}>"


class QuoteItem(LineItemMixin, TimestampedBase):
    __tablename__ = "quote_items"

    __table_args__ = (
        Index("idx_quote_item_quote", "quote_id"),
    )

    quote_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("quotes.id", ondelete="CASCADE"),
        nullable=False,
    )

    product_variant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("product_variants.id"),
        nullable=False,
    )

    quote: Mapped["Quote"] = relationship(back_populates="items")

    def __repr__(self) -> str:
        return f"<QuoteItem {self.name} qty={self.quantity} total={self.total_price}>"
