"""
Module: retail_kernel.models.billing
Responsibility: ORM persistence for billings (invoices) and their line items.
Architecture position: Kernel > Models.  May import from db/ and
    models/document.py only.

Invariants enforced:
    - serial_number is unique (uq_billing_serial_number).
    - Line items are deleted with their billing (ON DELETE CASCADE).
    - stock_deducted records whether creating the billing took quantities
      out of stock_id; only such billings restore stock on cancel.

Failure modes:
    - IntegrityError on duplicate serial number.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from retail_kernel.db.base import TimestampedBase, TrackedBase, UUIDString
from retail_kernel.models.document import DocumentHeaderMixin, LineItemMixin


class Billing(DocumentHeaderMixin, TrackedBase):
    """
    An invoice issued by a shop.

    Lifecycle: PENDING -> PAID, PENDING -> CANCELED, PAID -> CANCELED
    (cancellation restores stock).
    """

    __tablename__ = "billings"

    __table_args__ = (
        UniqueConstraint("serial_number", name="uq_billing_serial_number"),
        Index("idx_billing_shop_created", "shop_id", "created_at"),
        Index("idx_billing_status_effective", "status", "effective_date"),
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

    # Stock the items were taken from
    stock_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("stocks.id"),
        nullable=True,
    )

    stock_deducted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Date the sale counts for in reports
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)

    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)

    items: Mapped[list["BillingItem"]] = relationship(
        back_populates="billing",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="BillingItem.position",
    )

    def __repr__(self) -> str:
        return f"<Billing {self.serial_number} status={self.status}>"


class BillingItem(LineItemMixin, TimestampedBase):
    __tablename__ = "billing_items"

    __table_args__ = (
        Index("idx_billing_item_billing", "billing_id"),
        Index("idx_billing_item_variant", "product_variant_id"),
    )

    billing_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("billings.id", ondelete="CASCADE"),
        nullable=False,
    )

    product_variant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("product_variants.id"),
        nullable=False,
    )

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    billing: Mapped["Billing"] = relationship(back_populates="items")

    def __repr__(self) -> str:
        return f"<BillingItem {self.name} qty={self.quantity} total={self.total_price}>"
