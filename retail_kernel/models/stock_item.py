"""
Module: retail_kernel.models.stock_item
Responsibility: ORM persistence for quantity on hand per (stock, product variant).
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - One row per (stock_id, product_variant_id) (uq_stock_item_variant).
    - quantity >= 0 (ck_stock_item_quantity_non_negative).  The inventory
      ledger checks this before writing; the constraint is the backstop.
    - Quantities change only through InventoryLedger.apply_delta().

Failure modes:
    - IntegrityError if a write would violate the non-negative check.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from retail_kernel.db.base import TrackedBase, UUIDString


class StockItem(TrackedBase):
    __tablename__ = "stock_items"

    __table_args__ = (
        UniqueConstraint("stock_id", "product_variant_id", name="uq_stock_item_variant"),
        CheckConstraint("quantity >= 0", name="ck_stock_item_quantity_non_negative"),
        Index("idx_stock_item_variant", "product_variant_id"),
    )

    stock_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("stocks.id"),
        nullable=False,
    )

    product_variant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("product_variants.id"),
        nullable=False,
    )

    quantity: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<StockItem variant={self.product_variant_id} stock={self.stock_id} "
            f"qty={self.quantity}>"
        )
