"""
Module: retail_kernel.models.catalog
Responsibility: ORM persistence for the product catalog hierarchy
    (category group > category > product > variant).
Architecture position: Kernel > Models.  May import from db/ only.

Line items reference product variants but snapshot the display name, so
renaming or soft-deleting a variant never rewrites past documents.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from retail_kernel.db.base import TrackedBase, UUIDString


class ProductCategoryGroup(TrackedBase):
    """Top-level grouping used by the top-sales report."""

    __tablename__ = "product_category_groups"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<ProductCategoryGroup {self.name}>"


class ProductCategory(TrackedBase):
    __tablename__ = "product_categories"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    product_category_group_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("product_category_groups.id"),
        nullable=True,
    )

    group: Mapped["ProductCategoryGroup | None"] = relationship()

    def __repr__(self) -> str:
        return f"<ProductCategory {self.name}>"


class Product(TrackedBase):
    __tablename__ = "products"

    __table_args__ = (
        Index("idx_product_category", "product_category_id"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    product_category_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("product_categories.id"),
        nullable=True,
    )

    category: Mapped["ProductCategory | None"] = relationship()

    variants: Mapped[list["ProductVariant"]] = relationship(back_populates="product")

    def __repr__(self) -> str:
        return f"<Product {self.name}>"


class ProductVariant(TrackedBase):
    """
    A sellable presentation of a product (size, colour, pack).

    Soft-deleted variants keep deleted_at set; they remain referenced by
    historical line items but are excluded from sales reports.
    """

    __tablename__ = "product_variants"

    __table_args__ = (
        Index("idx_variant_product", "product_id"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    product: Mapped["Product"] = relationship(back_populates="variants")

    @property
    def display_name(self) -> str:
        """Name snapshotted onto line items: product name plus variant name."""
        if self.product is None:
            return self.name
        return f"{self.product.name} {self.name}".strip()

    def __repr__(self) -> str:
        return f"<ProductVariant {self.name} product={self.product_id}>"
