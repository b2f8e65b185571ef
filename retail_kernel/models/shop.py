"""
Module: retail_kernel.models.shop
Responsibility: ORM persistence for shops and their stock locations.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Shop slugs are unique (uq_shop_slug).
    - A shop trades in exactly one currency; every document created for the
      shop copies it.
"""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from retail_kernel.db.base import TrackedBase, UUIDString


class Shop(TrackedBase):
    """A point of sale.  Looked up by slug from the URL or request payload."""

    __tablename__ = "shops"

    __table_args__ = (
        UniqueConstraint("slug", name="uq_shop_slug"),
    )

    slug: Mapped[str] = mapped_column(String(100), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # COP or USD
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    stocks: Mapped[list["Stock"]] = relationship(back_populates="shop")

    def __repr__(self) -> str:
        return f"<Shop {self.slug} ({self.currency})>"


class Stock(TrackedBase):
    """A stock location belonging to a shop."""

    __tablename__ = "stocks"

    __table_args__ = (
        Index("idx_stock_shop", "shop_id"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    shop_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("shops.id"),
        nullable=False,
    )

    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    shop: Mapped["Shop"] = relationship(back_populates="stocks")

    def __repr__(self) -> str:
        return f"<Stock {self.name} shop={self.shop_id}>"
