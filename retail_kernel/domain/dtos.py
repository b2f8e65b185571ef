"""
DTOs -- immutable records that cross the kernel boundary.

Responsibility:
    Input commands (DocumentInput, DocumentUpdate, LineItemInput,
    CustomerInput) and output records (DocumentSummary, DocumentDetail,
    LineItemRecord, CustomerInfo, ShopInfo, StockItemInfo, report rows).

Architecture position:
    Kernel > Domain -- no database access.  from_model() class methods are
    boundary converters invoked only by services and selectors; callers
    never receive ORM entities.

Invariants enforced:
    - LineItemInput quantities are positive and prices non-negative
      (checked again, with typed errors, by the totals module).
    - DocumentDetail totals are recomputed from the stored items with the
      same function used at write time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from retail_kernel.db.types import ZERO
from retail_kernel.domain.totals import DocumentTotals, compute_totals
from retail_kernel.domain.values import DiscountType, DocumentKind

if TYPE_CHECKING:
    from retail_kernel.models.customer import Customer as CustomerModel
    from retail_kernel.models.shop import Shop as ShopModel
    from retail_kernel.models.stock_item import StockItem as StockItemModel


# -----------------------------------------------------------------------------
# Inputs
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class LineItemInput:
    """
    One requested line of a document.

    name is optional; when absent the product variant's display name is
    snapshotted.  total_price is optional; when supplied it must equal
    quantity x price.
    """

    product_variant_id: UUID
    quantity: Decimal
    price: Decimal
    name: str | None = None
    total_price: Decimal | None = None


@dataclass(frozen=True)
class CustomerInput:
    """
    Customer data carried by a document request.

    Without person_id a new customer is created; with person_id the
    customer backed by that person is updated.
    """

    full_name: str
    dni: str | None = None
    email: str | None = None
    phone_number: str | None = None
    city: str | None = None
    location: str | None = None
    person_id: UUID | None = None


@dataclass(frozen=True)
class DocumentInput:
    """Create command for a billing or a quote."""

    shop_slug: str
    items: tuple[LineItemInput, ...]
    customer_id: UUID | None = None
    customer: CustomerInput | None = None
    discount_type: DiscountType | None = None
    discount: Decimal = ZERO
    shipping: Decimal = ZERO
    # Client-computed total, verified against the computed one when present
    total: Decimal | None = None
    status: str | None = None
    # Billing only
    deduct_stock: bool = True
    stock_id: UUID | None = None
    effective_date: date | None = None
    payment_method: str | None = None


@dataclass(frozen=True)
class DocumentUpdate:
    """
    Replacement command for an existing document.

    The item list replaces the stored one wholesale.  Customer association
    changes only when customer_id or customer is supplied.
    """

    items: tuple[LineItemInput, ...]
    customer_id: UUID | None = None
    customer: CustomerInput | None = None
    discount_type: DiscountType | None = None
    discount: Decimal = ZERO
    shipping: Decimal = ZERO
    total: Decimal | None = None
    effective_date: date | None = None
    payment_method: str | None = None


# -----------------------------------------------------------------------------
# Outputs
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ShopInfo:
    id: UUID
    slug: str
    name: str
    currency: str
    default_stock_id: UUID | None

    @classmethod
    def from_model(cls, model: ShopModel) -> ShopInfo:
        default_stock = next((s for s in model.stocks if s.is_default), None)
        if default_stock is None and model.stocks:
            default_stock = model.stocks[0]
        return cls(
            id=model.id,
            slug=model.slug,
            name=model.name,
            currency=model.currency,
            default_stock_id=default_stock.id if default_stock else None,
        )


@dataclass(frozen=True)
class StockItemInfo:
    id: UUID
    stock_id: UUID
    product_variant_id: UUID
    quantity: Decimal
    price: Decimal
    currency: str

    @classmethod
    def from_model(cls, model: StockItemModel) -> StockItemInfo:
        return cls(
            id=model.id,
            stock_id=model.stock_id,
            product_variant_id=model.product_variant_id,
            quantity=model.quantity,
            price=model.price,
            currency=model.currency,
        )


@dataclass(frozen=True)
class CustomerInfo:
    """Customer with its person and address flattened in."""

    id: UUID
    person_id: UUID
    full_name: str
    dni: str | None
    email: str | None
    phone_number: str | None
    city: str | None
    address_id: UUID | None
    location: str | None

    @classmethod
    def from_model(cls, model: CustomerModel) -> CustomerInfo:
        return cls(
            id=model.id,
            person_id=model.person_id,
            full_name=model.person.full_name,
            dni=model.person.dni,
            email=model.email,
            phone_number=model.phone_number,
            city=model.city,
            address_id=model.address_id,
            location=model.address.location if model.address else None,
        )


@dataclass(frozen=True)
class LineItemRecord:
    id: UUID
    position: int
    product_variant_id: UUID
    name: str
    quantity: Decimal
    price: Decimal
    total_price: Decimal

    @classmethod
    def from_model(cls, model) -> LineItemRecord:
        """Build from a BillingItem or a QuoteItem."""
        return cls(
            id=model.id,
            position=model.position,
            product_variant_id=model.product_variant_id,
            name=model.name,
            quantity=model.quantity,
            price=model.price,
            total_price=model.total_price,
        )


@dataclass(frozen=True)
class DocumentSummary:
    """Header-level view of a billing or quote."""

    id: UUID
    kind: DocumentKind
    serial_number: str
    status: str
    shop_id: UUID
    currency: str
    customer_id: UUID | None
    customer_name: str | None
    discount_type: str | None
    discount: Decimal
    shipping: Decimal
    subtotal: Decimal
    total: Decimal
    created_at: datetime | None
    item_count: int
    effective_date: date | None = None
    stock_deducted: bool = False

    @classmethod
    def from_model(cls, kind: DocumentKind, model, customer_name: str | None = None) -> DocumentSummary:
        """Build from a Billing or a Quote."""
        return cls(
            id=model.id,
            kind=kind,
            serial_number=model.serial_number,
            status=model.status,
            shop_id=model.shop_id,
            currency=model.currency,
            customer_id=model.customer_id,
            customer_name=customer_name,
            discount_type=model.discount_type,
            discount=model.discount,
            shipping=model.shipping,
            subtotal=model.subtotal,
            total=model.total,
            created_at=model.created_at,
            item_count=len(model.items),
            effective_date=getattr(model, "effective_date", None),
            stock_deducted=getattr(model, "stock_deducted", False),
        )


@dataclass(frozen=True)
class DocumentDetail:
    """
    Full document: header, denormalized customer fields and items.

    subtotal and total are recomputed from the items on read.
    """

    id: UUID
    kind: DocumentKind
    serial_number: str
    status: str
    shop_id: UUID
    currency: str
    discount_type: str | None
    discount: Decimal
    shipping: Decimal
    subtotal: Decimal
    total: Decimal
    created_at: datetime | None
    items: tuple[LineItemRecord, ...]
    customer_id: UUID | None = None
    person_id: UUID | None = None
    full_name: str | None = None
    dni: str | None = None
    email: str | None = None
    phone_number: str | None = None
    location: str | None = None
    city: str | None = None
    effective_date: date | None = None
    payment_method: str | None = None

    @classmethod
    def from_model(cls, kind: DocumentKind, model, customer: CustomerInfo | None) -> DocumentDetail:
        items = tuple(LineItemRecord.from_model(i) for i in model.items)
        totals: DocumentTotals = compute_totals(
            (i.total_price for i in items),
            model.discount_type,
            model.discount,
            model.shipping,
        )
        return cls(
            id=model.id,
            kind=kind,
            serial_number=model.serial_number,
            status=model.status,
            shop_id=model.shop_id,
            currency=model.currency,
            discount_type=model.discount_type,
            discount=model.discount,
            shipping=model.shipping,
            subtotal=totals.subtotal,
            total=totals.total,
            created_at=model.created_at,
            items=items,
            customer_id=model.customer_id,
            person_id=customer.person_id if customer else None,
            full_name=customer.full_name if customer else None,
            dni=customer.dni if customer else None,
            email=customer.email if customer else None,
            phone_number=customer.phone_number if customer else None,
            location=customer.location if customer else None,
            city=customer.city if customer else None,
            effective_date=getattr(model, "effective_date", None),
            payment_method=getattr(model, "payment_method", None),
        )


@dataclass(frozen=True)
class MonthlySales:
    """Discount-aware paid sales for one calendar month, per currency."""

    month: int
    month_name: str
    amounts: dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class TopSalesGroup:
    group_id: UUID | None
    group_name: str
    currency: str
    quantity: Decimal


@dataclass(frozen=True)
class TopSalesReport:
    """Best-selling product category groups of one month, per currency."""

    year: int
    month: int
    by_currency: dict[str, tuple[TopSalesGroup, ...]] = field(default_factory=dict)
