"""Pydantic request/response schemas for the back-office API.

These are the external contracts.  Requests convert to kernel commands
(DocumentInput, DocumentUpdate); responses are built from kernel DTOs.
Business rules (non-empty items, positive quantities, discount rules) are
enforced by the kernel, not here, so they surface with their typed error
codes.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, PlainSerializer

from retail_kernel.db.types import round_money
from retail_kernel.domain.dtos import (
    CustomerInput,
    DocumentDetail,
    DocumentInput,
    DocumentSummary,
    DocumentUpdate,
    LineItemInput,
    MonthlySales,
    TopSalesReport,
)
from retail_kernel.domain.values import DiscountType, DocumentKind
from retail_kernel.selectors.sales_report_selector import MONTH_NAMES


def _plain(value: Decimal) -> str:
    return format(value.normalize(), "f")


# Amounts leave the API at cent precision; quantities without trailing zeros
MoneyOut = Annotated[Decimal, PlainSerializer(lambda v: str(round_money(v)), return_type=str)]
QuantityOut = Annotated[Decimal, PlainSerializer(_plain, return_type=str)]


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class LineItemRequest(BaseModel):
    product_variant_id: UUID
    quantity: Decimal
    price: Decimal
    name: str | None = None
    total_price: Decimal | None = None

    def to_input(self) -> LineItemInput:
        return LineItemInput(
            product_variant_id=self.product_variant_id,
            quantity=self.quantity,
            price=self.price,
            name=self.name,
            total_price=self.total_price,
        )


class CustomerRequest(BaseModel):
    full_name: str
    dni: str | None = None
    email: str | None = None
    phone_number: str | None = None
    city: str | None = None
    location: str | None = None
    person_id: UUID | None = None

    def to_input(self) -> CustomerInput:
        return CustomerInput(**self.model_dump())


class DocumentCreateRequest(BaseModel):
    shop_slug: str
    items: list[LineItemRequest]
    customer_id: UUID | None = None
    customer: CustomerRequest | None = None
    discount_type: DiscountType | None = None
    discount: Decimal = Decimal("0")
    shipping: Decimal = Decimal("0")
    total: Decimal | None = None
    status: str | None = None
    # Billings only
    deduct_stock: bool = True
    stock_id: UUID | None = None
    effective_date: date | None = None
    payment_method: str | None = None

    def to_input(self) -> DocumentInput:
        return DocumentInput(
            shop_slug=self.shop_slug,
            items=tuple(i.to_input() for i in self.items),
            customer_id=self.customer_id,
            customer=self.customer.to_input() if self.customer else None,
            discount_type=self.discount_type,
            discount=self.discount,
            shipping=self.shipping,
            total=self.total,
            status=self.status,
            deduct_stock=self.deduct_stock,
            stock_id=self.stock_id,
            effective_date=self.effective_date,
            payment_method=self.payment_method,
        )


class DocumentUpdateRequest(BaseModel):
    items: list[LineItemRequest]
    customer_id: UUID | None = None
    customer: CustomerRequest | None = None
    discount_type: DiscountType | None = None
    discount: Decimal = Decimal("0")
    shipping: Decimal = Decimal("0")
    total: Decimal | None = None
    effective_date: date | None = None
    payment_method: str | None = None

    def to_update(self) -> DocumentUpdate:
        return DocumentUpdate(
            items=tuple(i.to_input() for i in self.items),
            customer_id=self.customer_id,
            customer=self.customer.to_input() if self.customer else None,
            discount_type=self.discount_type,
            discount=self.discount,
            shipping=self.shipping,
            total=self.total,
            effective_date=self.effective_date,
            payment_method=self.payment_method,
        )


class StatusChangeRequest(BaseModel):
    status: str


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class DocumentSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    kind: DocumentKind
    serial_number: str
    status: str
    shop_id: UUID
    currency: str
    customer_id: UUID | None
    customer_name: str | None
    discount_type: str | None
    discount: QuantityOut
    shipping: MoneyOut
    subtotal: MoneyOut
    total: MoneyOut
    created_at: datetime | None
    item_count: int
    effective_date: date | None = None
    stock_deducted: bool = False

    @classmethod
    def from_summary(cls, summary: DocumentSummary) -> "DocumentSummaryResponse":
        return cls.model_validate(summary)


class DocumentEnvelope(BaseModel):
    document: DocumentSummaryResponse


class LineItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    position: int
    product_variant_id: UUID
    name: str
    quantity: QuantityOut
    price: MoneyOut
    total_price: MoneyOut


class DocumentDetailResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    kind: DocumentKind
    serial_number: str
    status: str
    shop_id: UUID
    currency: str
    discount_type: str | None
    discount: QuantityOut
    shipping: MoneyOut
    subtotal: MoneyOut
    total: MoneyOut
    created_at: datetime | None
    items: list[LineItemResponse]
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
    def from_detail(cls, detail: DocumentDetail) -> "DocumentDetailResponse":
        return cls.model_validate(detail)


class MessageResponse(BaseModel):
    message: str


class MonthlySalesResponse(BaseModel):
    month: str
    month_number: int
    amounts: dict[str, MoneyOut]

    @classmethod
    def from_row(cls, row: MonthlySales) -> "MonthlySalesResponse":
        return cls(month=row.month_name, month_number=row.month, amounts=row.amounts)


class TopSalesGroupResponse(BaseModel):
    product_category_group_id: UUID | None
    product_category_group_name: str
    total_quantity: QuantityOut


class TopSalesResponse(BaseModel):
    year: int
    month: str
    month_number: int
    top: dict[str, list[TopSalesGroupResponse]]

    @classmethod
    def from_report(cls, report: TopSalesReport) -> "TopSalesResponse":
        return cls(
            year=report.year,
            month=MONTH_NAMES[report.month - 1],
            month_number=report.month,
            top={
                currency: [
                    TopSalesGroupResponse(
                        product_category_group_id=g.group_id,
                        product_category_group_name=g.group_name,
                        total_quantity=g.quantity,
                    )
                    for g in groups
                ]
                for currency, groups in report.by_currency.items()
            },
        )


class PingResponse(BaseModel):
    status: str = "ok"
    database: str = "ok"


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict = {}
