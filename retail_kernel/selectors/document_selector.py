"""
Module: retail_kernel.selectors.document_selector
Responsibility: Read-only queries over billings and quotes: detail by serial
    number or id (with denormalized customer, person and address fields) and
    per-shop listings.
Architecture position: Kernel > Selectors.

Failure modes:
    - DocumentNotFoundError when no document matches.
    - ShopNotFoundError when listing for an unknown shop slug.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from retail_kernel.domain.dtos import CustomerInfo, DocumentDetail, DocumentSummary
from retail_kernel.domain.values import DocumentKind
from retail_kernel.exceptions import DocumentNotFoundError, ShopNotFoundError
from retail_kernel.models.billing import Billing
from retail_kernel.models.customer import Customer, Person
from retail_kernel.models.quote import Quote
from retail_kernel.models.shop import Shop
from retail_kernel.selectors.base import BaseSelector

_DOCUMENT_MODELS = {
    DocumentKind.BILLING: Billing,
    DocumentKind.QUOTE: Quote,
}


class DocumentSelector(BaseSelector):
    """Selector for billing and quote reads."""

    def _detail(self, kind: DocumentKind, document) -> DocumentDetail:
        customer = None
        if document.customer_id is not None:
            model = self.session.get(Customer, document.customer_id)
            customer = CustomerInfo.from_model(model) if model else None
        return DocumentDetail.from_model(kind, document, customer)

    def get_by_serial(self, kind: DocumentKind, serial_number: str) -> DocumentDetail:
        """
        Full document for a serial number.

        Raises:
            DocumentNotFoundError
        """
        model = _DOCUMENT_MODELS[kind]
        document = self.session.execute(
            select(model)
            .where(model.serial_number == serial_number)
            .options(selectinload(model.items))
        ).scalar_one_or_none()
        if document is None:
            raise DocumentNotFoundError(kind.value, serial_number)
        return self._detail(kind, document)

    def get_by_id(self, kind: DocumentKind, document_id: UUID) -> DocumentDetail:
        """
        Full document for an id.

        Raises:
            DocumentNotFoundError
        """
        model = _DOCUMENT_MODELS[kind]
        document = self.session.get(model, document_id)
        if document is None:
            raise DocumentNotFoundError(kind.value, str(document_id))
        return self._detail(kind, document)

    def list_for_shop(self, kind: DocumentKind, shop_slug: str) -> list[DocumentSummary]:
        """
        Document summaries of a shop, newest first.

        Raises:
            ShopNotFoundError
        """
        shop_id = self.session.execute(
            select(Shop.id).where(Shop.slug == shop_slug)
        ).scalar_one_or_none()
        if shop_id is None:
            raise ShopNotFoundError(shop_slug)

        model = _DOCUMENT_MODELS[kind]
        rows = self.session.execute(
            select(model, Person.full_name)
            .outerjoin(Customer, model.customer_id == Customer.id)
            .outerjoin(Person, Customer.person_id == Person.id)
            .where(model.shop_id == shop_id)
            .options(selectinload(model.items))
            .order_by(model.created_at.desc(), model.serial_number.desc())
        ).all()
        return [
            DocumentSummary.from_model(kind, document, customer_name)
            for document, customer_name in rows
        ]
